"""Unit tests for the single-flight serial job queue."""

from __future__ import annotations

import asyncio

import pytest

from bottleneck_engine.analysis.models import TargetKind
from bottleneck_engine.jobs.models import AnalysisRequest, JobStatus, SearchRequest, request_key
from bottleneck_engine.jobs.queue import JobQueue


def _returning(value):
  async def _work():
    return value

  return _work


def _raising(exc: Exception):
  async def _work():
    raise exc

  return _work


def test_request_key_is_structural() -> None:
  assert request_key(AnalysisRequest(TargetKind.GROUP, 5)) == request_key(AnalysisRequest(TargetKind.GROUP, 5))
  assert request_key(AnalysisRequest(TargetKind.GROUP, 5)) != request_key(AnalysisRequest(TargetKind.INSTRUCTOR, 5))
  assert request_key(SearchRequest(limit=5)) != request_key(SearchRequest(match="5"))


@pytest.mark.anyio
async def test_identical_requests_share_one_job() -> None:
  """A request equal to one still in flight is folded into the existing job."""
  queue = JobQueue()
  release = asyncio.Event()
  calls = 0

  async def _work():
    nonlocal calls
    calls += 1
    await release.wait()
    return "done"

  first = queue.submit(AnalysisRequest(TargetKind.GROUP, 42), _work)
  second = queue.submit(AnalysisRequest(TargetKind.GROUP, 42), _work)
  other = queue.submit(AnalysisRequest(TargetKind.INSTRUCTOR, 42), _returning("other"))

  assert first == second
  assert other == first + 1
  assert queue.status(first) == JobStatus.PROCESSING

  release.set()
  await queue.join()

  assert calls == 1
  assert queue.status(first) == JobStatus.DONE
  await queue.close()


@pytest.mark.anyio
async def test_result_is_collected_once() -> None:
  queue = JobQueue()
  job_id = queue.submit(SearchRequest(match="ИКБО"), _returning({"targets": []}))
  await queue.join()

  assert queue.result(job_id) == {"targets": []}
  assert queue.result(job_id) is None
  assert queue.status(job_id) == JobStatus.NOT_FOUND
  await queue.close()


@pytest.mark.anyio
async def test_completed_uncollected_job_absorbs_duplicates_until_collected() -> None:
  queue = JobQueue()
  request = AnalysisRequest(TargetKind.GROUP, 7)
  job_id = queue.submit(request, _returning("first"))
  await queue.join()

  assert queue.submit(request, _returning("second")) == job_id
  assert queue.result(job_id) == "first"

  fresh_id = queue.submit(request, _returning("second"))
  await queue.join()

  assert fresh_id != job_id
  assert queue.result(fresh_id) == "second"
  await queue.close()


@pytest.mark.anyio
async def test_error_status_is_reported_once_and_request_can_be_resubmitted() -> None:
  queue = JobQueue()
  request = AnalysisRequest(TargetKind.GROUP, 13)
  job_id = queue.submit(request, _raising(RuntimeError("remote API down")))
  await queue.join()

  assert queue.result(job_id) is None
  assert queue.status(job_id) == JobStatus.ERROR
  assert queue.status(job_id) == JobStatus.NOT_FOUND

  retry_id = queue.submit(request, _returning("ok"))
  assert retry_id != job_id
  await queue.join()
  assert queue.status(retry_id) == JobStatus.DONE
  await queue.close()


@pytest.mark.anyio
async def test_none_result_counts_as_error() -> None:
  queue = JobQueue()
  job_id = queue.submit(AnalysisRequest(TargetKind.GROUP, 1), _returning(None))
  await queue.join()

  assert queue.status(job_id) == JobStatus.ERROR
  await queue.close()


@pytest.mark.anyio
async def test_jobs_run_one_at_a_time_in_submission_order() -> None:
  queue = JobQueue()
  events: list[str] = []

  def _tracked(name: str):
    async def _work():
      events.append(f"start {name}")
      await asyncio.sleep(0.01)
      events.append(f"end {name}")
      return name

    return _work

  ids = [queue.submit(AnalysisRequest(TargetKind.GROUP, remote_id), _tracked(str(remote_id))) for remote_id in (1, 2, 3)]
  await queue.join()

  assert ids == sorted(ids)
  assert events == ["start 1", "end 1", "start 2", "end 2", "start 3", "end 3"]
  await queue.close()


@pytest.mark.anyio
async def test_failure_does_not_stop_later_jobs() -> None:
  queue = JobQueue()
  failing = queue.submit(AnalysisRequest(TargetKind.GROUP, 1), _raising(ValueError("bad calendar")))
  passing = queue.submit(AnalysisRequest(TargetKind.GROUP, 2), _returning("ok"))
  await queue.join()

  assert queue.status(failing) == JobStatus.ERROR
  assert queue.result(passing) == "ok"
  await queue.close()


@pytest.mark.anyio
async def test_timeout_fails_the_job() -> None:
  queue = JobQueue(timeout_seconds=0.01)

  async def _hang():
    await asyncio.sleep(5)
    return "late"

  job_id = queue.submit(AnalysisRequest(TargetKind.GROUP, 1), _hang)
  await queue.join()

  assert queue.status(job_id) == JobStatus.ERROR
  await queue.close()


@pytest.mark.anyio
async def test_unknown_job_is_not_found() -> None:
  queue = JobQueue()

  assert queue.status(999) == JobStatus.NOT_FOUND
  assert queue.result(999) is None
  assert queue.requests() == {}
