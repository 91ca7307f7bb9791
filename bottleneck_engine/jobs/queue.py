"""Single-flight job queue executing job bodies one at a time in submission order."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from bottleneck_engine.jobs.models import JobRequest, JobStatus, request_key

logger = logging.getLogger(__name__)

JobWork = Callable[[], Awaitable[Any]]


class JobQueue:
  """Deduplicating serial job queue with poll-based status and single collection of results.

  All state lives on the event loop that submits jobs: ``submit``, ``status`` and
  ``result`` must be called from that loop, and the worker task mutating the maps
  runs on it too, so no two mutations ever interleave.
  """

  def __init__(self, *, timeout_seconds: float | None = None) -> None:
    self._timeout_seconds = timeout_seconds
    # Registered requests: queued, running, or done but not yet collected.
    self._requests: dict[int, JobRequest] = {}
    self._results: dict[int, Any] = {}
    self._failed: set[int] = set()
    self._next_job_id = 1
    self._pending: asyncio.Queue[tuple[int, JobRequest, JobWork]] = asyncio.Queue()
    self._worker: asyncio.Task[None] | None = None

  def submit(self, request: JobRequest, work: JobWork) -> int:
    """Queue ``work`` for ``request`` and return its job id.

    A request structurally equal to one that is still registered returns the
    existing job id and ``work`` is discarded.
    """
    existing_job_id = self._find(request)
    if existing_job_id is not None:
      logger.debug("Request folded into job_id=%s request=%s", existing_job_id, request)
      return existing_job_id

    job_id = self._next_job_id
    self._next_job_id += 1

    self._requests[job_id] = request
    self._pending.put_nowait((job_id, request, work))
    self._ensure_worker()
    logger.info("Queued job_id=%s request=%s", job_id, request)
    return job_id

  def status(self, job_id: int) -> JobStatus:
    """Report a job's state; an error status is reported once and then forgotten."""
    if job_id in self._results:
      return JobStatus.DONE
    if job_id in self._failed:
      self._failed.discard(job_id)
      return JobStatus.ERROR
    if job_id in self._requests:
      return JobStatus.PROCESSING
    return JobStatus.NOT_FOUND

  def result(self, job_id: int) -> Any | None:
    """Return a finished job's result once; later calls return None."""
    if job_id not in self._results:
      return None

    self._requests.pop(job_id, None)
    return self._results.pop(job_id)

  def requests(self) -> dict[int, JobRequest]:
    """Snapshot of registered requests by job id."""
    return dict(self._requests)

  async def join(self) -> None:
    """Wait until every queued job body has settled."""
    await self._pending.join()

  async def close(self) -> None:
    """Stop the worker; queued jobs that have not started are dropped."""
    if self._worker is None:
      return

    self._worker.cancel()
    with contextlib.suppress(asyncio.CancelledError):
      await self._worker
    self._worker = None

  def _find(self, request: JobRequest) -> int | None:
    key = request_key(request)
    for job_id, registered in self._requests.items():
      if request_key(registered) == key:
        return job_id
    return None

  def _ensure_worker(self) -> None:
    if self._worker is None or self._worker.done():
      self._worker = asyncio.get_running_loop().create_task(self._run(), name="job-queue-worker")

  async def _run(self) -> None:
    while True:
      job_id, request, work = await self._pending.get()
      try:
        await self._execute(job_id, request, work)
      finally:
        self._pending.task_done()

  async def _execute(self, job_id: int, request: JobRequest, work: JobWork) -> None:
    """Run one job body to completion and record its outcome."""
    logger.info("Processing job_id=%s", job_id)
    try:
      if self._timeout_seconds is None:
        result = await work()
      else:
        result = await asyncio.wait_for(work(), timeout=self._timeout_seconds)
    except Exception:
      self._fail(job_id)
      logger.error("Error processing job_id=%s request=%s", job_id, request, exc_info=True)
      return

    if result is None:
      self._fail(job_id)
      logger.error("Error processing job_id=%s request=%s: job produced no result", job_id, request)
      return

    self._results[job_id] = result
    logger.info("Completed job_id=%s", job_id)

  def _fail(self, job_id: int) -> None:
    self._failed.add(job_id)
    self._requests.pop(job_id, None)
