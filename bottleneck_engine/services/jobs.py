"""Job submission facade used by the HTTP layer."""

from __future__ import annotations

import logging
from typing import Any

from bottleneck_engine.analysis.engine import BottleneckAnalyzer
from bottleneck_engine.analysis.models import TargetKind
from bottleneck_engine.config import Settings
from bottleneck_engine.jobs.models import AnalysisRequest, JobStatus, SearchRequest
from bottleneck_engine.jobs.queue import JobQueue
from bottleneck_engine.services.processing import ScheduleProcessor
from bottleneck_engine.services.schedule_client import ScheduleSource
from bottleneck_engine.storage.schedule_repo import ScheduleRepository

logger = logging.getLogger(__name__)


class JobService:
  """Bind typed requests to processor job bodies on a shared queue."""

  def __init__(self, queue: JobQueue, processor: ScheduleProcessor) -> None:
    self._queue = queue
    self._processor = processor

  @property
  def queue(self) -> JobQueue:
    return self._queue

  def submit_analysis(self, target_kind: TargetKind, remote_id: int) -> int:
    request = AnalysisRequest(target_kind=target_kind, remote_id=remote_id)
    return self._queue.submit(request, lambda: self._processor.process_analysis(target_kind, remote_id))

  def submit_search(self, limit: int | None = None, match: str | None = None, page_token: str | None = None) -> int:
    request = SearchRequest(limit=limit, match=match, page_token=page_token)
    return self._queue.submit(request, lambda: self._processor.process_search(limit=limit, match=match, page_token=page_token))

  def get_status(self, job_id: int) -> JobStatus:
    return self._queue.status(job_id)

  def get_result(self, job_id: int) -> Any | None:
    return self._queue.result(job_id)

  async def close(self) -> None:
    await self._queue.close()


def build_job_service(settings: Settings, source: ScheduleSource, repository: ScheduleRepository) -> JobService:
  """Wire the analyzer, processor and queue from settings."""
  analyzer = BottleneckAnalyzer(settings.analysis)
  processor = ScheduleProcessor(repository, source, analyzer, do_checksum_check=settings.do_checksum_check)
  queue = JobQueue(timeout_seconds=settings.job_timeout_seconds)
  logger.info("Job service ready (checksum_check=%s job_timeout=%s)", settings.do_checksum_check, settings.job_timeout_seconds)
  return JobService(queue, processor)
