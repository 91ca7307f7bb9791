"""Job orchestration: request models and the serial single-flight queue."""

from bottleneck_engine.jobs.models import AnalysisRequest, JobRequest, JobStatus, SearchRequest, request_key
from bottleneck_engine.jobs.queue import JobQueue, JobWork

__all__ = ["AnalysisRequest", "JobQueue", "JobRequest", "JobStatus", "JobWork", "SearchRequest", "request_key"]
