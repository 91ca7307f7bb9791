"""Domain models for queued analysis and search jobs."""

from __future__ import annotations

from dataclasses import astuple, dataclass
from enum import Enum

from bottleneck_engine.analysis.models import TargetKind


class JobStatus(str, Enum):
  """Observable lifecycle state of a job."""

  PROCESSING = "processing"
  DONE = "done"
  ERROR = "error"
  NOT_FOUND = "not found"


@dataclass(frozen=True)
class AnalysisRequest:
  """Request to analyse one target's schedule."""

  target_kind: TargetKind
  remote_id: int


@dataclass(frozen=True)
class SearchRequest:
  """Request to search the remote API and analyse every match."""

  limit: int | None = None
  match: str | None = None
  page_token: str | None = None


JobRequest = AnalysisRequest | SearchRequest


def request_key(request: JobRequest) -> tuple[object, ...]:
  """Canonical comparable key: request type followed by its field values in declaration order."""
  return (type(request).__name__, *astuple(request))
