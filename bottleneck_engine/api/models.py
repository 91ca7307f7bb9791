from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel

from bottleneck_engine.jobs.models import JobStatus


class ApiModel(BaseModel):
  """Base for API payloads, serialized with camelCase keys."""

  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobCreateResponse(ApiModel):
  """Response returned after submitting a job."""

  job_id: StrictInt = Field(description="Identifier used to poll status and collect the result.")


class JobStatusResponse(ApiModel):
  """Current state of a submitted job."""

  status: JobStatus


class LessonPayload(ApiModel):
  """A lesson stripped to its presentation fields."""

  location: str
  summary: str
  start_time: datetime


class PairBottleneckPayload(ApiModel):
  """A distant-classroom or large-gap bottleneck with both lessons resolved."""

  lesson_a: LessonPayload
  lesson_b: LessonPayload
  start_time: datetime


class UnbalancedWeekPayload(ApiModel):
  week_start: datetime
  daily_counts: list[int] = Field(description="Lesson counts for Monday through Saturday.")


class HydratedBottlenecks(ApiModel):
  """Every bottleneck found for one target, ready for presentation."""

  distant_classrooms: list[PairBottleneckPayload] = Field(default_factory=list)
  large_gaps: list[PairBottleneckPayload] = Field(default_factory=list)
  unbalanced_weeks: list[UnbalancedWeekPayload] = Field(default_factory=list)


class SearchTargetPayload(ApiModel):
  """A search hit together with its analysed bottlenecks."""

  name: str
  target_kind: int
  remote_id: int
  bottlenecks: HydratedBottlenecks


class HydratedSearchResult(ApiModel):
  targets: list[SearchTargetPayload] = Field(default_factory=list)
  next_page_token: str | None = None
