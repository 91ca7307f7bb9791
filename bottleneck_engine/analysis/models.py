"""Domain models for timetabled lessons, their targets and detected bottlenecks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import IntEnum

# Lesson duration is fixed by the timetable and never stored.
LESSON_DURATION = timedelta(minutes=90)


class TargetKind(IntEnum):
  """Kind of schedule owner, valued by the remote API's numeric code."""

  GROUP = 1
  INSTRUCTOR = 2


@dataclass(frozen=True)
class Target:
  """A group or instructor whose schedule is analysed.

  Identified either by ``id`` once stored, or by ``(target_kind, remote_id)``.
  """

  target_kind: TargetKind
  remote_id: int
  id: int | None = None
  checksum: str | None = None


@dataclass(frozen=True)
class Lesson:
  """One timetabled class occurrence."""

  location: str
  summary: str
  start_time: datetime
  id: int | None = None
  target_id: int | None = None

  @property
  def end_time(self) -> datetime:
    return self.start_time + LESSON_DURATION

  def stripped(self) -> Lesson:
    """Return a copy without persistence identity, for presentation."""
    return Lesson(location=self.location, summary=self.summary, start_time=self.start_time)


LessonPair = tuple[Lesson, Lesson]


@dataclass(frozen=True)
class DistantClassroom:
  """Consecutive lessons too far apart for the break between them."""

  target_id: int
  lesson_a: int
  lesson_b: int
  start_time: datetime
  id: int | None = None


@dataclass(frozen=True)
class LargeGap:
  """Consecutive lessons on one day separated by an excessive idle gap."""

  target_id: int
  lesson_a: int
  lesson_b: int
  start_time: datetime
  id: int | None = None


@dataclass(frozen=True)
class UnbalancedWeek:
  """A Sunday-keyed week whose Monday..Saturday lesson counts are uneven."""

  target_id: int
  week_start: datetime
  daily_counts: tuple[int, ...]
  id: int | None = None


Bottleneck = DistantClassroom | LargeGap | UnbalancedWeek


@dataclass(frozen=True)
class Bottlenecks:
  """Bundle of every bottleneck found for one target."""

  distant_classrooms: list[DistantClassroom] = field(default_factory=list)
  large_gaps: list[LargeGap] = field(default_factory=list)
  unbalanced_weeks: list[UnbalancedWeek] = field(default_factory=list)
