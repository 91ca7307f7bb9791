"""Temporal grouping of lessons into simultaneous groups, adjacent pairs and weeks."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from bottleneck_engine.analysis.models import Lesson, LessonPair


def as_utc(moment: datetime) -> datetime:
  """Normalize a timestamp to UTC, treating naive values as already UTC."""
  if moment.tzinfo is None:
    return moment.replace(tzinfo=UTC)
  return moment.astimezone(UTC)


def sort_lessons(lessons: Iterable[Lesson]) -> list[Lesson]:
  """Return lessons ordered by start time; ties keep their input order."""
  return sorted(lessons, key=lambda lesson: as_utc(lesson.start_time))


def collapse_to_groups(lessons: Iterable[Lesson]) -> list[list[Lesson]]:
  """Collapse lessons into chronologically ordered groups sharing one start instant.

  Every lesson lands in exactly one group and no two adjacent groups share a
  start time.
  """
  groups: list[list[Lesson]] = []

  for lesson in sort_lessons(lessons):
    # Extend the open group while the start instant repeats.
    if groups and as_utc(groups[-1][0].start_time) == as_utc(lesson.start_time):
      groups[-1].append(lesson)
    else:
      groups.append([lesson])

  return groups


def arrange_into_pairs(lessons: Iterable[Lesson]) -> list[LessonPair]:
  """Pair every lesson of a group with every lesson of the next group.

  Concurrent lessons multiply the pairs: two parallel lessons followed by one
  lesson yield two pairs. Pairs never span non-adjacent groups.
  """
  groups = collapse_to_groups(lessons)
  pairs: list[LessonPair] = []

  for current, following in zip(groups, groups[1:]):
    pairs.extend((lesson_a, lesson_b) for lesson_a in current for lesson_b in following)

  return pairs


def week_start(moment: datetime) -> datetime:
  """Return Sunday 00:00 UTC at or before the given moment."""
  moment_utc = as_utc(moment)
  # isoweekday() is 7 on Sunday, so the modulo yields days since the last Sunday.
  sunday = moment_utc - timedelta(days=moment_utc.isoweekday() % 7)
  return sunday.replace(hour=0, minute=0, second=0, microsecond=0)


def arrange_into_weeks(lessons: Iterable[Lesson]) -> list[list[Lesson]]:
  """Split lessons into Sunday-keyed calendar weeks, oldest week first."""
  weeks: list[list[Lesson]] = []

  for lesson in sort_lessons(lessons):
    if weeks and week_start(weeks[-1][0].start_time) == week_start(lesson.start_time):
      weeks[-1].append(lesson)
    else:
      weeks.append([lesson])

  return weeks
