"""Per-weekday lesson counts used to detect unbalanced weeks."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from bottleneck_engine.analysis.grouping import as_utc, collapse_to_groups
from bottleneck_engine.analysis.models import Lesson

# Monday..Saturday; Sunday lessons are not counted.
COUNTED_WEEKDAYS = 6


def week_balance(lessons: Iterable[Lesson]) -> tuple[int, ...]:
  """Count distinct time groups per weekday, Monday first.

  Concurrent lessons count once, through the first lesson of their group.
  """
  counts = [0] * COUNTED_WEEKDAYS

  for group in collapse_to_groups(lessons):
    weekday = as_utc(group[0].start_time).weekday()
    if weekday < COUNTED_WEEKDAYS:
      counts[weekday] += 1

  return tuple(counts)


def lesson_count_range(counts: Sequence[int]) -> int:
  """Spread between the busiest and the lightest non-empty day; 0 when no day has lessons."""
  nonzero = [count for count in counts if count != 0]
  if not nonzero:
    return 0
  return max(nonzero) - min(nonzero)


def is_unbalanced(counts: Sequence[int], max_range: int) -> bool:
  return lesson_count_range(counts) > max_range
