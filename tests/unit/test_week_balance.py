"""Unit tests for per-weekday lesson counts and unbalanced week detection."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from bottleneck_engine.analysis.balance import is_unbalanced, lesson_count_range, week_balance
from bottleneck_engine.analysis.engine import BottleneckAnalyzer
from bottleneck_engine.config import AnalysisSettings

MONDAY = datetime(2024, 9, 2)
SLOTS = (timedelta(hours=9), timedelta(hours=10, minutes=40), timedelta(hours=12, minutes=40))


def _week(make_lesson, counts: list[int]):
  return [make_lesson(MONDAY + timedelta(days=day) + SLOTS[slot]) for day, count in enumerate(counts) for slot in range(count)]


def test_week_balance_counts_time_groups_per_weekday(make_lesson) -> None:
  lessons = _week(make_lesson, [3, 3, 3, 3, 1, 0])

  assert week_balance(lessons) == (3, 3, 3, 3, 1, 0)


def test_concurrent_lessons_count_once(make_lesson) -> None:
  lessons = [make_lesson(MONDAY + SLOTS[0]), make_lesson(MONDAY + SLOTS[0]), make_lesson(MONDAY + SLOTS[1])]

  assert week_balance(lessons) == (2, 0, 0, 0, 0, 0)


def test_sunday_lessons_are_not_counted(make_lesson) -> None:
  sunday = make_lesson(MONDAY - timedelta(days=1) + SLOTS[0])

  assert week_balance([sunday]) == (0, 0, 0, 0, 0, 0)


@pytest.mark.parametrize(
  ("counts", "expected_range"),
  [((3, 3, 3, 3, 1, 0), 2), ((2, 2, 2, 2, 2, 0), 0), ((1, 0, 0, 0, 0, 0), 0), ((0, 0, 0, 0, 0, 0), 0)],
)
def test_lesson_count_range_ignores_empty_days(counts: tuple[int, ...], expected_range: int) -> None:
  assert lesson_count_range(counts) == expected_range


def test_single_monday_lesson_is_never_unbalanced() -> None:
  assert not is_unbalanced((1, 0, 0, 0, 0, 0), 0)


def test_analyzer_flags_only_uneven_weeks(make_lesson) -> None:
  uneven = _week(make_lesson, [3, 3, 3, 3, 1, 0])
  even = [make_lesson(lesson.start_time + timedelta(days=7)) for lesson in _week(make_lesson, [2, 2, 2, 2, 2, 0])]
  analyzer = BottleneckAnalyzer(AnalysisSettings(max_range_of_lessons_per_day=1))

  weeks = analyzer.find_unbalanced_weeks([*uneven, *even])

  assert len(weeks) == 1
  assert weeks[0].daily_counts == (3, 3, 3, 3, 1, 0)
  assert weeks[0].week_start == datetime(2024, 9, 1, tzinfo=weeks[0].week_start.tzinfo)
  assert weeks[0].target_id == 1


def test_week_counts_never_exceed_time_groups(make_lesson) -> None:
  lessons = _week(make_lesson, [3, 2, 1, 0, 2, 1])
  lessons.append(make_lesson(MONDAY + SLOTS[0]))

  assert sum(week_balance(lessons)) <= len({lesson.start_time for lesson in lessons})
