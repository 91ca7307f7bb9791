"""Unit tests for the bottleneck aggregator and its identity contract."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest

from bottleneck_engine.analysis.engine import BottleneckAnalyzer
from bottleneck_engine.analysis.models import DistantClassroom, LargeGap
from bottleneck_engine.config import AnalysisSettings
from bottleneck_engine.core.errors import BottleneckContractError


@pytest.fixture
def analyzer() -> BottleneckAnalyzer:
  return BottleneckAnalyzer(AnalysisSettings(max_gap_hours=3, max_range_of_lessons_per_day=2))


def test_analyze_bundles_all_three_classifiers(analyzer: BottleneckAnalyzer, make_lesson) -> None:
  first = make_lesson(datetime(2024, 9, 2, 9, 0), "А-301 (ИВЦ)")
  moved = make_lesson(datetime(2024, 9, 2, 10, 40), "Б-105 (Юж)")
  late = make_lesson(datetime(2024, 9, 2, 16, 0), "Б-105 (Юж)")

  bottlenecks = analyzer.analyze([late, moved, first])

  assert bottlenecks.distant_classrooms == [DistantClassroom(target_id=1, lesson_a=first.id, lesson_b=moved.id, start_time=first.start_time)]
  assert bottlenecks.large_gaps == [LargeGap(target_id=1, lesson_a=moved.id, lesson_b=late.id, start_time=moved.start_time)]
  assert bottlenecks.unbalanced_weeks == []


def test_analyze_empty_schedule(analyzer: BottleneckAnalyzer) -> None:
  bottlenecks = analyzer.analyze([])

  assert bottlenecks.distant_classrooms == []
  assert bottlenecks.large_gaps == []
  assert bottlenecks.unbalanced_weeks == []


def test_lessons_without_identity_break_the_contract(analyzer: BottleneckAnalyzer, make_lesson) -> None:
  lesson_a = make_lesson(datetime(2024, 9, 2, 9, 0), "А-301 (ИВЦ)")
  lesson_b = replace(make_lesson(datetime(2024, 9, 2, 10, 40), "Б-105 (Юж)"), id=None)

  with pytest.raises(BottleneckContractError):
    analyzer.find_distant_classrooms([lesson_a, lesson_b])


def test_lessons_without_target_break_the_contract(analyzer: BottleneckAnalyzer, make_lesson) -> None:
  lesson_a = make_lesson(datetime(2024, 9, 2, 9, 0), "А-301 (ИВЦ)", target_id=None)
  lesson_b = make_lesson(datetime(2024, 9, 2, 10, 40), "Б-105 (Юж)", target_id=None)

  with pytest.raises(BottleneckContractError):
    analyzer.analyze([lesson_a, lesson_b])


def test_lessons_of_different_targets_break_the_contract(analyzer: BottleneckAnalyzer, make_lesson) -> None:
  lesson_a = make_lesson(datetime(2024, 9, 2, 9, 0), target_id=1)
  lesson_b = make_lesson(datetime(2024, 9, 2, 16, 0), target_id=2)

  with pytest.raises(BottleneckContractError):
    analyzer.find_large_gaps([lesson_a, lesson_b])


def test_unflagged_pairs_do_not_need_identity(analyzer: BottleneckAnalyzer, make_lesson) -> None:
  """Identity is only checked for pairs that actually become bottlenecks."""
  lesson_a = replace(make_lesson(datetime(2024, 9, 2, 9, 0)), id=None)
  lesson_b = replace(make_lesson(datetime(2024, 9, 2, 10, 40)), id=None)

  assert analyzer.find_distant_classrooms([lesson_a, lesson_b]) == []


def _lopsided_week(make_lesson, target_ids: list[int | None]) -> list:
  """Three lessons on Monday and one on Tuesday: counts (3, 1, 0, 0, 0, 0)."""
  starts = [datetime(2024, 9, 2, 9, 0), datetime(2024, 9, 2, 10, 40), datetime(2024, 9, 2, 12, 40), datetime(2024, 9, 3, 9, 0)]
  return [make_lesson(start, target_id=target_id) for start, target_id in zip(starts, target_ids, strict=True)]


def test_flagged_week_without_target_breaks_the_contract(make_lesson) -> None:
  analyzer = BottleneckAnalyzer(AnalysisSettings(max_range_of_lessons_per_day=1))
  week = _lopsided_week(make_lesson, [1, 1, None, 1])

  with pytest.raises(BottleneckContractError):
    analyzer.find_unbalanced_weeks(week)


def test_flagged_week_with_mixed_targets_breaks_the_contract(make_lesson) -> None:
  analyzer = BottleneckAnalyzer(AnalysisSettings(max_range_of_lessons_per_day=1))
  week = _lopsided_week(make_lesson, [1, 1, 1, 2])

  with pytest.raises(BottleneckContractError):
    analyzer.find_unbalanced_weeks(week)


def test_flagged_week_keeps_its_counts(make_lesson) -> None:
  analyzer = BottleneckAnalyzer(AnalysisSettings(max_range_of_lessons_per_day=1))

  (week,) = analyzer.find_unbalanced_weeks(_lopsided_week(make_lesson, [1, 1, 1, 1]))

  assert week.target_id == 1
  assert week.daily_counts == (3, 1, 0, 0, 0, 0)
