"""Bottleneck aggregator composing the pairwise classifiers and the week balancer."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TypeVar

from bottleneck_engine.analysis.balance import is_unbalanced, week_balance
from bottleneck_engine.analysis.classifiers import is_distant_classroom, is_large_gap
from bottleneck_engine.analysis.grouping import arrange_into_pairs, arrange_into_weeks, week_start
from bottleneck_engine.analysis.models import Bottlenecks, DistantClassroom, LargeGap, Lesson, LessonPair, UnbalancedWeek
from bottleneck_engine.config import AnalysisSettings
from bottleneck_engine.core.errors import BottleneckContractError

logger = logging.getLogger(__name__)

PairPredicate = Callable[[Lesson, Lesson, AnalysisSettings], bool]
PairBottleneck = TypeVar("PairBottleneck", DistantClassroom, LargeGap)


def _pair_bottleneck(pair: LessonPair, bottleneck_type: type[PairBottleneck]) -> PairBottleneck:
  """Build a pair bottleneck, enforcing that both lessons are stored under one target."""
  lesson_a, lesson_b = pair

  if lesson_a.target_id is None or lesson_b.target_id is None:
    raise BottleneckContractError("Both lessons must have a defined target to construct a bottleneck")
  if lesson_a.target_id != lesson_b.target_id:
    raise BottleneckContractError("Both lessons must have the same target")
  if lesson_a.id is None or lesson_b.id is None:
    raise BottleneckContractError("A lesson must have a defined id to construct a bottleneck")

  return bottleneck_type(target_id=lesson_a.target_id, lesson_a=lesson_a.id, lesson_b=lesson_b.id, start_time=lesson_a.start_time)


def _unbalanced_week(week: Sequence[Lesson], counts: tuple[int, ...]) -> UnbalancedWeek:
  """Build an unbalanced week, enforcing that every lesson is stored under one target."""
  if any(lesson.target_id is None for lesson in week):
    raise BottleneckContractError("All lessons in a week must have defined targets to construct a bottleneck")

  target_id = week[0].target_id
  if any(lesson.target_id != target_id for lesson in week):
    raise BottleneckContractError("All lessons in a week must share the same target to construct a bottleneck")

  return UnbalancedWeek(target_id=target_id, week_start=week_start(week[0].start_time), daily_counts=counts)


class BottleneckAnalyzer:
  """Turn one target's lessons into classified bottleneck findings."""

  def __init__(self, settings: AnalysisSettings) -> None:
    self._settings = settings

  @property
  def settings(self) -> AnalysisSettings:
    return self._settings

  def analyze(self, lessons: Sequence[Lesson]) -> Bottlenecks:
    """Run both pairwise classifiers over one pairing and the week balancer once."""
    pairs = arrange_into_pairs(lessons)
    bottlenecks = Bottlenecks(
      distant_classrooms=self._classify_pairs(pairs, is_distant_classroom, DistantClassroom),
      large_gaps=self._classify_pairs(pairs, is_large_gap, LargeGap),
      unbalanced_weeks=self.find_unbalanced_weeks(lessons),
    )
    logger.debug(
      "Analyzed %d lessons (%d pairs): distant_classrooms=%d large_gaps=%d unbalanced_weeks=%d",
      len(lessons),
      len(pairs),
      len(bottlenecks.distant_classrooms),
      len(bottlenecks.large_gaps),
      len(bottlenecks.unbalanced_weeks),
    )
    return bottlenecks

  def find_distant_classrooms(self, lessons: Sequence[Lesson]) -> list[DistantClassroom]:
    return self._classify_pairs(arrange_into_pairs(lessons), is_distant_classroom, DistantClassroom)

  def find_large_gaps(self, lessons: Sequence[Lesson]) -> list[LargeGap]:
    return self._classify_pairs(arrange_into_pairs(lessons), is_large_gap, LargeGap)

  def find_unbalanced_weeks(self, lessons: Sequence[Lesson]) -> list[UnbalancedWeek]:
    """Flag weeks whose non-empty weekday counts spread wider than the configured range."""
    max_range = self._settings.max_range_of_lessons_per_day
    bottlenecks: list[UnbalancedWeek] = []

    for week in arrange_into_weeks(lessons):
      counts = week_balance(week)
      if is_unbalanced(counts, max_range):
        bottlenecks.append(_unbalanced_week(week, counts))

    return bottlenecks

  def _classify_pairs(self, pairs: Sequence[LessonPair], predicate: PairPredicate, bottleneck_type: type[PairBottleneck]) -> list[PairBottleneck]:
    return [_pair_bottleneck(pair, bottleneck_type) for pair in pairs if predicate(pair[0], pair[1], self._settings)]
