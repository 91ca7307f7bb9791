"""Resolve stored bottleneck references into presentation payloads."""

from __future__ import annotations

from collections.abc import Sequence

from bottleneck_engine.analysis.models import Bottlenecks, DistantClassroom, LargeGap, Lesson, UnbalancedWeek
from bottleneck_engine.api.models import HydratedBottlenecks, LessonPayload, PairBottleneckPayload, UnbalancedWeekPayload
from bottleneck_engine.core.errors import BottleneckContractError
from bottleneck_engine.storage.schedule_repo import ScheduleRepository


def _lesson_payload(lesson: Lesson) -> LessonPayload:
  stripped = lesson.stripped()
  return LessonPayload(location=stripped.location, summary=stripped.summary, start_time=stripped.start_time)


def _week_payload(week: UnbalancedWeek) -> UnbalancedWeekPayload:
  return UnbalancedWeekPayload(week_start=week.week_start, daily_counts=list(week.daily_counts))


class _LessonResolver:
  """Look lessons up in a local list first, or in the repository when no list was given."""

  def __init__(self, lessons: Sequence[Lesson] | None, repository: ScheduleRepository | None) -> None:
    if lessons is None and repository is None:
      raise ValueError("Hydration requires either the analysed lessons or a repository")
    self._by_id = {lesson.id: lesson for lesson in lessons} if lessons is not None else None
    self._repository = repository

  async def resolve(self, target_id: int, lesson_id: int) -> Lesson:
    if self._by_id is not None:
      lesson = self._by_id.get(lesson_id)
      if lesson is None or lesson.target_id != target_id:
        raise BottleneckContractError(f"Lesson {lesson_id} of target {target_id} is not among the analysed lessons")
      return lesson

    target = await self._repository.get_target(target_id)
    if target is None:
      raise BottleneckContractError(f"Target {target_id} referenced by a bottleneck does not exist")

    lesson = await self._repository.get_lesson(target, lesson_id)
    if lesson is None:
      raise BottleneckContractError(f"Lesson {lesson_id} of target {target_id} does not exist")
    return lesson


async def _hydrate_pair(resolver: _LessonResolver, bottleneck: DistantClassroom | LargeGap) -> PairBottleneckPayload:
  lesson_a = await resolver.resolve(bottleneck.target_id, bottleneck.lesson_a)
  lesson_b = await resolver.resolve(bottleneck.target_id, bottleneck.lesson_b)
  return PairBottleneckPayload(lesson_a=_lesson_payload(lesson_a), lesson_b=_lesson_payload(lesson_b), start_time=bottleneck.start_time)


async def hydrate_bottlenecks(bottlenecks: Bottlenecks, *, lessons: Sequence[Lesson] | None = None, repository: ScheduleRepository | None = None) -> HydratedBottlenecks:
  """Replace lesson ids in pair bottlenecks with stripped lessons.

  ``lessons`` is used when the bottlenecks were just computed from it; otherwise
  every referenced lesson is loaded from ``repository``.
  """
  resolver = _LessonResolver(lessons, repository)

  return HydratedBottlenecks(
    distant_classrooms=[await _hydrate_pair(resolver, item) for item in bottlenecks.distant_classrooms],
    large_gaps=[await _hydrate_pair(resolver, item) for item in bottlenecks.large_gaps],
    unbalanced_weeks=[_week_payload(item) for item in bottlenecks.unbalanced_weeks],
  )
