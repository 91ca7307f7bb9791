"""Job bodies: fetch a schedule, analyse it when it changed, and hydrate the findings."""

from __future__ import annotations

import logging
from collections.abc import Callable

from bottleneck_engine.analysis.engine import BottleneckAnalyzer
from bottleneck_engine.analysis.models import Bottlenecks, Lesson, Target, TargetKind
from bottleneck_engine.api.models import HydratedBottlenecks, HydratedSearchResult, SearchTargetPayload
from bottleneck_engine.core.errors import JobProcessingError, ScheduleFetchError
from bottleneck_engine.services.calendar import parse_lessons
from bottleneck_engine.services.hydrate import hydrate_bottlenecks
from bottleneck_engine.services.schedule_client import ScheduleSource, SearchTarget
from bottleneck_engine.storage.schedule_repo import ScheduleRepository
from bottleneck_engine.utils.checksum import generate_checksum

logger = logging.getLogger(__name__)

CalendarParser = Callable[[str], list[Lesson]]


class ScheduleProcessor:
  """Run analysis and search requests against the remote API and persistence."""

  def __init__(self, repository: ScheduleRepository, source: ScheduleSource, analyzer: BottleneckAnalyzer, *, do_checksum_check: bool = True, parser: CalendarParser = parse_lessons) -> None:
    self._repository = repository
    self._source = source
    self._analyzer = analyzer
    self._do_checksum_check = do_checksum_check
    self._parser = parser

  async def process_analysis(self, target_kind: TargetKind, remote_id: int) -> HydratedBottlenecks:
    """Analyse one target, reusing stored bottlenecks when its calendar is unchanged."""
    target = await self._repository.get_or_create_target(target_kind, remote_id)

    calendar = await self._source.fetch_calendar(target)
    if calendar is None:
      raise JobProcessingError(f"No calendar returned for {target_kind.name.lower()} {remote_id}")

    checksum = generate_checksum(calendar)
    if self._do_checksum_check and checksum == await self._repository.get_checksum(target):
      logger.info("Calendar unchanged for target_id=%s; reusing stored bottlenecks", target.id)
      stored = await self._repository.list_bottlenecks(target)
      return await hydrate_bottlenecks(stored, repository=self._repository)

    return await self._reanalyse(target, calendar, checksum)

  async def _reanalyse(self, target: Target, calendar: str, checksum: str) -> HydratedBottlenecks:
    # Replace everything derived from the previous calendar.
    await self._repository.clear_bottlenecks(target)
    await self._repository.clear_lessons(target)

    lessons = await self._repository.add_lessons(target, self._parser(calendar))
    bottlenecks: Bottlenecks = self._analyzer.analyze(lessons)
    await self._repository.add_bottlenecks(target, bottlenecks)
    await self._repository.set_checksum(target, checksum)

    logger.info(
      "Analysed target_id=%s lessons=%s distant=%s gaps=%s weeks=%s",
      target.id,
      len(lessons),
      len(bottlenecks.distant_classrooms),
      len(bottlenecks.large_gaps),
      len(bottlenecks.unbalanced_weeks),
    )
    return await hydrate_bottlenecks(bottlenecks, lessons=lessons)

  async def process_search(self, limit: int | None = None, match: str | None = None, page_token: str | None = None) -> HydratedSearchResult:
    """Search the remote API and analyse every hit in order."""
    result = await self._source.fetch_targets(limit=limit, match=match, page_token=page_token)
    if result is None:
      raise JobProcessingError(f"No search results returned for limit={limit} match={match!r} page_token={page_token!r}")

    targets = [await self._search_target(found) for found in result.targets]
    return HydratedSearchResult(targets=targets, next_page_token=result.next_page_token)

  async def _search_target(self, found: SearchTarget) -> SearchTargetPayload:
    bottlenecks = HydratedBottlenecks()

    try:
      target_kind = TargetKind(found.target_kind)
    except ValueError:
      logger.info("Skipping analysis of search hit %r with unknown target kind %s", found.name, found.target_kind)
    else:
      try:
        bottlenecks = await self.process_analysis(target_kind, found.remote_id)
      except (JobProcessingError, ScheduleFetchError):
        # An unreachable schedule degrades to no findings; any other failure fails the search.
        logger.warning("Analysis failed for search hit kind=%s remote_id=%s", found.target_kind, found.remote_id, exc_info=True)

    return SearchTargetPayload(name=found.name, target_kind=found.target_kind, remote_id=found.remote_id, bottlenecks=bottlenecks)
