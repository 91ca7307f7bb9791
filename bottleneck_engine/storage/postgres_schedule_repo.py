"""Postgres-backed repository for schedule persistence using SQLAlchemy."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bottleneck_engine.analysis.models import Bottleneck, Bottlenecks, DistantClassroom, LargeGap, Lesson, Target, TargetKind, UnbalancedWeek
from bottleneck_engine.core.database import get_session_factory
from bottleneck_engine.schema import sql
from bottleneck_engine.storage.schedule_repo import ScheduleRepository

logger = logging.getLogger(__name__)

_BOTTLENECK_TABLES = (sql.DistantClassroom, sql.LargeGap, sql.UnbalancedWeek)


def _to_target(row: sql.Target) -> Target:
  return Target(id=row.id, target_kind=TargetKind(row.target_kind), remote_id=row.remote_id, checksum=row.checksum)


def _to_lesson(row: sql.Lesson) -> Lesson:
  return Lesson(id=row.id, target_id=row.target_id, location=row.location, summary=row.summary, start_time=row.start_time)


def _to_distant_classroom(row: sql.DistantClassroom) -> DistantClassroom:
  return DistantClassroom(id=row.id, target_id=row.target_id, lesson_a=row.lesson_a, lesson_b=row.lesson_b, start_time=row.start_time)


def _to_large_gap(row: sql.LargeGap) -> LargeGap:
  return LargeGap(id=row.id, target_id=row.target_id, lesson_a=row.lesson_a, lesson_b=row.lesson_b, start_time=row.start_time)


def _to_unbalanced_week(row: sql.UnbalancedWeek) -> UnbalancedWeek:
  return UnbalancedWeek(id=row.id, target_id=row.target_id, week_start=row.week_start, daily_counts=tuple(row.daily_counts))


class PostgresScheduleRepository(ScheduleRepository):
  """Persist targets, lessons and bottlenecks to Postgres using SQLAlchemy."""

  def __init__(self) -> None:
    self._session_factory = get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def _resolve_target_id(self, session: AsyncSession, target: Target) -> int | None:
    """Resolve a target's internal id, looking it up by kind and remote id when needed."""
    if target.id is not None:
      return target.id
    stmt = select(sql.Target.id).where(sql.Target.target_kind == int(target.target_kind), sql.Target.remote_id == target.remote_id)
    return (await session.execute(stmt)).scalar_one_or_none()

  async def _require_target_id(self, session: AsyncSession, target: Target) -> int:
    target_id = await self._resolve_target_id(session, target)
    if target_id is None:
      raise LookupError(f"Target {target.target_kind.name.lower()} {target.remote_id} is not stored")
    return target_id

  async def find_target(self, target_kind: TargetKind, remote_id: int) -> Target | None:
    async with self._session_factory() as session:
      stmt = select(sql.Target).where(sql.Target.target_kind == int(target_kind), sql.Target.remote_id == remote_id)
      row = (await session.execute(stmt)).scalar_one_or_none()
      return _to_target(row) if row is not None else None

  async def get_target(self, target_id: int) -> Target | None:
    async with self._session_factory() as session:
      row = await session.get(sql.Target, target_id)
      return _to_target(row) if row is not None else None

  async def get_or_create_target(self, target_kind: TargetKind, remote_id: int) -> Target:
    existing = await self.find_target(target_kind, remote_id)
    if existing is not None:
      return existing

    async with self._session_factory() as session:
      row = sql.Target(target_kind=int(target_kind), remote_id=remote_id)
      session.add(row)
      try:
        await session.commit()
      except IntegrityError:
        # A concurrent insert won the unique (target_kind, remote_id) race.
        await session.rollback()
        logger.debug("Target %s/%s inserted concurrently; reusing stored row", int(target_kind), remote_id)
      else:
        logger.info("Created target id=%s kind=%s remote_id=%s", row.id, int(target_kind), remote_id)
        return _to_target(row)

    stored = await self.find_target(target_kind, remote_id)
    if stored is None:
      raise RuntimeError(f"Target {int(target_kind)}/{remote_id} vanished after a conflicting insert")
    return stored

  async def get_checksum(self, target: Target) -> str | None:
    async with self._session_factory() as session:
      target_id = await self._resolve_target_id(session, target)
      if target_id is None:
        return None
      stmt = select(sql.Target.checksum).where(sql.Target.id == target_id)
      return (await session.execute(stmt)).scalar_one_or_none()

  async def set_checksum(self, target: Target, checksum: str) -> Target:
    async with self._session_factory() as session:
      target_id = await self._require_target_id(session, target)
      stmt = update(sql.Target).where(sql.Target.id == target_id).values(checksum=checksum).returning(sql.Target)
      row = (await session.execute(stmt)).scalar_one()
      await session.commit()
      return _to_target(row)

  async def delete_target(self, target: Target) -> None:
    async with self._session_factory() as session:
      target_id = await self._resolve_target_id(session, target)
      if target_id is None:
        return
      # Bottlenecks reference lessons, so they go first.
      for table in _BOTTLENECK_TABLES:
        await session.execute(delete(table).where(table.target_id == target_id))
      await session.execute(delete(sql.Lesson).where(sql.Lesson.target_id == target_id))
      await session.execute(delete(sql.Target).where(sql.Target.id == target_id))
      await session.commit()

  async def list_lessons(self, target: Target) -> list[Lesson]:
    async with self._session_factory() as session:
      target_id = await self._resolve_target_id(session, target)
      if target_id is None:
        return []
      stmt = select(sql.Lesson).where(sql.Lesson.target_id == target_id).order_by(sql.Lesson.start_time.asc(), sql.Lesson.id.asc())
      rows = (await session.execute(stmt)).scalars().all()
      return [_to_lesson(row) for row in rows]

  async def get_lesson(self, target: Target, lesson_id: int) -> Lesson | None:
    async with self._session_factory() as session:
      target_id = await self._resolve_target_id(session, target)
      if target_id is None:
        return None
      stmt = select(sql.Lesson).where(sql.Lesson.target_id == target_id, sql.Lesson.id == lesson_id)
      row = (await session.execute(stmt)).scalar_one_or_none()
      return _to_lesson(row) if row is not None else None

  async def add_lessons(self, target: Target, lessons: Sequence[Lesson]) -> list[Lesson]:
    async with self._session_factory() as session:
      target_id = await self._require_target_id(session, target)
      rows = [sql.Lesson(target_id=target_id, location=lesson.location, summary=lesson.summary, start_time=lesson.start_time) for lesson in lessons]
      session.add_all(rows)
      await session.flush()
      created = [_to_lesson(row) for row in rows]
      await session.commit()
      return created

  async def clear_lessons(self, target: Target) -> None:
    async with self._session_factory() as session:
      target_id = await self._resolve_target_id(session, target)
      if target_id is None:
        return
      await session.execute(delete(sql.Lesson).where(sql.Lesson.target_id == target_id))
      await session.commit()

  async def remove_lesson(self, lesson: Lesson) -> None:
    if lesson.id is None:
      return
    async with self._session_factory() as session:
      await session.execute(delete(sql.Lesson).where(sql.Lesson.id == lesson.id))
      await session.commit()

  async def list_bottlenecks(self, target: Target) -> Bottlenecks:
    async with self._session_factory() as session:
      target_id = await self._resolve_target_id(session, target)
      if target_id is None:
        return Bottlenecks()

      distant = (await session.execute(select(sql.DistantClassroom).where(sql.DistantClassroom.target_id == target_id).order_by(sql.DistantClassroom.start_time, sql.DistantClassroom.id))).scalars().all()
      gaps = (await session.execute(select(sql.LargeGap).where(sql.LargeGap.target_id == target_id).order_by(sql.LargeGap.start_time, sql.LargeGap.id))).scalars().all()
      weeks = (await session.execute(select(sql.UnbalancedWeek).where(sql.UnbalancedWeek.target_id == target_id).order_by(sql.UnbalancedWeek.week_start, sql.UnbalancedWeek.id))).scalars().all()

      return Bottlenecks(
        distant_classrooms=[_to_distant_classroom(row) for row in distant],
        large_gaps=[_to_large_gap(row) for row in gaps],
        unbalanced_weeks=[_to_unbalanced_week(row) for row in weeks],
      )

  async def add_bottlenecks(self, target: Target, bottlenecks: Bottlenecks) -> Bottlenecks:
    async with self._session_factory() as session:
      target_id = await self._require_target_id(session, target)

      distant = [sql.DistantClassroom(target_id=target_id, lesson_a=item.lesson_a, lesson_b=item.lesson_b, start_time=item.start_time) for item in bottlenecks.distant_classrooms]
      gaps = [sql.LargeGap(target_id=target_id, lesson_a=item.lesson_a, lesson_b=item.lesson_b, start_time=item.start_time) for item in bottlenecks.large_gaps]
      weeks = [sql.UnbalancedWeek(target_id=target_id, week_start=item.week_start, daily_counts=list(item.daily_counts)) for item in bottlenecks.unbalanced_weeks]

      session.add_all([*distant, *gaps, *weeks])
      await session.flush()
      created = Bottlenecks(
        distant_classrooms=[_to_distant_classroom(row) for row in distant],
        large_gaps=[_to_large_gap(row) for row in gaps],
        unbalanced_weeks=[_to_unbalanced_week(row) for row in weeks],
      )
      await session.commit()
      return created

  async def clear_bottlenecks(self, target: Target) -> None:
    async with self._session_factory() as session:
      target_id = await self._resolve_target_id(session, target)
      if target_id is None:
        return
      for table in _BOTTLENECK_TABLES:
        await session.execute(delete(table).where(table.target_id == target_id))
      await session.commit()

  async def remove_bottleneck(self, bottleneck: Bottleneck) -> None:
    if bottleneck.id is None:
      return
    table = {DistantClassroom: sql.DistantClassroom, LargeGap: sql.LargeGap, UnbalancedWeek: sql.UnbalancedWeek}[type(bottleneck)]
    async with self._session_factory() as session:
      await session.execute(delete(table).where(table.id == bottleneck.id))
      await session.commit()
