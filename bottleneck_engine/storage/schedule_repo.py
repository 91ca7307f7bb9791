"""Storage interface for targets, lessons and bottlenecks."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from bottleneck_engine.analysis.models import Bottleneck, Bottlenecks, Lesson, Target, TargetKind


class ScheduleRepository(Protocol):
  """Repository contract for schedule persistence.

  Target-scoped methods accept a target identified by ``id`` or, when ``id`` is
  None, by ``(target_kind, remote_id)``.
  """

  async def find_target(self, target_kind: TargetKind, remote_id: int) -> Target | None:
    """Fetch a target by kind and remote id."""

  async def get_target(self, target_id: int) -> Target | None:
    """Fetch a target by internal id."""

  async def get_or_create_target(self, target_kind: TargetKind, remote_id: int) -> Target:
    """Return the stored target, inserting it without lessons when missing."""

  async def get_checksum(self, target: Target) -> str | None:
    """Return the checksum of the last analysed calendar."""

  async def set_checksum(self, target: Target, checksum: str) -> Target:
    """Store the checksum of the last analysed calendar."""

  async def delete_target(self, target: Target) -> None:
    """Delete a target with its lessons and bottlenecks."""

  async def list_lessons(self, target: Target) -> list[Lesson]:
    """Return a target's lessons ordered by start time."""

  async def get_lesson(self, target: Target, lesson_id: int) -> Lesson | None:
    """Fetch one of a target's lessons."""

  async def add_lessons(self, target: Target, lessons: Sequence[Lesson]) -> list[Lesson]:
    """Insert lessons and return them with ids and target assigned."""

  async def clear_lessons(self, target: Target) -> None:
    """Delete every lesson of a target."""

  async def remove_lesson(self, lesson: Lesson) -> None:
    """Delete one stored lesson."""

  async def list_bottlenecks(self, target: Target) -> Bottlenecks:
    """Return every stored bottleneck of a target."""

  async def add_bottlenecks(self, target: Target, bottlenecks: Bottlenecks) -> Bottlenecks:
    """Insert bottlenecks and return them with ids assigned."""

  async def clear_bottlenecks(self, target: Target) -> None:
    """Delete every bottleneck of a target."""

  async def remove_bottleneck(self, bottleneck: Bottleneck) -> None:
    """Delete one stored bottleneck."""
