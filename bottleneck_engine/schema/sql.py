from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from bottleneck_engine.core.database import Base


class Target(Base):
  __tablename__ = "targets"
  __table_args__ = (UniqueConstraint("target_kind", "remote_id", name="ux_targets_kind_remote_id"),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  target_kind: Mapped[int] = mapped_column(Integer, nullable=False)
  remote_id: Mapped[int] = mapped_column(Integer, nullable=False)
  checksum: Mapped[str | None] = mapped_column(String(36), nullable=True)


class Lesson(Base):
  __tablename__ = "lessons"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  target_id: Mapped[int] = mapped_column(ForeignKey("targets.id", ondelete="CASCADE"), nullable=False, index=True)
  location: Mapped[str] = mapped_column(Text, nullable=False)
  summary: Mapped[str] = mapped_column(Text, nullable=False)
  start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class DistantClassroom(Base):
  __tablename__ = "distant_classrooms"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  target_id: Mapped[int] = mapped_column(ForeignKey("targets.id", ondelete="CASCADE"), nullable=False, index=True)
  lesson_a: Mapped[int] = mapped_column(ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
  lesson_b: Mapped[int] = mapped_column(ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
  start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class LargeGap(Base):
  __tablename__ = "large_gaps"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  target_id: Mapped[int] = mapped_column(ForeignKey("targets.id", ondelete="CASCADE"), nullable=False, index=True)
  lesson_a: Mapped[int] = mapped_column(ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
  lesson_b: Mapped[int] = mapped_column(ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
  start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class UnbalancedWeek(Base):
  __tablename__ = "unbalanced_weeks"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  target_id: Mapped[int] = mapped_column(ForeignKey("targets.id", ondelete="CASCADE"), nullable=False, index=True)
  week_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
  daily_counts: Mapped[list[int]] = mapped_column(ARRAY(Integer), nullable=False)
