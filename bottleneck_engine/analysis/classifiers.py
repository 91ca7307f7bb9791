"""Pairwise predicates that flag distant classrooms and large gaps."""

from __future__ import annotations

import re
from datetime import timedelta

from bottleneck_engine.analysis.grouping import as_utc
from bottleneck_engine.analysis.models import Lesson
from bottleneck_engine.config import AnalysisSettings

ONLINE_LOCATION_MARKER = "Дистанционно (СДО)"
GYM_SUMMARY_MARKER = "Физическая культура и спорт"
# Campus whose buildings form one cluster; moving inside it is never a bottleneck.
SHARED_CAMPUS = "(С-20)"

CAMPUS_BREAK_LIMIT = timedelta(minutes=90)
BUILDING_BREAK_LIMIT = timedelta(minutes=10)

_BUILDING_PATTERN = re.compile(r"[^-\s]+")
_CAMPUS_PATTERN = re.compile(r"(?<= )\(.+\)")


def lesson_break(lesson_a: Lesson, lesson_b: Lesson) -> timedelta:
  """Return the idle time between the end of ``lesson_a`` and the start of ``lesson_b``."""
  return as_utc(lesson_b.start_time) - as_utc(lesson_a.end_time)


def building_of(location: str) -> str:
  """Leading run of characters that are neither whitespace nor hyphens."""
  match = _BUILDING_PATTERN.search(location)
  return match.group(0) if match else ""


def campus_of(location: str) -> str:
  """Parenthesized suffix following a space, e.g. ``(ИВЦ)``."""
  match = _CAMPUS_PATTERN.search(location)
  return match.group(0) if match else ""


def is_online(lesson: Lesson) -> bool:
  return ONLINE_LOCATION_MARKER in lesson.location


def is_gym(lesson: Lesson) -> bool:
  return GYM_SUMMARY_MARKER in lesson.summary


def is_distant_classroom(lesson_a: Lesson, lesson_b: Lesson, settings: AnalysisSettings) -> bool:
  """Decide whether the break is too short to move between the two classrooms.

  Different campuses tolerate a break up to 90 minutes; with
  ``ignore_different_buildings`` enabled, different buildings on one campus
  tolerate up to 10 minutes.
  """
  if settings.ignore_online_classes and (is_online(lesson_a) or is_online(lesson_b)):
    return False

  if settings.ignore_gym_classes and (is_gym(lesson_a) or is_gym(lesson_b)):
    return False

  campus_a = campus_of(lesson_a.location)
  campus_b = campus_of(lesson_b.location)

  if campus_a == SHARED_CAMPUS and campus_b == SHARED_CAMPUS:
    return False

  break_duration = lesson_break(lesson_a, lesson_b)

  if break_duration <= CAMPUS_BREAK_LIMIT and campus_a != campus_b:
    return True

  if not settings.ignore_different_buildings:
    return False

  return break_duration <= BUILDING_BREAK_LIMIT and building_of(lesson_a.location) != building_of(lesson_b.location)


def is_large_gap(lesson_a: Lesson, lesson_b: Lesson, settings: AnalysisSettings) -> bool:
  """Decide whether two same-day lessons leave an idle gap of at least ``max_gap_hours``."""
  if settings.ignore_online_classes and (is_online(lesson_a) or is_online(lesson_b)):
    return False

  # Days are compared by day of month only, so a pair exactly one month apart counts as same-day.
  if as_utc(lesson_a.start_time).day != as_utc(lesson_b.start_time).day:
    return False

  return lesson_break(lesson_a, lesson_b) >= timedelta(hours=settings.max_gap_hours)
