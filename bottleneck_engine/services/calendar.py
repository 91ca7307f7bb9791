"""iCalendar parsing into lessons, with recurrence expansion."""

from __future__ import annotations

import itertools
import logging
import re
from collections.abc import Iterator
from datetime import UTC, date, datetime, time
from typing import Any

import icalendar
from dateutil.rrule import rrulestr

from bottleneck_engine.analysis.grouping import as_utc
from bottleneck_engine.analysis.models import Lesson
from bottleneck_engine.core.errors import CalendarParseError

logger = logging.getLogger(__name__)

# The remote API omits DTSTART inside VTIMEZONE/STANDARD; an epoch start makes the rule usable.
STANDARD_FALLBACK_START = "DTSTART:19700101T000000"
# Upper bound on occurrences per event so an open-ended RRULE cannot expand forever.
MAX_OCCURRENCES = 20_000

_STANDARD_BLOCK = re.compile(r"BEGIN:STANDARD\r?\n(.*?)END:STANDARD", re.DOTALL)


def _patch_timezones(text: str) -> str:
  """Give STANDARD timezone rules without DTSTART a fallback start."""

  def _patch(match: re.Match[str]) -> str:
    block = match.group(0)
    if re.search(r"^DTSTART", match.group(1), re.MULTILINE):
      return block
    newline = "\r\n" if "\r\n" in block else "\n"
    return block.replace("BEGIN:STANDARD" + newline, "BEGIN:STANDARD" + newline + STANDARD_FALLBACK_START + newline, 1)

  return _STANDARD_BLOCK.sub(_patch, text)


def _as_list(value: Any) -> list[Any]:
  if value is None:
    return []
  if isinstance(value, list):
    return value
  return [value]


def _to_datetime(value: date | datetime) -> datetime:
  # All-day values start at midnight UTC.
  if isinstance(value, date) and not isinstance(value, datetime):
    return datetime.combine(value, time.min, tzinfo=UTC)
  return value


def _date_values(event: icalendar.Event, name: str) -> list[datetime]:
  """Collect every date/datetime of a multi-valued property such as EXDATE or RDATE."""
  values: list[datetime] = []
  for prop in _as_list(event.get(name)):
    for item in prop.dts:
      # RDATE periods are (start, end) tuples; only the start matters.
      moment = item.dt[0] if isinstance(item.dt, tuple) else item.dt
      values.append(_to_datetime(moment))
  return values


def _recurrence_id(event: icalendar.Event) -> datetime | None:
  if event.get("RECURRENCE-ID") is None:
    return None
  return as_utc(_to_datetime(event.decoded("RECURRENCE-ID")))


def _local_until(rule: icalendar.vRecur, start: datetime) -> datetime | None:
  """Return the rule's UNTIL as naive wall-clock time in the zone of ``start``, if it carries a zone."""
  until = next(iter(_as_list(rule.get("UNTIL"))), None)
  if not isinstance(until, datetime) or until.tzinfo is None or start.tzinfo is None:
    return None
  return until.astimezone(start.tzinfo).replace(tzinfo=None)


def _expand(event: icalendar.Event) -> Iterator[datetime]:
  """Yield every start of ``event``: DTSTART, RRULE occurrences and RDATEs, minus EXDATEs."""
  start = _to_datetime(event.decoded("DTSTART"))
  rules = _as_list(event.get("RRULE"))

  starts: list[datetime] = [start]
  if rules:
    # Expand in the event's wall-clock time so DST shifts keep the local hour.
    naive_start = start.replace(tzinfo=None)
    occurrences: list[datetime] = []
    for rule in rules:
      try:
        expanded = rrulestr(rule.to_ical().decode("utf-8"), dtstart=naive_start, ignoretz=True)
      except ValueError as exc:
        raise CalendarParseError(f"Invalid RRULE on event {event.get('UID')}: {exc}") from exc
      # ignoretz reads a UTC UNTIL as wall-clock time; shift it into the event's zone.
      until = _local_until(rule, start)
      if until is not None:
        expanded = expanded.replace(until=until)
      limited = list(itertools.islice(expanded, MAX_OCCURRENCES + 1))
      if len(limited) > MAX_OCCURRENCES:
        logger.warning("Event %s expands to more than %d occurrences; truncating", event.get("UID"), MAX_OCCURRENCES)
        limited = limited[:MAX_OCCURRENCES]
      occurrences.extend(moment.replace(tzinfo=start.tzinfo) for moment in limited)
    starts = occurrences

  excluded = {as_utc(moment) for moment in _date_values(event, "EXDATE")}
  seen: set[datetime] = set()
  for moment in itertools.chain(starts, _date_values(event, "RDATE")):
    instant = as_utc(moment)
    if instant in excluded or instant in seen:
      continue
    seen.add(instant)
    yield instant


def _lesson(event: icalendar.Event, start_time: datetime) -> Lesson:
  return Lesson(location=str(event.get("LOCATION")), summary=str(event.get("SUMMARY", "")), start_time=start_time)


def parse_lessons(text: str) -> list[Lesson]:
  """Extract every located event occurrence as a lesson, sorted by start time.

  Occurrences replaced by a RECURRENCE-ID override are taken from the override.
  """
  try:
    calendar = icalendar.Calendar.from_ical(_patch_timezones(text))
  except (ValueError, KeyError) as exc:
    raise CalendarParseError(f"Calendar document is not valid iCalendar: {exc}") from exc

  events = calendar.walk("VEVENT")
  overridden = {(str(event.get("UID")), recurrence_id) for event in events if (recurrence_id := _recurrence_id(event)) is not None}

  lessons: list[Lesson] = []
  for event in events:
    # Events without a location are not lessons.
    if event.get("LOCATION") is None or event.get("DTSTART") is None:
      continue

    uid = str(event.get("UID"))
    if _recurrence_id(event) is not None:
      lessons.append(_lesson(event, as_utc(_to_datetime(event.decoded("DTSTART")))))
      continue

    lessons.extend(_lesson(event, start) for start in _expand(event) if (uid, start) not in overridden)

  lessons.sort(key=lambda lesson: lesson.start_time)
  logger.debug("Parsed %d lessons from %d events", len(lessons), len(events))
  return lessons
