"""Remote schedule API client built on httpx."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any, Protocol

import httpx
from bottleneck_engine.analysis.models import Target
from bottleneck_engine.config import Settings
from bottleneck_engine.core.errors import ScheduleFetchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchTarget:
  """One schedule owner found by the remote search."""

  name: str
  target_kind: int
  remote_id: int


@dataclass(frozen=True)
class SearchResult:
  """A page of remote search results."""

  targets: list[SearchTarget] = field(default_factory=list)
  next_page_token: str | None = None


class ScheduleSource(Protocol):
  """Contract for fetching calendars and search results from the remote API."""

  async def fetch_calendar(self, target: Target) -> str | None:
    """Return the target's calendar document, or None when the API has none."""

  async def fetch_targets(self, limit: int | None = None, match: str | None = None, page_token: str | None = None) -> SearchResult | None:
    """Return one page of search results, or None when the API rejects the query."""


def _parse_search_payload(payload: Any) -> SearchResult:
  """Map the remote search JSON onto SearchResult."""
  if not isinstance(payload, dict):
    raise ScheduleFetchError("Search response is not a JSON object")

  raw_targets = payload.get("data") or []
  if not isinstance(raw_targets, list):
    raise ScheduleFetchError("Search response field 'data' is not a list")

  try:
    targets = [SearchTarget(name=str(item["fullTitle"]), target_kind=int(item["scheduleTarget"]), remote_id=int(item["id"])) for item in raw_targets]
  except (KeyError, TypeError, ValueError) as exc:
    raise ScheduleFetchError(f"Malformed search result entry: {exc}") from exc

  next_page_token = payload.get("nextPageToken")
  return SearchResult(targets=targets, next_page_token=str(next_page_token) if next_page_token is not None else None)


class ScheduleClient(ScheduleSource):
  """Fetch iCalendar documents and search results from the remote schedule API."""

  def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
    self._settings = settings
    self._client = httpx.AsyncClient(timeout=settings.fetch_timeout_seconds, transport=transport, follow_redirects=True)

  async def __aenter__(self) -> ScheduleClient:
    return self

  async def __aexit__(self, exc_type: type[BaseException] | None, exc: BaseException | None, traceback: TracebackType | None) -> None:
    await self.aclose()

  async def aclose(self) -> None:
    await self._client.aclose()

  def calendar_url(self, target: Target) -> str:
    return self._settings.schedule_url.format(target_kind=int(target.target_kind), remote_id=target.remote_id)

  async def fetch_calendar(self, target: Target) -> str | None:
    """GET the target's iCalendar document."""
    url = self.calendar_url(target)
    try:
      response = await self._client.get(url, headers={"Accept": "text/calendar"})
    except httpx.RequestError as exc:
      logger.error("Failed to fetch calendar from %s: %s", url, exc)
      raise ScheduleFetchError(f"Failed to fetch calendar for {target.target_kind.name.lower()} {target.remote_id}") from exc

    if response.is_error:
      logger.warning("Calendar fetch returned %s for %s", response.status_code, url)
      return None

    return response.text

  async def fetch_targets(self, limit: int | None = None, match: str | None = None, page_token: str | None = None) -> SearchResult | None:
    """GET one page of search results, sending only the provided parameters."""
    params: dict[str, str | int] = {}
    if limit:
      params["limit"] = limit
    if match:
      params["match"] = match
    if page_token:
      params["pageToken"] = page_token

    try:
      response = await self._client.get(self._settings.search_url, params=params)
    except httpx.RequestError as exc:
      logger.error("Failed to query search endpoint %s: %s", self._settings.search_url, exc)
      raise ScheduleFetchError("Failed to query the remote search endpoint") from exc

    if response.is_error:
      logger.warning("Search returned %s for params=%s", response.status_code, params)
      return None

    try:
      payload = response.json()
    except ValueError as exc:
      raise ScheduleFetchError("Search response is not valid JSON") from exc

    return _parse_search_payload(payload)
