"""Unit tests for the remote schedule API client."""

from __future__ import annotations

from dataclasses import replace

import httpx
import pytest

from bottleneck_engine.analysis.models import Target, TargetKind
from bottleneck_engine.config import get_settings
from bottleneck_engine.core.errors import ScheduleFetchError
from bottleneck_engine.services.schedule_client import ScheduleClient, SearchTarget

SETTINGS = replace(get_settings(), schedule_url="https://schedule.test/ical/{target_kind}/{remote_id}", search_url="https://schedule.test/search")


@pytest.mark.anyio
async def test_fetch_calendar_formats_url_from_target() -> None:
  seen: list[httpx.Request] = []

  def _handler(request: httpx.Request) -> httpx.Response:
    seen.append(request)
    return httpx.Response(200, text="BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n")

  async with ScheduleClient(SETTINGS, transport=httpx.MockTransport(_handler)) as client:
    calendar = await client.fetch_calendar(Target(target_kind=TargetKind.INSTRUCTOR, remote_id=321))

  assert calendar.startswith("BEGIN:VCALENDAR")
  assert str(seen[0].url) == "https://schedule.test/ical/2/321"
  assert seen[0].headers["accept"] == "text/calendar"


@pytest.mark.anyio
async def test_fetch_calendar_returns_none_on_http_error() -> None:
  transport = httpx.MockTransport(lambda request: httpx.Response(404))

  async with ScheduleClient(SETTINGS, transport=transport) as client:
    assert await client.fetch_calendar(Target(target_kind=TargetKind.GROUP, remote_id=1)) is None


@pytest.mark.anyio
async def test_transport_failure_raises_fetch_error() -> None:
  def _handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)

  async with ScheduleClient(SETTINGS, transport=httpx.MockTransport(_handler)) as client:
    with pytest.raises(ScheduleFetchError):
      await client.fetch_calendar(Target(target_kind=TargetKind.GROUP, remote_id=1))


@pytest.mark.anyio
async def test_fetch_targets_sends_only_given_params_and_parses_page() -> None:
  seen: list[httpx.Request] = []
  payload = {"data": [{"fullTitle": "ИКБО-01-23", "scheduleTarget": 1, "id": 10}, {"fullTitle": "Иванов И.И.", "scheduleTarget": 2, "id": 20}], "nextPageToken": "abc"}

  def _handler(request: httpx.Request) -> httpx.Response:
    seen.append(request)
    return httpx.Response(200, json=payload)

  async with ScheduleClient(SETTINGS, transport=httpx.MockTransport(_handler)) as client:
    result = await client.fetch_targets(match="И", page_token="xyz")

  assert dict(seen[0].url.params) == {"match": "И", "pageToken": "xyz"}
  assert result.targets == [SearchTarget(name="ИКБО-01-23", target_kind=1, remote_id=10), SearchTarget(name="Иванов И.И.", target_kind=2, remote_id=20)]
  assert result.next_page_token == "abc"


@pytest.mark.anyio
async def test_fetch_targets_returns_none_on_http_error() -> None:
  async with ScheduleClient(SETTINGS, transport=httpx.MockTransport(lambda request: httpx.Response(500))) as client:
    assert await client.fetch_targets(limit=5) is None


@pytest.mark.anyio
async def test_fetch_targets_rejects_malformed_entries() -> None:
  transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"data": [{"fullTitle": "no id"}]}))

  async with ScheduleClient(SETTINGS, transport=transport) as client:
    with pytest.raises(ScheduleFetchError):
      await client.fetch_targets()
