"""Shared fixtures for unit and integration tests."""

from __future__ import annotations

import os
from datetime import UTC, datetime
from itertools import count
from unittest.mock import MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

# Ensure required settings are available before importing the app.
os.environ.setdefault("BOTTLENECK_ALLOWED_ORIGINS", "http://localhost")

from bottleneck_engine.analysis.models import Lesson  # noqa: E402
from bottleneck_engine.api.deps import get_job_service  # noqa: E402
from bottleneck_engine.main import app  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture
def make_lesson():
  """Build stored lessons with sequential ids under one target."""
  ids = count(1)

  def _make(start: datetime, location: str = "А-301 (В-78)", summary: str = "Математический анализ", *, target_id: int | None = 1, lesson_id: int | None = None) -> Lesson:
    if start.tzinfo is None:
      start = start.replace(tzinfo=UTC)
    return Lesson(location=location, summary=summary, start_time=start, id=lesson_id if lesson_id is not None else next(ids), target_id=target_id)

  return _make


@pytest.fixture
def mock_job_service():
  return MagicMock()


@pytest.fixture
async def async_client(mock_job_service):
  app.dependency_overrides[get_job_service] = lambda: mock_job_service
  async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
    yield client
  app.dependency_overrides.clear()
