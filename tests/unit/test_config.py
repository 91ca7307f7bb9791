"""Unit tests for environment-driven settings."""

from __future__ import annotations

import os

import pytest

from bottleneck_engine.config import AnalysisSettings, get_settings, load_analysis_settings
from bottleneck_engine.utils.checksum import generate_checksum
from bottleneck_engine.utils.env import load_env_file


@pytest.fixture(autouse=True)
def _fresh_settings():
  get_settings.cache_clear()
  yield
  get_settings.cache_clear()


def test_analysis_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
  for name in ("BOTTLENECK_MAX_GAP_HOURS", "BOTTLENECK_MAX_RANGE_OF_LESSONS_PER_DAY", "BOTTLENECK_IGNORE_ONLINE_CLASSES", "BOTTLENECK_IGNORE_GYM_CLASSES", "BOTTLENECK_IGNORE_DIFFERENT_BUILDINGS"):
    monkeypatch.delenv(name, raising=False)

  assert load_analysis_settings() == AnalysisSettings()


def test_analysis_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setenv("BOTTLENECK_MAX_GAP_HOURS", "2.5")
  monkeypatch.setenv("BOTTLENECK_MAX_RANGE_OF_LESSONS_PER_DAY", "1")
  monkeypatch.setenv("BOTTLENECK_IGNORE_DIFFERENT_BUILDINGS", "true")
  monkeypatch.setenv("BOTTLENECK_IGNORE_GYM_CLASSES", "0")

  settings = load_analysis_settings()

  assert settings.max_gap_hours == 2.5
  assert settings.max_range_of_lessons_per_day == 1
  assert settings.ignore_different_buildings is True
  assert settings.ignore_gym_classes is False


def test_checksum_check_can_be_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setenv("BOTTLENECK_DO_CHECKSUM_CHECK", "false")

  assert get_settings().do_checksum_check is False


@pytest.mark.parametrize(
  ("name", "value"),
  [
    ("BOTTLENECK_ALLOWED_ORIGINS", "*"),
    ("BOTTLENECK_SCHEDULE_URL", "https://schedule.test/ical/{remote_id}"),
    ("BOTTLENECK_SEARCH_URL", "ftp://schedule.test/search"),
    ("BOTTLENECK_FETCH_TIMEOUT_SECONDS", "0"),
    ("BOTTLENECK_JOB_TIMEOUT_SECONDS", "-1"),
  ],
)
def test_invalid_values_are_rejected(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
  monkeypatch.setenv(name, value)

  with pytest.raises(ValueError, match=name):
    get_settings()


def test_load_env_file_keeps_existing_values(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
  env_file = tmp_path / ".env"
  env_file.write_text("# comment\nexport BOTTLENECK_TEST_A='from file'\nBOTTLENECK_TEST_B=from file\n", encoding="utf-8")
  # Register the variable with monkeypatch so it is removed again after the test.
  monkeypatch.setenv("BOTTLENECK_TEST_A", "placeholder")
  monkeypatch.delenv("BOTTLENECK_TEST_A")
  monkeypatch.setenv("BOTTLENECK_TEST_B", "from env")

  load_env_file(env_file)

  assert os.environ["BOTTLENECK_TEST_A"] == "from file"
  assert os.environ["BOTTLENECK_TEST_B"] == "from env"


def test_checksum_is_md5_formatted_as_uuid() -> None:
  # md5("") = d41d8cd98f00b204e9800998ecf8427e
  assert generate_checksum("") == "d41d8cd9-8f00-b204-e980-0998ecf8427e"
  assert generate_checksum("BEGIN:VCALENDAR") == generate_checksum("BEGIN:VCALENDAR")
  assert generate_checksum("a") != generate_checksum("b")
