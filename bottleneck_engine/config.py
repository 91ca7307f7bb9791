"""Service configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from bottleneck_engine.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

_DEFAULT_SCHEDULE_URL = "https://schedule-of.mirea.ru/schedule/api/ical/{target_kind}/{remote_id}"
_DEFAULT_SEARCH_URL = "https://schedule-of.mirea.ru/schedule/api/search"


@dataclass(frozen=True)
class AnalysisSettings:
  """Thresholds for the bottleneck classifiers, passed to the analyzer explicitly."""

  ignore_online_classes: bool = True
  ignore_gym_classes: bool = True
  ignore_different_buildings: bool = False
  max_gap_hours: float = 3.0
  max_range_of_lessons_per_day: int = 2


@dataclass(frozen=True)
class Settings:
  """Typed settings for the bottleneck service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  analysis: AnalysisSettings
  do_checksum_check: bool
  schedule_url: str
  search_url: str
  fetch_timeout_seconds: float
  job_timeout_seconds: float | None
  pg_dsn: str | None
  pg_connect_timeout: int
  log_dir: str
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_bool(raw: str | None, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None or raw.strip() == "":
    return default

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    return ("http://localhost",)

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("BOTTLENECK_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("BOTTLENECK_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_positive_float(raw: str | None, default: float, name: str) -> float:
  value = float(raw) if raw else default
  if value <= 0:
    raise ValueError(f"{name} must be a positive number.")
  return value


def _parse_optional_float(raw: str | None, name: str) -> float | None:
  if raw is None or raw.strip() == "":
    return None

  value = float(raw)

  if value <= 0:
    raise ValueError(f"{name} must be positive when provided.")

  return value


def _validate_url(url: str, name: str, *, placeholders: tuple[str, ...] = ()) -> str:
  """Reject URLs without an http(s) scheme or missing required placeholders."""
  parsed = urlparse(url)

  if parsed.scheme not in {"http", "https"} or not parsed.netloc:
    raise ValueError(f"{name} must be an absolute http(s) URL, got: {url}")

  for placeholder in placeholders:
    if "{" + placeholder + "}" not in url:
      raise ValueError(f"{name} must contain the {{{placeholder}}} placeholder.")

  return url


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def load_analysis_settings() -> AnalysisSettings:
  """Read classifier thresholds from the environment."""
  defaults = AnalysisSettings()

  max_gap_hours = _parse_positive_float(os.getenv("BOTTLENECK_MAX_GAP_HOURS"), defaults.max_gap_hours, "BOTTLENECK_MAX_GAP_HOURS")

  max_range = int(os.getenv("BOTTLENECK_MAX_RANGE_OF_LESSONS_PER_DAY", str(defaults.max_range_of_lessons_per_day)))
  if max_range < 0:
    raise ValueError("BOTTLENECK_MAX_RANGE_OF_LESSONS_PER_DAY must be zero or a positive integer.")

  return AnalysisSettings(
    ignore_online_classes=_parse_bool(os.getenv("BOTTLENECK_IGNORE_ONLINE_CLASSES"), defaults.ignore_online_classes),
    ignore_gym_classes=_parse_bool(os.getenv("BOTTLENECK_IGNORE_GYM_CLASSES"), defaults.ignore_gym_classes),
    ignore_different_buildings=_parse_bool(os.getenv("BOTTLENECK_IGNORE_DIFFERENT_BUILDINGS"), defaults.ignore_different_buildings),
    max_gap_hours=max_gap_hours,
    max_range_of_lessons_per_day=max_range,
  )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("BOTTLENECK_ENV", "development").lower()

  # Toggle verbose SQL echo and diagnostics in non-production environments.
  debug = _parse_bool(os.getenv("BOTTLENECK_DEBUG"))

  # Re-analysis is skipped for unchanged calendars unless explicitly disabled.
  do_checksum_check = _parse_bool(os.getenv("BOTTLENECK_DO_CHECKSUM_CHECK"), True)

  schedule_url = _validate_url(os.getenv("BOTTLENECK_SCHEDULE_URL", _DEFAULT_SCHEDULE_URL), "BOTTLENECK_SCHEDULE_URL", placeholders=("target_kind", "remote_id"))
  search_url = _validate_url(os.getenv("BOTTLENECK_SEARCH_URL", _DEFAULT_SEARCH_URL), "BOTTLENECK_SEARCH_URL")

  fetch_timeout_seconds = _parse_positive_float(os.getenv("BOTTLENECK_FETCH_TIMEOUT_SECONDS"), 30.0, "BOTTLENECK_FETCH_TIMEOUT_SECONDS")
  # No timeout by default: a hung job stalls the queue until it settles.
  job_timeout_seconds = _parse_optional_float(os.getenv("BOTTLENECK_JOB_TIMEOUT_SECONDS"), "BOTTLENECK_JOB_TIMEOUT_SECONDS")

  pg_connect_timeout = int(os.getenv("BOTTLENECK_PG_CONNECT_TIMEOUT", "5"))
  if pg_connect_timeout <= 0:
    raise ValueError("BOTTLENECK_PG_CONNECT_TIMEOUT must be a positive integer.")

  log_max_bytes = int(os.getenv("BOTTLENECK_LOG_MAX_BYTES", "5242880"))  # 5MB default
  if log_max_bytes <= 0:
    raise ValueError("BOTTLENECK_LOG_MAX_BYTES must be a positive integer.")

  log_backup_count = int(os.getenv("BOTTLENECK_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("BOTTLENECK_LOG_BACKUP_COUNT must be zero or a positive integer.")

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("BOTTLENECK_ALLOWED_ORIGINS")),
    analysis=load_analysis_settings(),
    do_checksum_check=do_checksum_check,
    schedule_url=schedule_url,
    search_url=search_url,
    fetch_timeout_seconds=fetch_timeout_seconds,
    job_timeout_seconds=job_timeout_seconds,
    pg_dsn=_optional_str(os.getenv("BOTTLENECK_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL")),
    pg_connect_timeout=pg_connect_timeout,
    log_dir=os.getenv("BOTTLENECK_LOG_DIR", "logs").strip() or "logs",
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=_parse_bool(os.getenv("BOTTLENECK_LOG_HTTP_4XX")),
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring the web-runtime configuration."""
  debug = _parse_bool(os.getenv("BOTTLENECK_DEBUG"))
  pg_connect_timeout = int(os.getenv("BOTTLENECK_PG_CONNECT_TIMEOUT", "5"))
  if pg_connect_timeout <= 0:
    raise ValueError("BOTTLENECK_PG_CONNECT_TIMEOUT must be a positive integer.")

  pg_dsn = _optional_str(os.getenv("BOTTLENECK_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL"))

  return DatabaseSettings(debug=debug, pg_dsn=pg_dsn, pg_connect_timeout=pg_connect_timeout)
