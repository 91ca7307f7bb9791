from bottleneck_engine.config import Settings
from bottleneck_engine.storage.postgres_schedule_repo import PostgresScheduleRepository
from bottleneck_engine.storage.schedule_repo import ScheduleRepository


def get_schedule_repo(settings: Settings) -> ScheduleRepository:
  """Return the active schedule repository."""

  # Enforce Postgres-backed storage for targets, lessons and bottlenecks.

  if not settings.pg_dsn:
    raise ValueError("BOTTLENECK_PG_DSN must be set to enable Postgres persistence.")

  return PostgresScheduleRepository()
