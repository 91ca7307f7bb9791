import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from bottleneck_engine.config import get_settings
from bottleneck_engine.core.database import dispose_db_engine
from bottleneck_engine.core.logging import initialize_logging
from bottleneck_engine.services.jobs import build_job_service
from bottleneck_engine.services.schedule_client import ScheduleClient
from bottleneck_engine.storage.factory import get_schedule_repo
from fastapi import FastAPI


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging and the job service, and release them on shutdown."""
  settings = get_settings()
  logger = logging.getLogger("bottleneck_engine.core.lifespan")

  initialize_logging(settings)
  logger.info("Startup complete - logging verified.")

  # The job queue is process-wide state; one instance serves every request.
  client = ScheduleClient(settings)
  repository = get_schedule_repo(settings)
  app.state.job_service = build_job_service(settings, client, repository)

  try:
    yield
  finally:
    logger.info("Shutting down job service.")
    await app.state.job_service.close()
    await client.aclose()
    await dispose_db_engine()
