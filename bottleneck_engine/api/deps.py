"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from bottleneck_engine.services.jobs import JobService


def get_job_service(request: Request) -> JobService:
  """Return the process-wide job service created by the application lifespan."""
  service = getattr(request.app.state, "job_service", None)
  if service is None:
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Job service is not ready")
  return service
