from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from bottleneck_engine.api.routes import jobs
from bottleneck_engine.config import get_settings
from bottleneck_engine.core.exceptions import global_exception_handler, http_exception_handler, request_validation_exception_handler
from bottleneck_engine.core.lifespan import lifespan
from bottleneck_engine.core.middleware import RequestLoggingMiddleware

settings = get_settings()

app = FastAPI(title="Bottleneck Engine", lifespan=lifespan)

app.add_middleware(CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_credentials=True, allow_methods=["GET", "POST", "OPTIONS"], allow_headers=["content-type"], expose_headers=["content-length", "x-request-id"])

# Add exception handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": "0.1.0"}


app.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
