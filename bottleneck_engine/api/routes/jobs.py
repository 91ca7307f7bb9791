import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from bottleneck_engine.analysis.models import TargetKind
from bottleneck_engine.api.deps import get_job_service
from bottleneck_engine.api.models import JobCreateResponse, JobStatusResponse
from bottleneck_engine.jobs.models import JobStatus
from bottleneck_engine.services.jobs import JobService

router = APIRouter()
logger = logging.getLogger("bottleneck_engine.api.routes.jobs")


def _parse_id(raw: str, label: str) -> int:
  """Accept only canonical integer strings such as '42' or '-7'."""
  try:
    value = int(raw)
  except ValueError:
    value = None

  if value is None or str(value) != raw:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{label} id must be a valid integer number")
  return value


def _job_error(request: Request, status_code: int, detail: str) -> JSONResponse:
  """Answer a result poll directly so 5xx details are not masked by the global handler."""
  payload = {"detail": detail}
  request_id = getattr(request.state, "request_id", None)
  if request_id:
    payload["requestId"] = request_id
  return JSONResponse(status_code=status_code, content=payload)


@router.post("/submit/analysis/group/{group_id}/", response_model=JobCreateResponse)
async def submit_group_analysis(group_id: str, service: JobService = Depends(get_job_service)) -> JobCreateResponse:  # noqa: B008
  """Queue bottleneck analysis for a student group."""
  remote_id = _parse_id(group_id, "Group")
  return JobCreateResponse(job_id=service.submit_analysis(TargetKind.GROUP, remote_id))


@router.post("/submit/analysis/prof/{prof_id}/", response_model=JobCreateResponse)
async def submit_instructor_analysis(prof_id: str, service: JobService = Depends(get_job_service)) -> JobCreateResponse:  # noqa: B008
  """Queue bottleneck analysis for an instructor."""
  remote_id = _parse_id(prof_id, "Professor")
  return JobCreateResponse(job_id=service.submit_analysis(TargetKind.INSTRUCTOR, remote_id))


@router.post("/submit/search/", response_model=JobCreateResponse)
async def submit_search(  # noqa: B008
  limit: int | None = Query(default=None, ge=1),
  match: str | None = Query(default=None, min_length=1),
  page_token: str | None = Query(default=None, alias="pageToken", min_length=1),
  service: JobService = Depends(get_job_service),  # noqa: B008
) -> JobCreateResponse:
  """Queue a remote search whose every hit is analysed."""
  return JobCreateResponse(job_id=service.submit_search(limit=limit, match=match, page_token=page_token))


@router.get("/status/{job_id}/", response_model=JobStatusResponse)
async def get_job_status(job_id: str, service: JobService = Depends(get_job_service)) -> JobStatusResponse:  # noqa: B008
  """Report the job state; an error state is reported only once."""
  return JobStatusResponse(status=service.get_status(_parse_id(job_id, "Job")))


@router.get("/result/{job_id}/")
async def get_job_result(job_id: str, request: Request, service: JobService = Depends(get_job_service)):  # noqa: B008
  """Collect a finished job's result; it can be collected only once."""
  parsed_id = _parse_id(job_id, "Job")
  job_status = service.get_status(parsed_id)

  if job_status == JobStatus.PROCESSING:
    return _job_error(request, status.HTTP_503_SERVICE_UNAVAILABLE, "The job result cannot be retrieved as the job is being processed")
  if job_status == JobStatus.NOT_FOUND:
    return _job_error(request, status.HTTP_404_NOT_FOUND, "The job is not found (either not placed yet or has already been completed)")
  if job_status == JobStatus.ERROR:
    return _job_error(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "An internal error occurred while processing the job")

  result = service.get_result(parsed_id)
  if result is None:
    # Collected by a concurrent poll between the status check and here.
    return _job_error(request, status.HTTP_404_NOT_FOUND, "The job is not found (either not placed yet or has already been completed)")

  logger.info("Result collected for job_id=%s", parsed_id)
  return JSONResponse(content=result.model_dump(mode="json", by_alias=True))
