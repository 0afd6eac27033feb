"""
Enhancement job endpoints.

POST /api/enhance                  → Start a job (costs one credit), returns immediately
GET  /api/jobs/{job_id}/status     → Status + progress percent
GET  /api/jobs/{job_id}/result     → Output image, error, or "still processing"
POST /api/jobs/{job_id}/cancel     → Ask a running job to stop

The API layer is intentionally thin:
- Validate input (Pydantic does this automatically)
- Call the orchestrator
- Translate its exceptions into status codes

The orchestrator is synchronous (database calls, thread pool), so each
call goes through run_in_threadpool to keep the event loop free.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool

from api.dependencies import get_config_provider, get_orchestrator
from api.schemas.job import (
    CancelResponse,
    EnhanceRequest,
    EnhanceResponse,
    JobResultResponse,
    JobStatusResponse,
)
from config.provider import ConfigProvider
from config.settings import settings
from worker.errors import (
    DuplicateJobError,
    EnhancementServiceError,
    InsufficientCreditError,
    JobNotFoundError,
    PersistenceError,
    ValidationError,
)
from worker.orchestrator import JobOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["jobs"])


@router.post("/enhance", response_model=EnhanceResponse, status_code=202)
async def start_enhancement(
    request: EnhanceRequest,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
    config: ConfigProvider = Depends(get_config_provider),
) -> EnhanceResponse:
    """
    Start an asynchronous enhancement job.

    One credit is taken up front. The response comes back as soon as the
    job row exists and its worker has been scheduled; poll the status
    endpoint to follow progress.
    """
    try:
        job_id = await run_in_threadpool(
            orchestrator.start_job,
            request.user_id,
            request.image_base64,
            request.style,
            request.device_token,
        )
    except InsufficientCreditError:
        raise HTTPException(status_code=402, detail="Insufficient credits")
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.message)
    except DuplicateJobError as e:
        logger.error(f"Job registry invariant violated for user {request.user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to start enhancement job")
    except EnhancementServiceError as e:
        logger.error(f"Error starting enhancement job for user {request.user_id}: {e}")
        raise HTTPException(status_code=503, detail="Failed to start enhancement job")

    estimated = await config.get_int("ESTIMATED_JOB_SECONDS", settings.ESTIMATED_JOB_SECONDS)
    logger.info(f"Started enhancement job {job_id} for user {request.user_id}")
    return EnhanceResponse(job_id=job_id, estimated_seconds=estimated)


@router.get("/jobs/{job_id}/status", response_model=JobStatusResponse)
async def get_job_status(
    job_id: UUID,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
) -> JobStatusResponse:
    try:
        view = await run_in_threadpool(orchestrator.get_status, job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Job store unavailable")
    return JobStatusResponse(job_id=view.job_id, status=view.status, progress=view.progress)


@router.get("/jobs/{job_id}/result", response_model=JobResultResponse)
async def get_job_result(
    job_id: UUID,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
) -> JobResultResponse:
    """
    Get the outcome of a job.

    A job that is still processing is not an error: the response says so
    and carries neither output nor error.
    """
    try:
        view = await run_in_threadpool(orchestrator.get_result, job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Job store unavailable")
    return JobResultResponse(
        job_id=view.job_id,
        status=view.status,
        message=view.message,
        style=view.style,
        output_payload=view.output_payload,
        error_message=view.error_message,
    )


@router.post("/jobs/{job_id}/cancel", response_model=CancelResponse)
async def cancel_job(
    job_id: UUID,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
) -> CancelResponse:
    """
    Signal a running job to stop at its next progress step.

    cancelled=false means no running job has this id (unknown, finished,
    or already cancelled). The job row is not changed by this call: a
    cancelled job stays "processing" at its last progress value.
    """
    cancelled = orchestrator.cancel_job(job_id)
    return CancelResponse(job_id=job_id, cancelled=cancelled)
