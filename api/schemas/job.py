"""
Pydantic schemas for the enhancement job endpoints.

These are NOT database models — they define the HTTP API contract:
- EnhanceRequest: what the mobile app sends to start a job
- EnhanceResponse: returned immediately, before the job finishes
- JobStatusResponse: polled while the job runs
- JobResultResponse: the outcome (output image or error) once terminal
- CancelResponse: whether a running job was found and signalled

FastAPI validates incoming data against these automatically: an empty
user_id or image is rejected with a 422 before the orchestrator runs.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from models.enums import JobStatus


class EnhanceRequest(BaseModel):
    """Request body for POST /api/enhance."""

    user_id: str = Field(..., min_length=1, max_length=128)
    image_base64: str = Field(
        ...,
        min_length=1,
        description="Base64-encoded source image (a data: URI prefix is allowed)",
    )
    style: str = Field(..., min_length=1, max_length=100, examples=["studio"])
    device_token: Optional[str] = Field(
        default=None,
        max_length=512,
        description="Push token; when omitted no notification is sent",
    )


class EnhanceResponse(BaseModel):
    job_id: UUID
    status: JobStatus = JobStatus.PROCESSING
    estimated_seconds: int


class JobStatusResponse(BaseModel):
    job_id: UUID
    status: JobStatus
    progress: int = Field(..., ge=0, le=100)


class JobResultResponse(BaseModel):
    """
    Response body for GET /api/jobs/{id}/result.

    While the job is processing, only job_id/status/message are set.
    """

    job_id: UUID
    status: JobStatus
    message: str
    style: Optional[str] = None
    output_payload: Optional[str] = None
    error_message: Optional[str] = None


class CancelResponse(BaseModel):
    job_id: UUID
    cancelled: bool
