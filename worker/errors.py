"""
Exception hierarchy for the enhancement job service.

Routers translate these into HTTP status codes; the execution path
converts the ones raised mid-run into a FAILED job instead of letting
them escape the worker thread.
"""

from typing import Any


class EnhancementServiceError(Exception):
    """Base exception for all service errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(EnhancementServiceError):
    """Malformed or missing input. Raised before any side effect."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class InsufficientCreditError(EnhancementServiceError):
    """Admission denied: the owner cannot pay for the job."""

    def __init__(self, owner_id: str, required: int = 1) -> None:
        super().__init__(
            "Insufficient credits",
            {"owner_id": owner_id, "required": required},
        )


class PersistenceError(EnhancementServiceError):
    """The job store is unavailable or a write failed."""


class JobNotFoundError(EnhancementServiceError):
    """No job exists with the given id."""

    def __init__(self, job_id: Any) -> None:
        super().__init__(f"Job not found: {job_id}", {"job_id": str(job_id)})


class WorkerFault(EnhancementServiceError):
    """The enhancer raised or returned something the executor cannot use."""


class DuplicateJobError(EnhancementServiceError):
    """A job id was registered twice. Should be unreachable with uuid4 ids."""

    def __init__(self, job_id: Any) -> None:
        super().__init__(f"Job already tracked: {job_id}", {"job_id": str(job_id)})
