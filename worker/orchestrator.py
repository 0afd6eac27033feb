"""
Job orchestrator — the front door of the enhancement job lifecycle.

State machine:

    (admitted) ──create──> PROCESSING ──┬──> COMPLETED
                                        └──> FAILED

"admitted" only exists inside start_job(): the credit has been taken but
no row exists yet. PROCESSING → COMPLETED/FAILED is written by the
job's execution unit (worker/executor.py); nothing ever leaves a terminal
state. A cancelled job simply stops: its row stays PROCESSING.

start_job() does the synchronous part and returns as soon as the
execution unit has been handed to the pool:

    1. debit 1 credit (CreditLedger)        → InsufficientCreditError
    2. new uuid4 job id
    3. insert the PROCESSING row (JobStore)  → PersistenceError (credit refunded)
    4. register a cancellation handle (JobRegistry)
    5. submit executor.execute to the WorkerPool
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from config.settings import settings
from jobs.base import AbstractEnhancer
from models.enums import JobStatus
from models.job import EnhancementJob
from models.store import JobStore
from notifications.dispatcher import NotificationDispatcher
from worker.credits import CreditLedger
from worker.errors import (
    EnhancementServiceError,
    InsufficientCreditError,
    JobNotFoundError,
    PersistenceError,
    ValidationError,
)
from worker.executor import JobExecutor
from worker.pool import WorkerPool
from worker.registry import JobRegistry

logger = logging.getLogger(__name__)

MAX_STYLE_LENGTH = 100
MAX_TARGET_LENGTH = 512


@dataclass(frozen=True)
class JobStatusView:
    job_id: uuid.UUID
    status: JobStatus
    progress: int


@dataclass(frozen=True)
class JobResultView:
    """
    What a client gets back when asking for a job's result.

    Only one of output_payload / error_message is ever set, and neither
    is set while the job is still PROCESSING.
    """
    job_id: uuid.UUID
    status: JobStatus
    style: str
    output_payload: str | None = None
    error_message: str | None = None

    @property
    def message(self) -> str:
        if self.status is JobStatus.PROCESSING:
            return "Job is still processing"
        if self.status is JobStatus.FAILED:
            return self.error_message or "Job failed"
        return "Job completed successfully"


class JobOrchestrator:

    def __init__(
        self,
        store: JobStore,
        registry: JobRegistry,
        dispatcher: NotificationDispatcher,
        enhancer: AbstractEnhancer,
        pool: WorkerPool,
        step_delay: float = settings.STEP_DELAY_SECONDS,
        credit_cost: int = settings.JOB_CREDIT_COST,
    ):
        self._store = store
        self._registry = registry
        self._pool = pool
        self._ledger = CreditLedger(store)
        self._executor = JobExecutor(store, registry, dispatcher, enhancer, step_delay)
        self._credit_cost = credit_cost

    # ── Commands ────────────────────────────────────────────────

    def start_job(
        self,
        owner_id: str,
        input_payload: str,
        style: str,
        notification_target: str | None = None,
    ) -> uuid.UUID:
        """
        Admit, persist and launch a job. Returns its id without waiting.

        Raises:
            ValidationError: bad input, nothing touched
            InsufficientCreditError: balance too low, nothing touched
            PersistenceError: the store failed; any debited credit was refunded
        """
        self._validate_start(owner_id, input_payload, style, notification_target)

        if not self._ledger.try_debit(owner_id, self._credit_cost):
            raise InsufficientCreditError(owner_id, self._credit_cost)

        job = EnhancementJob(
            id=uuid.uuid4(),
            owner_id=owner_id,
            status=JobStatus.PROCESSING.value,
            progress=0,
            input_payload=input_payload,
            style=style,
            notification_target=notification_target or None,
            created_at=datetime.now(timezone.utc),
        )
        try:
            self._store.create_job(job)
        except PersistenceError:
            self._refund(owner_id)
            raise
        logger.info(f"Created job {job.id} for user {owner_id} [{style}]")

        cancel_event = self._registry.track(job.id)
        try:
            self._pool.submit(self._executor.execute, job, cancel_event)
        except RuntimeError as e:
            # Pool already shut down: don't leave a PROCESSING row nobody will run
            self._registry.untrack(job.id)
            self._refund(owner_id)
            try:
                self._store.fail_job(job.id, "Service is shutting down")
            except PersistenceError:
                logger.error(f"Could not mark job {job.id} failed after the pool refused it")
            raise EnhancementServiceError(
                "Worker pool is not accepting jobs", {"job_id": str(job.id)}
            ) from e

        return job.id

    def cancel_job(self, job_id: uuid.UUID) -> bool:
        """
        Ask a running job to stop. Returns False if no live job has this id
        (unknown, already finished, or already cancelled).
        """
        cancelled = self._registry.cancel(job_id)
        if cancelled:
            logger.info(f"Cancelled job {job_id}")
        return cancelled

    # ── Queries ─────────────────────────────────────────────────

    def get_status(self, job_id: uuid.UUID) -> JobStatusView:
        job = self._get(job_id)
        return JobStatusView(job_id=job.id, status=job.job_status, progress=job.progress)

    def get_result(self, job_id: uuid.UUID) -> JobResultView:
        job = self._get(job_id)
        status = job.job_status
        if status is JobStatus.COMPLETED:
            return JobResultView(job.id, status, job.style, output_payload=job.output_payload)
        if status is JobStatus.FAILED:
            return JobResultView(job.id, status, job.style, error_message=job.error_message)
        return JobResultView(job.id, status, job.style)

    def credit_balance(self, owner_id: str) -> int | None:
        return self._ledger.balance(owner_id)

    def active_jobs(self) -> int:
        return self._registry.active_count()

    # ── Lifecycle ───────────────────────────────────────────────

    def shutdown(self, wait: bool = True) -> None:
        """Signal every in-flight job to stop, then stop the pool."""
        signalled = self._registry.cancel_all()
        if signalled:
            logger.info(f"Signalled {signalled} running job(s) to stop")
        self._pool.stop(wait=wait)

    # ── Helpers ─────────────────────────────────────────────────

    def _get(self, job_id: uuid.UUID) -> EnhancementJob:
        job = self._store.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def _refund(self, owner_id: str) -> None:
        try:
            refunded = self._ledger.refund(owner_id, self._credit_cost)
        except PersistenceError:
            refunded = False
        if not refunded:
            logger.error(
                f"Could not refund {self._credit_cost} credit(s) to user {owner_id} "
                f"after job creation failed"
            )

    @staticmethod
    def _validate_start(
        owner_id: str, input_payload: str, style: str, notification_target: str | None
    ) -> None:
        if not owner_id or not owner_id.strip():
            raise ValidationError("owner_id is required", field="owner_id")
        if not input_payload or not input_payload.strip():
            raise ValidationError("input_payload (base64 image) is required", field="input_payload")
        if not style or not style.strip():
            raise ValidationError("style is required", field="style")
        if len(style) > MAX_STYLE_LENGTH:
            raise ValidationError(
                f"style must be at most {MAX_STYLE_LENGTH} characters", field="style"
            )
        if notification_target and len(notification_target) > MAX_TARGET_LENGTH:
            raise ValidationError(
                f"notification_target must be at most {MAX_TARGET_LENGTH} characters",
                field="notification_target",
            )
