"""
Tests for the JobOrchestrator: admission, persistence, launch, cancel, queries.

These run real worker threads on a real (SQLite) store, so completion is
awaited with the wait_until fixture rather than assumed.
"""

import threading
import time
import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from jobs.base import AbstractEnhancer, ProgressStep
from models.enums import JobStatus
from models.job import EnhancementJob
from models.store import JobStore
from worker.errors import (
    EnhancementServiceError,
    InsufficientCreditError,
    JobNotFoundError,
    PersistenceError,
    ValidationError,
)

IMAGE = "aGVsbG8gaW1hZ2U="


class FailingCreateStore(JobStore):
    def create_job(self, job):
        raise PersistenceError("Job store create_job failed")


class FailingFailStore(JobStore):
    def fail_job(self, job_id, error_message):
        raise PersistenceError("Job store fail_job failed")


class ExplodingEnhancer(AbstractEnhancer):
    def step(self, state):
        if state.progress >= 20:
            raise RuntimeError("GPU fell off the bus")
        return ProgressStep(20)

    @property
    def name(self):
        return "exploding"


def _job_count(db_engine) -> int:
    with Session(db_engine) as session:
        return session.scalar(select(func.count()).select_from(EnhancementJob))


def _is_terminal(orchestrator, job_id) -> bool:
    return orchestrator.get_status(job_id).status.is_terminal


# ── Happy path ───────────────────────────────────────────────────


def test_start_job_runs_to_completion(orchestrator, store, add_user, notifier, wait_until):
    add_user("user-1", credit=3)

    job_id = orchestrator.start_job("user-1", IMAGE, "studio", "device-1")
    wait_until(lambda: _is_terminal(orchestrator, job_id))

    status = orchestrator.get_status(job_id)
    assert status.status is JobStatus.COMPLETED
    assert status.progress == 100

    result = orchestrator.get_result(job_id)
    assert result.output_payload == IMAGE
    assert result.error_message is None
    assert result.style == "studio"
    assert result.message == "Job completed successfully"

    assert orchestrator.credit_balance("user-1") == 2
    wait_until(lambda: len(notifier.sent) == 1)
    assert notifier.sent[0]["metadata"] == {"jobId": str(job_id), "success": "true"}
    assert orchestrator.active_jobs() == 0


def test_job_starts_processing_at_zero(make_orchestrator, gated_enhancer, add_user):
    add_user("user-1", credit=1)
    enhancer = gated_enhancer
    orchestrator = make_orchestrator(enhancer=enhancer)

    job_id = orchestrator.start_job("user-1", IMAGE, "white")
    status = orchestrator.get_status(job_id)

    assert isinstance(job_id, uuid.UUID)
    assert status.status is JobStatus.PROCESSING
    assert status.progress == 0
    enhancer.gate.set()


def test_job_ids_are_unique(orchestrator, add_user, wait_until):
    add_user("user-1", credit=5)

    ids = {orchestrator.start_job("user-1", IMAGE, "white") for _ in range(5)}

    assert len(ids) == 5
    wait_until(lambda: all(_is_terminal(orchestrator, j) for j in ids))


def test_progress_is_never_observed_going_backwards(make_orchestrator, add_user):
    add_user("user-1", credit=1)
    orchestrator = make_orchestrator(step_delay=0.01)

    job_id = orchestrator.start_job("user-1", IMAGE, "studio")
    observed = []
    deadline = time.monotonic() + 5
    while time.monotonic() < deadline:
        status = orchestrator.get_status(job_id)
        observed.append(status.progress)
        if status.status.is_terminal:
            break

    assert observed == sorted(observed)
    assert observed[-1] == 100


# ── Admission ────────────────────────────────────────────────────


def test_zero_credits_is_rejected_without_creating_a_job(orchestrator, add_user, db_engine):
    add_user("broke", credit=0)

    with pytest.raises(InsufficientCreditError):
        orchestrator.start_job("broke", IMAGE, "studio")

    assert orchestrator.credit_balance("broke") == 0
    assert _job_count(db_engine) == 0


def test_unknown_user_is_rejected(orchestrator, db_engine):
    with pytest.raises(InsufficientCreditError):
        orchestrator.start_job("ghost", IMAGE, "studio")
    assert _job_count(db_engine) == 0


@pytest.mark.parametrize(
    "owner_id,payload,style,target",
    [
        ("", IMAGE, "studio", None),
        ("user-1", "", "studio", None),
        ("user-1", "   ", "studio", None),
        ("user-1", IMAGE, "", None),
        ("user-1", IMAGE, "s" * 101, None),
        ("user-1", IMAGE, "studio", "t" * 513),
    ],
)
def test_invalid_input_touches_nothing(orchestrator, add_user, db_engine, owner_id, payload, style, target):
    add_user("user-1", credit=3)

    with pytest.raises(ValidationError):
        orchestrator.start_job(owner_id, payload, style, target)

    assert orchestrator.credit_balance("user-1") == 3
    assert _job_count(db_engine) == 0


def test_concurrent_starts_admit_exactly_the_balance(orchestrator, add_user, db_engine, wait_until):
    add_user("racer", credit=3)
    barrier = threading.Barrier(10)
    started, refused = [], []
    lock = threading.Lock()

    def start():
        barrier.wait()
        try:
            job_id = orchestrator.start_job("racer", IMAGE, "studio")
        except InsufficientCreditError:
            with lock:
                refused.append(1)
        else:
            with lock:
                started.append(job_id)

    threads = [threading.Thread(target=start) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(started) == 3
    assert len(refused) == 7
    assert orchestrator.credit_balance("racer") == 0
    assert _job_count(db_engine) == 3
    wait_until(lambda: all(_is_terminal(orchestrator, j) for j in started))


def test_failed_job_creation_refunds_the_credit(make_orchestrator, db_engine, add_user):
    add_user("user-1", credit=2)
    failing = FailingCreateStore(sessionmaker(db_engine, expire_on_commit=False))
    orchestrator = make_orchestrator(job_store=failing)

    with pytest.raises(PersistenceError):
        orchestrator.start_job("user-1", IMAGE, "studio")

    assert orchestrator.credit_balance("user-1") == 2
    assert orchestrator.active_jobs() == 0


def test_start_after_shutdown_refunds_and_fails_the_row(orchestrator, add_user, db_engine):
    add_user("user-1", credit=1)
    orchestrator.shutdown(wait=True)

    with pytest.raises(EnhancementServiceError):
        orchestrator.start_job("user-1", IMAGE, "studio")

    assert orchestrator.credit_balance("user-1") == 1
    assert orchestrator.active_jobs() == 0
    with Session(db_engine) as session:
        job = session.scalars(select(EnhancementJob)).one()
    assert job.status == "failed"
    assert job.error_message == "Service is shutting down"


def test_start_after_shutdown_refunds_even_if_fail_write_breaks(make_orchestrator, db_engine, add_user):
    add_user("user-1", credit=1)
    broken = FailingFailStore(sessionmaker(db_engine, expire_on_commit=False))
    orchestrator = make_orchestrator(job_store=broken)
    orchestrator.shutdown(wait=True)

    with pytest.raises(EnhancementServiceError):
        orchestrator.start_job("user-1", IMAGE, "studio")

    assert orchestrator.credit_balance("user-1") == 1
    assert orchestrator.active_jobs() == 0


# ── Failure ──────────────────────────────────────────────────────


def test_enhancer_exception_fails_job_and_keeps_credit_spent(make_orchestrator, add_user, notifier, wait_until):
    add_user("user-1", credit=1)
    orchestrator = make_orchestrator(enhancer=ExplodingEnhancer())

    job_id = orchestrator.start_job("user-1", IMAGE, "studio", "device-1")
    wait_until(lambda: _is_terminal(orchestrator, job_id))

    result = orchestrator.get_result(job_id)
    assert result.status is JobStatus.FAILED
    assert "GPU fell off the bus" in result.error_message
    assert result.output_payload is None
    assert result.message == result.error_message
    assert orchestrator.get_status(job_id).progress == 20
    assert orchestrator.credit_balance("user-1") == 0
    wait_until(lambda: len(notifier.sent) == 1)
    assert notifier.sent[0]["metadata"]["success"] == "false"


# ── Cancellation ─────────────────────────────────────────────────


def test_cancel_running_job(make_orchestrator, gated_enhancer, add_user, registry, notifier, wait_until):
    add_user("user-1", credit=1)
    enhancer = gated_enhancer
    orchestrator = make_orchestrator(enhancer=enhancer)

    job_id = orchestrator.start_job("user-1", IMAGE, "studio", "device-1")
    assert enhancer.entered.wait(5)

    assert orchestrator.cancel_job(job_id) is True
    assert orchestrator.cancel_job(job_id) is False

    enhancer.gate.set()
    # The unit notices the cancel right after its in-flight step
    wait_until(lambda: orchestrator.get_status(job_id).progress == 50)

    status = orchestrator.get_status(job_id)
    assert status.status is JobStatus.PROCESSING
    assert orchestrator.get_result(job_id).output_payload is None
    assert notifier.sent == []
    assert not registry.is_tracked(job_id)


def test_cancel_unknown_job_returns_false(orchestrator):
    assert orchestrator.cancel_job(uuid.uuid4()) is False


def test_cancel_finished_job_returns_false(orchestrator, add_user, wait_until):
    add_user("user-1", credit=1)
    job_id = orchestrator.start_job("user-1", IMAGE, "studio")
    wait_until(lambda: _is_terminal(orchestrator, job_id))
    wait_until(lambda: orchestrator.active_jobs() == 0)

    assert orchestrator.cancel_job(job_id) is False
    assert orchestrator.get_status(job_id).status is JobStatus.COMPLETED


def test_shutdown_signals_running_jobs(make_orchestrator, gated_enhancer, add_user):
    add_user("user-1", credit=2)
    enhancer = gated_enhancer
    orchestrator = make_orchestrator(enhancer=enhancer)
    orchestrator.start_job("user-1", IMAGE, "studio")
    orchestrator.start_job("user-1", IMAGE, "white")
    assert enhancer.entered.wait(5)

    enhancer.gate.set()
    orchestrator.shutdown(wait=True)

    assert orchestrator.active_jobs() == 0


# ── Queries ──────────────────────────────────────────────────────


def test_result_while_processing_has_no_output(make_orchestrator, gated_enhancer, add_user, wait_until):
    add_user("user-1", credit=1)
    enhancer = gated_enhancer
    orchestrator = make_orchestrator(enhancer=enhancer)

    job_id = orchestrator.start_job("user-1", IMAGE, "soft grey")
    result = orchestrator.get_result(job_id)

    assert result.status is JobStatus.PROCESSING
    assert result.output_payload is None
    assert result.error_message is None
    assert result.message == "Job is still processing"

    enhancer.gate.set()
    wait_until(lambda: _is_terminal(orchestrator, job_id))
    assert orchestrator.get_result(job_id).output_payload == IMAGE


def test_unknown_job_raises_not_found(orchestrator):
    with pytest.raises(JobNotFoundError):
        orchestrator.get_status(uuid.uuid4())
    with pytest.raises(JobNotFoundError):
        orchestrator.get_result(uuid.uuid4())
