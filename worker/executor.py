"""
Job executor — runs a single enhancement job inside a worker thread.

This is the code that actually DRIVES THE WORK. The orchestrator submits
executor.execute(job, cancel_event) to the worker pool, and this method
handles the full lifecycle:

    1. Repeatedly: check cancellation, ask the enhancer for one step,
       persist the new progress, pause STEP_DELAY_SECONDS
    2. On success: mark COMPLETED (progress 100, output stored), notify
    3. On failure: mark FAILED with the error text, notify
    4. Always: remove the job from the registry

There are exactly three ways out — completed, failed, cancelled — and
the registry's untrack() runs on all of them, including an unexpected
exception. Cancellation leaves the row PROCESSING at its last progress
and sends no notification.

Thread safety:
- Each store call opens and closes its own session
- The enhancer keeps per-job data in EnhancementState, not on itself
- The only shared mutable state is the registry, which locks internally
So any number of threads can call execute() at once.
"""

import logging
import threading

from jobs.base import (
    AbstractEnhancer,
    EnhancementFailed,
    EnhancementState,
    EnhancementSucceeded,
    ProgressStep,
    StepOutcome,
)
from models.enums import ExecutionOutcome, NotificationOutcome
from models.job import EnhancementJob
from models.store import JobStore
from notifications.dispatcher import NotificationDispatcher
from worker.errors import WorkerFault
from worker.registry import JobRegistry

logger = logging.getLogger(__name__)


class JobExecutor:

    def __init__(
        self,
        store: JobStore,
        registry: JobRegistry,
        dispatcher: NotificationDispatcher,
        enhancer: AbstractEnhancer,
        step_delay: float,
    ):
        self._store = store
        self._registry = registry
        self._dispatcher = dispatcher
        self._enhancer = enhancer
        self._step_delay = step_delay

    def execute(self, job: EnhancementJob, cancel_event: threading.Event) -> ExecutionOutcome:
        """
        Run one job to completion, failure, or cancellation. Never raises.

        Args:
            job: the freshly created row (detached snapshot)
            cancel_event: the handle returned by JobRegistry.track()
        """
        job_id = job.id
        state = EnhancementState(
            job_id=job_id,
            input_payload=job.input_payload,
            style=job.style,
            progress=job.progress,
        )
        try:
            logger.info(f"Starting to process job {job_id} [{self._enhancer.name}]")
            outcome = self._run_steps(state, cancel_event)

            if outcome is None:
                logger.info(f"Job {job_id} cancelled at {state.progress}%")
                return ExecutionOutcome.CANCELLED

            if isinstance(outcome, EnhancementSucceeded):
                return self._complete(job, outcome.output_payload)

            logger.warning(f"Job {job_id} reported failure: {outcome.error_message}")
            return self._fail(job, outcome.error_message)

        except Exception as e:
            # Worker faults and mid-run store failures both end up here
            logger.error(f"Job {job_id} failed: {e}", exc_info=True)
            return self._fail(job, str(e))

        finally:
            self._registry.untrack(job_id)

    def _run_steps(
        self, state: EnhancementState, cancel_event: threading.Event
    ) -> EnhancementSucceeded | EnhancementFailed | None:
        """Step the enhancer until it finishes. Returns None if cancelled."""
        while True:
            if cancel_event.is_set():
                return None

            outcome = self._step(state)

            if isinstance(outcome, (EnhancementSucceeded, EnhancementFailed)):
                return outcome

            state.progress = min(100, state.progress + outcome.delta)
            self._store.update_progress(state.job_id, state.progress)
            logger.info(f"Job {state.job_id} progress: {state.progress}%")

            # Doubles as the cooperative yield: returns early once cancelled
            if cancel_event.wait(self._step_delay):
                return None

    def _step(self, state: EnhancementState) -> StepOutcome:
        try:
            outcome = self._enhancer.step(state)
        except Exception as e:
            raise WorkerFault(f"Enhancer '{self._enhancer.name}' raised: {e}") from e

        if isinstance(outcome, ProgressStep):
            if outcome.delta < 0:
                raise WorkerFault(
                    f"Enhancer '{self._enhancer.name}' reported negative progress ({outcome.delta})"
                )
            return outcome
        if isinstance(outcome, (EnhancementSucceeded, EnhancementFailed)):
            return outcome
        raise WorkerFault(
            f"Enhancer '{self._enhancer.name}' returned an unknown step outcome: {outcome!r}"
        )

    def _complete(self, job: EnhancementJob, output_payload: str) -> ExecutionOutcome:
        if not self._store.complete_job(job.id, output_payload):
            logger.warning(f"Job {job.id} was no longer PROCESSING, completion not recorded")
            return ExecutionOutcome.COMPLETED

        logger.info(f"Job {job.id} completed successfully")
        self._dispatcher.notify(job.notification_target, job.id, NotificationOutcome.SUCCESS)
        return ExecutionOutcome.COMPLETED

    def _fail(self, job: EnhancementJob, error_message: str) -> ExecutionOutcome:
        """Terminal failure write + notification. Swallows store errors so execute() never raises."""
        try:
            written = self._store.fail_job(job.id, error_message)
        except Exception as e:
            logger.error(f"Error recording failure for job {job.id}: {e}", exc_info=True)
            return ExecutionOutcome.FAILED

        if written:
            self._dispatcher.notify(job.notification_target, job.id, NotificationOutcome.FAILURE)
        else:
            logger.warning(f"Job {job.id} was no longer PROCESSING, failure not recorded")
        return ExecutionOutcome.FAILED
