"""
Worker pool — the thread pool that enhancement jobs execute on.

Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                    WorkerPool                            │
    │                                                         │
    │  JobOrchestrator.start_job()                            │
    │             │ submit(executor.execute, job, handle)     │
    │             ▼                                            │
    │  ┌──────────────────────────────────────────┐           │
    │  │ ThreadPoolExecutor (WORKER_POOL_SIZE)     │           │
    │  │  ┌────────┐ ┌────────┐ ┌────────┐ ┌────────┐       │
    │  │  │ job A  │ │ job B  │ │ job C  │ │(idle)  │       │
    │  │  └────────┘ └────────┘ └────────┘ └────────┘       │
    │  └──────────────────────────────────────────┘           │
    └─────────────────────────────────────────────────────────┘

Every admitted job gets its own execution unit on this pool; units for
different jobs run in parallel with no ordering between them. When all
threads are busy, new jobs wait in the executor's queue (still PROCESSING
at 0%) and start as soon as a thread frees up.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, Future
from typing import Callable

from config.settings import settings

logger = logging.getLogger(__name__)


class WorkerPool:

    def __init__(self, pool_size: int = settings.WORKER_POOL_SIZE):
        self._pool_size = pool_size
        self._executor = ThreadPoolExecutor(
            max_workers=pool_size,
            thread_name_prefix="enhance-worker",
        )
        logger.info(f"Worker pool started with {pool_size} threads")

    def submit(self, fn: Callable, *args) -> Future:
        """Run fn(*args) on a worker thread. Raises RuntimeError after stop()."""
        future: Future = self._executor.submit(fn, *args)
        future.add_done_callback(self._on_job_done)
        return future

    def stop(self, wait: bool = True) -> None:
        """Stop accepting work; optionally wait for running units to exit."""
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
        logger.info("Worker pool stopped")

    def _on_job_done(self, future: Future) -> None:
        """
        Callback fired when a worker thread finishes executing a job.

        JobExecutor.execute() handles every failure itself, so an exception
        here means a bug in the executor — log it loudly.
        """
        if future.cancelled():
            return
        try:
            exc = future.exception()
            if exc:
                logger.error(f"Unhandled worker exception: {exc}")
            else:
                logger.debug(f"Execution unit finished: {future.result()}")
        except Exception as e:
            logger.error(f"Callback error: {e}")
