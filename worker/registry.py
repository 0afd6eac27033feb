"""
In-process registry of running jobs and their cancellation handles.

Each admitted job gets a threading.Event here. Cancelling a job sets the
event; the job's execution unit checks it between progress steps (and
waits on it between steps), so cancellation is cooperative: the unit
stops at its next checkpoint, never mid-write.

The registry lives only as long as the process. One instance is created
per running service (see api/main.py) and handed to the orchestrator.
The lock guards the dict only and is never held while doing I/O.
"""

import logging
import threading
import uuid

from worker.errors import DuplicateJobError

logger = logging.getLogger(__name__)


class JobRegistry:

    def __init__(self):
        self._handles: dict[uuid.UUID, threading.Event] = {}
        self._lock = threading.Lock()

    def track(self, job_id: uuid.UUID) -> threading.Event:
        """Register a fresh cancellation handle for a new job."""
        with self._lock:
            if job_id in self._handles:
                duplicate = True
            else:
                duplicate = False
                handle = threading.Event()
                self._handles[job_id] = handle

        if duplicate:
            logger.error(f"Job {job_id} is already tracked, refusing to start a second execution")
            raise DuplicateJobError(job_id)
        return handle

    def cancel(self, job_id: uuid.UUID) -> bool:
        """
        Signal the job's handle and forget it.

        Returns True if a live job was found. Does not wait for the
        execution unit to notice.
        """
        with self._lock:
            handle = self._handles.pop(job_id, None)
        if handle is None:
            return False
        handle.set()
        return True

    def untrack(self, job_id: uuid.UUID) -> None:
        with self._lock:
            self._handles.pop(job_id, None)

    def is_tracked(self, job_id: uuid.UUID) -> bool:
        with self._lock:
            return job_id in self._handles

    def active_count(self) -> int:
        with self._lock:
            return len(self._handles)

    def cancel_all(self) -> int:
        """Signal every tracked job. Used on shutdown."""
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            handle.set()
        return len(handles)
