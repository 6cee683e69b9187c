"""
Job registry for batch runs.

One job may run at a time; sources can be flagged for cancellation while it
runs. The registry is an ordinary object: create one and pass it to
whatever runs jobs. Methods are guarded by a lock so a registry can be
shared across threads.
"""

import threading
from datetime import datetime
from typing import Optional

from .exceptions import JobConflictError
from .logger import get_module_logger

logger = get_module_logger("jobs")


class JobRegistry:
    """Tracks the active job and per-source cancellation flags."""

    def __init__(self):
        self._lock = threading.Lock()
        self._active_job: Optional[str] = None
        self._started_at: Optional[datetime] = None
        self._cancelled: set[str] = set()

    @property
    def active_job(self) -> Optional[str]:
        with self._lock:
            return self._active_job

    def is_running(self) -> bool:
        return self.active_job is not None

    def start(self, job_id: str) -> None:
        """
        Mark ``job_id`` as the running job.

        Raises:
            JobConflictError: another job is still running
        """
        with self._lock:
            if self._active_job is not None:
                raise JobConflictError(
                    f"Job '{self._active_job}' is already running",
                    active_job=self._active_job,
                    details={"requested_job": job_id,
                             "started_at": self._started_at.isoformat()}
                )
            self._active_job = job_id
            self._started_at = datetime.now()
        logger.info(f"Job started: {job_id}")

    def finish(self, job_id: str) -> None:
        """Release the registry. Finishing a job that is not active is a no-op."""
        with self._lock:
            if self._active_job != job_id:
                logger.warning(f"Ignoring finish for inactive job: {job_id}")
                return
            self._active_job = None
            self._started_at = None
            self._cancelled.clear()
        logger.info(f"Job finished: {job_id}")

    def cancel(self, source: str) -> None:
        with self._lock:
            self._cancelled.add(source)
        logger.info(f"Cancellation requested for source: {source}")

    def is_cancelled(self, source: str) -> bool:
        with self._lock:
            return source in self._cancelled
