"""
Per-job cleanup timers.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .job_store import JobStore

log = logging.getLogger(__name__)


class CleanupScheduler:
    """
    Owns the single cleanup timer each job may have.

    The timer handle lives on the job record itself, so removing the record
    and cancelling its timer happen together in `JobStore.cleanup`.
    """

    def __init__(self, store: "JobStore"):
        self._store = store

    def arm(self, job_id: str, delay: float) -> bool:
        """
        Schedules one cleanup of `job_id` after `delay` seconds.

        Re-arming replaces any pending timer. Returns False for unknown jobs.
        """
        job = self._store.record(job_id)
        if job is None:
            return False
        if job.cleanup_timer is not None:
            job.cleanup_timer.cancel()
        loop = asyncio.get_running_loop()
        job.cleanup_timer = loop.call_later(delay, self._store.cleanup, job_id)
        log.debug(f"Cleanup for job {job_id} scheduled in {delay:.0f}s")
        return True

    def cancel(self, job_id: str) -> None:
        job = self._store.record(job_id)
        if job is not None and job.cleanup_timer is not None:
            job.cleanup_timer.cancel()
            job.cleanup_timer = None

    def fire_now(self, job_id: str) -> None:
        """Cleans up immediately, bypassing the grace period."""
        self._store.cleanup(job_id)
