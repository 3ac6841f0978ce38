"""
The authoritative in-memory table of download jobs.
"""

import logging
import time
import uuid
from pathlib import Path
from typing import Dict, Optional

from ytdl_api.models.job import Artifact, Job, JobStatus, JobView, MediaFormat
from ytdl_api.utils.path import build_artifact_filename, extract_video_id, remove_job_files
from ytdl_api.utils.structured_logger import JobEventLogger

from .cleanup import CleanupScheduler

log = logging.getLogger(__name__)

_LEGAL_TRANSITIONS: Dict[JobStatus, frozenset] = {
    JobStatus.PENDING: frozenset({JobStatus.RUNNING, JobStatus.FAILED}),
    JobStatus.RUNNING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


class JobStore:
    """
    Owns every job record, its state transitions and its cleanup timer.

    All methods are synchronous, so each one is atomic with respect to other
    tasks on the event loop. State is deliberately ephemeral.
    """

    def __init__(
        self,
        downloads_dir: Path,
        completed_grace_seconds: float = 300.0,
        failed_grace_seconds: float = 60.0,
        events: Optional[JobEventLogger] = None,
    ):
        """
        Initializes the store.

        Args:
            downloads_dir: Flat directory shared by every job's artifact.
            completed_grace_seconds: How long a finished artifact waits for its reader.
            failed_grace_seconds: How long a failed job stays queryable.
            events: Optional structured event sink.
        """
        self.downloads_dir = downloads_dir
        self.completed_grace_seconds = completed_grace_seconds
        self.failed_grace_seconds = failed_grace_seconds
        self.scheduler = CleanupScheduler(self)
        self._jobs: Dict[str, Job] = {}
        self._events = events

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    def create(
        self,
        locator: str,
        media_format: MediaFormat,
        quality: str,
        title: Optional[str] = None,
    ) -> str:
        """Allocates a pending job and returns its ID."""
        job_id = uuid.uuid4().hex
        display_name = title or extract_video_id(locator) or "video"
        filename = build_artifact_filename(display_name, job_id, media_format.extension)

        self._jobs[job_id] = Job(
            job_id=job_id,
            locator=locator,
            media_format=media_format,
            quality=quality,
            file_path=self.downloads_dir / filename,
            filename=filename,
        )
        log.info(f"Job {job_id} created ({media_format.value} {quality}) for {locator}")
        if self._events:
            self._events.job_created(job_id, locator, media_format.value, quality)
        return job_id

    def get(self, job_id: str) -> Optional[JobView]:
        job = self._jobs.get(job_id)
        return JobView.from_job(job) if job else None

    def record(self, job_id: str) -> Optional[Job]:
        """The mutable record itself. For the store's collaborators only."""
        return self._jobs.get(job_id)

    def transition(
        self, job_id: str, new_status: JobStatus, *, error: Optional[str] = None
    ) -> bool:
        """
        Moves a job along pending -> running -> completed | failed.

        Illegal moves and unknown IDs are rejected (False) without touching
        state. Reaching a terminal state arms the cleanup timer.
        """
        job = self._jobs.get(job_id)
        if job is None:
            log.debug(f"Ignoring transition of unknown job {job_id} to {new_status.value}")
            return False
        if new_status not in _LEGAL_TRANSITIONS[job.status]:
            log.warning(
                f"Rejected illegal transition of job {job_id}: "
                f"{job.status.value} -> {new_status.value}"
            )
            return False

        job.status = new_status
        if new_status is JobStatus.COMPLETED:
            job.progress = 100
        elif new_status is JobStatus.FAILED:
            job.error = error or "Download failed"

        if new_status.is_terminal:
            job.finished_at = time.time()
            grace = (
                self.completed_grace_seconds
                if new_status is JobStatus.COMPLETED
                else self.failed_grace_seconds
            )
            self.scheduler.arm(job_id, grace)
        return True

    def update_progress(self, job_id: str, value: float) -> Optional[int]:
        """
        Records a progress report for a running job.

        Values are clamped to [0, 100] and never move backwards. Returns the
        stored progress, or None if the job is not running.
        """
        job = self._jobs.get(job_id)
        if job is None or job.status is not JobStatus.RUNNING:
            return None
        clamped = int(min(100.0, max(0.0, value)))
        if clamped > job.progress:
            job.progress = clamped
            log.debug(f"Job {job_id} progress {clamped}%")
        return job.progress

    def artifact(self, job_id: str) -> Optional[Artifact]:
        """The deliverable file of a completed job, if it is still on disk."""
        job = self._jobs.get(job_id)
        if job is None or job.status is not JobStatus.COMPLETED:
            return None
        if job.claimed:
            return None
        if not job.file_path.is_file():
            return None
        return Artifact(
            job_id=job_id,
            path=job.file_path,
            filename=job.filename,
            mime_type=job.media_format.mime_type,
        )

    def claim_artifact(self, job_id: str) -> Optional[Artifact]:
        """
        Hands the artifact to exactly one consumer.

        The first call returns the artifact and marks the job as delivered;
        every later call returns None, as if the file were already gone.
        """
        artifact = self.artifact(job_id)
        if artifact is not None:
            self._jobs[job_id].claimed = True
        return artifact

    def cleanup(self, job_id: str) -> None:
        """
        Deletes the job's files, cancels its timer and forgets the record.

        Idempotent: unknown or already-removed IDs are a no-op.
        """
        self.scheduler.cancel(job_id)
        if self._jobs.pop(job_id, None) is None:
            return

        removed = remove_job_files(self.downloads_dir, job_id)
        log.info(f"Job {job_id} cleaned up ({removed} file(s) deleted)")
        if self._events:
            self._events.job_cleaned(job_id, removed)

    def clear(self) -> None:
        """Cleans up every job, leaving the downloads directory empty of artifacts."""
        for job_id in list(self._jobs):
            self.cleanup(job_id)
