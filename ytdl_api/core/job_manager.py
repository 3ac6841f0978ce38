"""
The orchestrator that admits download jobs and runs each one as a background task.
"""

import asyncio
import functools
import logging
import time
from pathlib import Path
from typing import Dict, Optional

from ytdl_api.exceptions import (
    ArtifactMissingError,
    ConcurrencyLimitError,
    FileIntegrityError,
    RetrieverError,
)
from ytdl_api.media import FileIntegrityChecker, ProcessRunner, VideoInfo
from ytdl_api.models.config import ServerConfig
from ytdl_api.models.job import JobStatus, MediaFormat
from ytdl_api.storage.job_store import JobStore
from ytdl_api.utils.path import remove_job_files
from ytdl_api.utils.structured_logger import JobEventLogger

from .gate import ConcurrencyGate
from .retry import RetryPolicy

log = logging.getLogger(__name__)


class JobManager:
    """
    Orchestrates the lifecycle of every download job.

    `submit` returns as soon as the job is recorded; the retrieval runs in its
    own task and reports back only through the store's transition API. The
    client's admission slot is released when that task resolves, however it
    resolves.
    """

    def __init__(
        self,
        config: ServerConfig,
        store: JobStore,
        gate: ConcurrencyGate,
        runner: ProcessRunner,
        retry_policy: RetryPolicy,
        events: Optional[JobEventLogger] = None,
    ):
        self.config = config
        self.store = store
        self.gate = gate
        self.runner = runner
        self.retry_policy = retry_policy
        self._events = events
        self._tasks: Dict[str, asyncio.Task] = {}

    @classmethod
    def from_config(
        cls, config: ServerConfig, events: Optional[JobEventLogger] = None
    ) -> "JobManager":
        """Wires the default store, gate, runner and retry policy for a config."""
        store = JobStore(
            config.downloads_dir,
            completed_grace_seconds=config.completed_grace_seconds,
            failed_grace_seconds=config.failed_grace_seconds,
            events=events,
        )
        runner = ProcessRunner.from_config(config)
        return cls(
            config,
            store,
            ConcurrencyGate(config.max_concurrent_downloads),
            runner,
            RetryPolicy.from_config(config, runner, events=events),
            events=events,
        )

    @property
    def active_jobs(self) -> int:
        return len(self._tasks)

    def submit(
        self,
        client_key: str,
        locator: str,
        media_format: MediaFormat,
        quality: str,
        title: Optional[str] = None,
    ) -> str:
        """
        Admits and starts a new job, returning its ID immediately.

        Raises:
            ConcurrencyLimitError: The client already has the maximum number of
                jobs in flight. No record is created.
        """
        if not self.gate.try_admit(client_key):
            raise ConcurrencyLimitError(
                f"Maximum {self.gate.max_concurrent} concurrent downloads per client"
            )

        try:
            job_id = self.store.create(locator, media_format, quality, title=title)
            task = asyncio.create_task(self._execute(job_id), name=f"job-{job_id}")
        except BaseException:
            self.gate.release(client_key)
            raise

        self._tasks[job_id] = task
        task.add_done_callback(
            functools.partial(self._on_task_done, job_id, client_key)
        )
        return job_id

    async def wait(self, job_id: str) -> None:
        """Waits until the job's task has resolved. Returns at once for unknown jobs."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.wait([task])

    async def fetch_info(self, locator: str) -> VideoInfo:
        return await self.runner.fetch_info(locator)

    async def shutdown(self) -> None:
        """Cancels in-flight jobs and waits for their tasks to unwind."""
        tasks = list(self._tasks.values())
        if not tasks:
            return
        log.info(f"Cancelling {len(tasks)} in-flight job(s)...")
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _on_task_done(self, job_id: str, client_key: str, task: asyncio.Task) -> None:
        self._tasks.pop(job_id, None)
        self.gate.release(client_key)
        if task.cancelled():
            self._fail(job_id, "Download cancelled")

    async def _execute(self, job_id: str) -> None:
        job = self.store.record(job_id)
        if job is None or not self.store.transition(job_id, JobStatus.RUNNING):
            return

        started = time.monotonic()
        log.info(f"Job {job_id} started")
        try:
            path = await self.retry_policy.run(
                job.locator,
                job.media_format,
                job.quality,
                job.file_path,
                on_progress=functools.partial(self.store.update_progress, job_id),
                job_id=job_id,
            )
            await self._verify_artifact(path, job.media_format)
        except (RetrieverError, ArtifactMissingError, FileIntegrityError) as e:
            self._fail(job_id, str(e))
            return
        except Exception as e:
            log.error(
                f"Unexpected error in job {job_id}: {e}",
                exc_info=log.getEffectiveLevel() == logging.DEBUG,
            )
            self._fail(job_id, f"Unexpected error: {e}")
            return

        if not self.store.transition(job_id, JobStatus.COMPLETED):
            self._discard_orphan(job_id)
            return

        size = path.stat().st_size if path.is_file() else 0
        log.info(f"Job {job_id} completed")
        if self._events:
            self._events.job_completed(job_id, size, time.monotonic() - started)

    async def _verify_artifact(self, path: Path, media_format: MediaFormat) -> None:
        """A successful exit only counts if the file is really there (and valid)."""
        if not await asyncio.to_thread(path.is_file):
            raise ArtifactMissingError("yt-dlp reported success but produced no file")
        if self.config.verify_artifacts:
            valid = await asyncio.to_thread(FileIntegrityChecker.check, path, media_format)
            if not valid:
                raise FileIntegrityError("Downloaded file failed the integrity check")

    def _fail(self, job_id: str, error: str) -> None:
        if job_id not in self.store:
            self._discard_orphan(job_id)
            return
        if self.store.transition(job_id, JobStatus.FAILED, error=error):
            # A failed job keeps its record until cleanup, but none of its files.
            remove_job_files(self.store.downloads_dir, job_id)
            log.error(f"Job {job_id} failed: {error.splitlines()[-1] if error else ''}")
            if self._events:
                self._events.job_failed(job_id, error)

    def _discard_orphan(self, job_id: str) -> None:
        """The record was cleaned up while the job ran; its files belong to no one."""
        removed = remove_job_files(self.store.downloads_dir, job_id)
        if removed:
            log.warning(f"Removed {removed} orphaned file(s) of job {job_id}")
