"""
Data structures describing download jobs and the formats they can produce.
"""

import asyncio
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class JobStatus(str, Enum):
    """
    Lifecycle of a download job.

    pending -> running -> completed | failed. Terminal states never change.
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class MediaFormat(str, Enum):
    """Output container requested by the client."""

    MP3 = "mp3"
    MP4 = "mp4"

    @classmethod
    def parse(cls, value: str) -> "MediaFormat":
        """Accepts a container name or one of the 'audio' / 'video' aliases."""
        normalized = str(value).strip().lower()
        aliases = {"audio": cls.MP3, "video": cls.MP4}
        if normalized in aliases:
            return aliases[normalized]
        return cls(normalized)

    @property
    def extension(self) -> str:
        return self.value

    @property
    def mime_type(self) -> str:
        return "audio/mpeg" if self is MediaFormat.MP3 else "video/mp4"

    @property
    def quality_pattern(self) -> re.Pattern:
        return AUDIO_QUALITY_RE if self is MediaFormat.MP3 else VIDEO_QUALITY_RE


AUDIO_QUALITY_RE = re.compile(r"^\d+kbps$")
VIDEO_QUALITY_RE = re.compile(r"^\d+p$")


@dataclass
class Job:
    """
    The authoritative in-memory record of one download job.

    Only the job's own execution task mutates `status` and `progress`; the
    cleanup timer handle is private to the store and never leaves it.
    """

    job_id: str
    locator: str
    media_format: MediaFormat
    quality: str
    file_path: Path
    filename: str
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    error: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None
    claimed: bool = False
    cleanup_timer: Optional[asyncio.TimerHandle] = field(default=None, repr=False)


@dataclass(frozen=True)
class JobView:
    """A read-only snapshot of a job, safe to hand to HTTP handlers."""

    job_id: str
    status: JobStatus
    progress: int
    error: Optional[str]
    artifact_ready: bool

    @classmethod
    def from_job(cls, job: Job) -> "JobView":
        return cls(
            job_id=job.job_id,
            status=job.status,
            progress=job.progress,
            error=job.error,
            artifact_ready=(
                job.status is JobStatus.COMPLETED
                and not job.claimed
                and job.file_path.is_file()
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "jobId": self.job_id,
            "status": self.status.value,
            "progress": self.progress,
            "error": self.error,
        }


@dataclass(frozen=True)
class Artifact:
    """Everything the delivery path needs to stream a finished file."""

    job_id: str
    path: Path
    filename: str
    mime_type: str
