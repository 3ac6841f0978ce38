"""
Data Models Layer.

This package contains the job records, the Pydantic request models and the
server configuration model used throughout the application.
"""

from .config import ServerConfig
from .job import Artifact, Job, JobStatus, JobView, MediaFormat
from .requests import DownloadRequest

__all__ = [
    "Artifact",
    "DownloadRequest",
    "Job",
    "JobStatus",
    "JobView",
    "MediaFormat",
    "ServerConfig",
]
