"""
Core application engine for orchestrating download jobs.

This package contains the primary logic. The `JobManager` admits jobs through
the `ConcurrencyGate` and runs each one through the `RetryPolicy`, which
drives the yt-dlp `ProcessRunner`.
"""

from .gate import ConcurrencyGate
from .job_manager import JobManager
from .retry import RetryPolicy, RetryState

__all__ = ["ConcurrencyGate", "JobManager", "RetryPolicy", "RetryState"]
