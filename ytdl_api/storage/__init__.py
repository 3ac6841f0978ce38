"""
Storage Layer.

This package holds the in-memory job table with its cleanup timers, and the
loading of configuration files.
"""

from .cleanup import CleanupScheduler
from .config_manager import ConfigManager
from .job_store import JobStore

__all__ = ["CleanupScheduler", "ConfigManager", "JobStore"]
