"""
Typed keys for objects shared through the aiohttp application.
"""

from aiohttp import web

from ytdl_api.core.job_manager import JobManager
from ytdl_api.models.config import ServerConfig
from ytdl_api.utils.structured_logger import HttpEventLogger, StructuredLogger

CONFIG = web.AppKey("config", ServerConfig)
JOB_MANAGER = web.AppKey("job_manager", JobManager)
HTTP_EVENTS = web.AppKey("http_events", HttpEventLogger)
EVENT_LOG = web.AppKey("event_log", StructuredLogger)


def client_key(request: web.Request) -> str:
    """Identifies the client for rate limiting and admission control."""
    return request.remote or "unknown"
