"""
Builds the aiohttp application and ties the job manager to its lifecycle.
"""

import logging
from typing import Optional

from aiohttp import web

from ytdl_api.core.job_manager import JobManager
from ytdl_api.models.config import ServerConfig
from ytdl_api.utils.path import sweep_directory
from ytdl_api.utils.structured_logger import create_structured_logger

from .middleware import (
    cors_middleware,
    error_middleware,
    rate_limit_middleware,
    request_logging_middleware,
)
from .rate_limiter import RequestRateLimiter
from .routes import routes
from .state import CONFIG, EVENT_LOG, HTTP_EVENTS, JOB_MANAGER

log = logging.getLogger(__name__)


def create_app(
    config: ServerConfig, manager: Optional[JobManager] = None
) -> web.Application:
    """
    Assembles the application for a configuration.

    Args:
        config: Validated server configuration.
        manager: A pre-built job manager. One is wired from `config` if omitted.
    """
    event_log, job_events, http_events = create_structured_logger(
        config.log_dir,
        enable_json=config.log_dir is not None,
        enable_console=config.is_development,
    )
    if manager is None:
        manager = JobManager.from_config(config, events=job_events)
    limiter = RequestRateLimiter(config.max_requests, config.window_seconds)

    app = web.Application(
        middlewares=[
            cors_middleware,
            error_middleware,
            request_logging_middleware(http_events),
            rate_limit_middleware(limiter, http_events),
        ]
    )
    app[CONFIG] = config
    app[JOB_MANAGER] = manager
    app[HTTP_EVENTS] = http_events
    app[EVENT_LOG] = event_log
    app.add_routes(routes)
    app.on_startup.append(_prepare_downloads_dir)
    app.on_cleanup.append(_shutdown_jobs)
    return app


async def _prepare_downloads_dir(app: web.Application) -> None:
    sweep_directory(app[CONFIG].downloads_dir)
    log.info(
        f"Server ready ({app[CONFIG].environment}), "
        f"{app[CONFIG].max_concurrent_downloads} concurrent downloads per client"
    )


async def _shutdown_jobs(app: web.Application) -> None:
    manager = app[JOB_MANAGER]
    await manager.shutdown()
    manager.store.clear()
    app[EVENT_LOG].close()
    log.info("All jobs cleaned up")
