"""
HTTP surface of the service: the aiohttp application, its routes and middlewares.
"""

from .app import create_app
from .rate_limiter import RequestRateLimiter

__all__ = ["create_app", "RequestRateLimiter"]
