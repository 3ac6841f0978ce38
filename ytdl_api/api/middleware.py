"""
aiohttp middlewares: error mapping, rate limiting, request logging and CORS.
"""

import logging
from typing import Awaitable, Callable

from aiohttp import web
from pydantic import ValidationError

from ytdl_api.exceptions import CapacityError, RateLimitExceededError, YtdlApiError
from ytdl_api.utils.structured_logger import HttpEventLogger

from .rate_limiter import RequestRateLimiter
from .state import CONFIG, client_key

log = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@web.middleware
async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=CORS_HEADERS)
    response = await handler(request)
    if not response.prepared:
        response.headers.update(CORS_HEADERS)
    return response


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Maps exceptions that escape a handler onto JSON error responses."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except ValidationError as e:
        return web.json_response(
            {
                "error": "Validation error",
                "details": [
                    {
                        "field": ".".join(str(part) for part in err["loc"]),
                        "message": err["msg"],
                    }
                    for err in e.errors()
                ],
            },
            status=400,
        )
    except CapacityError as e:
        return web.json_response(
            {"error": e.title, "message": str(e)},
            status=e.status_code,
        )
    except YtdlApiError as e:
        level = logging.ERROR if e.status_code >= 500 else logging.INFO
        log.log(level, f"{request.method} {request.path} failed: {e}")
        return web.json_response({"error": str(e)}, status=e.status_code)
    except Exception as e:
        log.error(f"Unhandled error on {request.method} {request.path}: {e}", exc_info=True)
        body = {"error": "Internal server error"}
        if request.app[CONFIG].is_development:
            body["message"] = str(e)
        return web.json_response(body, status=500)


def rate_limit_middleware(limiter: RequestRateLimiter, events: HttpEventLogger):
    """Refuses clients that exceed the per-window request budget."""

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        client = client_key(request)
        if not limiter.hit(client):
            events.rate_limited(client, limiter.count(client), "requests")
            raise RateLimitExceededError("Please try again later")
        return await handler(request)

    return middleware


def request_logging_middleware(events: HttpEventLogger):
    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        events.request_received(request.method, request.path, client_key(request))
        return await handler(request)

    return middleware
