"""
Provides a per-client request rate limiter, independent of the job admission gate.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

log = logging.getLogger(__name__)


@dataclass
class _Window:
    started_at: float
    count: int


class RequestRateLimiter:
    """
    Counts every request per client within a rolling window.

    A client's window opens with its first request and lasts `window_seconds`;
    the request that would exceed `max_requests` inside it is refused.
    """

    def __init__(
        self,
        max_requests: int = 30,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initializes the rate limiter.

        Args:
            max_requests: Requests allowed per client per window.
            window_seconds: Length of each client's window.
            clock: Monotonic time source, injectable for tests.
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, client_key: str) -> bool:
        """Records a request. Returns False if the client is over its limit."""
        with self._lock:
            now = self._clock()
            self._purge_expired(now)

            window = self._windows.get(client_key)
            if window is None:
                self._windows[client_key] = _Window(started_at=now, count=1)
                return True

            window.count += 1
            if window.count > self.max_requests:
                log.warning(
                    f"Rate limit exceeded for {client_key} "
                    f"({window.count} requests in {self.window_seconds:.0f}s)"
                )
                return False
            return True

    def count(self, client_key: str) -> int:
        with self._lock:
            window = self._windows.get(client_key)
            return window.count if window else 0

    def _purge_expired(self, now: float) -> None:
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at > self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
