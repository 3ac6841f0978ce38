"""
Per-client admission control for in-flight download jobs.
"""

import logging
import threading

log = logging.getLogger(__name__)


class ConcurrencyGate:
    """
    Bounds how many jobs each client may have running at once.

    Advisory, not a lock: a denied caller must not start the job. Counters
    are only ever between zero and the ceiling.
    """

    def __init__(self, max_concurrent: int = 3):
        self.max_concurrent = max_concurrent
        self._counts: dict[str, int] = {}
        self._lock = threading.Lock()

    def try_admit(self, client_key: str) -> bool:
        """Increments the client's counter iff it is strictly below the ceiling."""
        with self._lock:
            current = self._counts.get(client_key, 0)
            if current >= self.max_concurrent:
                log.debug(
                    f"Admission denied for {client_key}: "
                    f"{current}/{self.max_concurrent} jobs in flight"
                )
                return False
            self._counts[client_key] = current + 1
            return True

    def release(self, client_key: str) -> None:
        """Decrements the client's counter, floored at zero."""
        with self._lock:
            current = self._counts.get(client_key, 0)
            if current <= 1:
                self._counts.pop(client_key, None)
            else:
                self._counts[client_key] = current - 1

    def active(self, client_key: str) -> int:
        with self._lock:
            return self._counts.get(client_key, 0)

    def clear(self) -> None:
        with self._lock:
            self._counts.clear()
