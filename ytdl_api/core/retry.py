"""
Retries transient yt-dlp failures with exponential backoff and a fresh client identity.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence

from ytdl_api.exceptions import RetrieverError
from ytdl_api.media.retriever import ProcessRunner, ProgressCallback
from ytdl_api.models.config import ServerConfig
from ytdl_api.models.job import MediaFormat
from ytdl_api.utils.structured_logger import JobEventLogger

log = logging.getLogger(__name__)


@dataclass
class RetryState:
    """Bookkeeping for one RetryPolicy.run call; discarded once the job resolves."""

    attempt: int = 0
    next_delay: float = 0.0
    last_error: Optional[RetrieverError] = None


class RetryPolicy:
    """
    Wraps ProcessRunner with up to `max_retries` additional attempts.

    Only failures classified as transient are retried. The delay before retry
    n (1-indexed) is `base_delay * 2**(n - 1)`. When the policy gives up, the
    last attempt's error is raised; earlier diagnostics are only logged.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        max_retries: int = 3,
        base_delay: float = 1.0,
        identities: Optional[Sequence[str]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        choose_identity: Callable[[Sequence[str]], str] = random.choice,
        events: Optional[JobEventLogger] = None,
    ):
        self.runner = runner
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.identities = list(identities or runner.user_agents)
        self._sleep = sleep
        self._choose_identity = choose_identity
        self._events = events

    @classmethod
    def from_config(
        cls,
        config: ServerConfig,
        runner: ProcessRunner,
        events: Optional[JobEventLogger] = None,
    ) -> "RetryPolicy":
        return cls(
            runner,
            max_retries=config.max_retries,
            base_delay=config.retry_delay,
            identities=config.user_agents,
            events=events,
        )

    def delay_for(self, retry: int) -> float:
        """Backoff before the given 1-indexed retry."""
        return self.base_delay * (2 ** (retry - 1))

    async def run(
        self,
        locator: str,
        media_format: MediaFormat,
        quality: str,
        destination: Path,
        on_progress: Optional[ProgressCallback] = None,
        job_id: str = "-",
    ) -> Path:
        state = RetryState()
        while True:
            state.attempt += 1
            try:
                return await self.runner.run(
                    locator,
                    media_format,
                    quality,
                    destination,
                    on_progress=on_progress,
                    user_agent=self._choose_identity(self.identities),
                )
            except RetrieverError as e:
                state.last_error = e
                if self._events:
                    self._events.attempt_failed(
                        job_id, state.attempt, e.transient, e.exit_code, str(e)
                    )
                retry = state.attempt
                if not e.transient or retry > self.max_retries:
                    raise

            state.next_delay = self.delay_for(retry)
            log.info(
                f"Retrying job {job_id} after transient failure "
                f"(retry {retry}/{self.max_retries}, waiting {state.next_delay:.1f}s)"
            )
            if self._events:
                self._events.retry_scheduled(job_id, retry, state.next_delay)
            await self._sleep(state.next_delay)
