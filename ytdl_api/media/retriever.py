"""
Runs yt-dlp as a subprocess, streaming its progress and classifying its failures.
"""

import asyncio
import json
import logging
import random
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ytdl_api.exceptions import RetrieverError, RetrieverNotFoundError
from ytdl_api.media.info import VideoInfo, parse_video_info
from ytdl_api.media.progress import ProgressDecoder
from ytdl_api.models.config import DEFAULT_USER_AGENTS, ServerConfig
from ytdl_api.models.job import MediaFormat
from ytdl_api.utils.formatting import truncate_tail

log = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

MAX_DIAGNOSTIC_CHARS = 4000
READ_CHUNK_SIZE = 4096

# Anti-scraping throttling shows up as HTTP 403; a different identity may get through.
_TRANSIENT_PATTERNS: tuple[str, ...] = ("403", "forbidden")


class FailureClass(str, Enum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"


def classify_failure(exit_code: int, stderr: str) -> FailureClass:
    """Classifies a failed invocation from its diagnostic text."""
    haystack = stderr.lower()
    for pattern in _TRANSIENT_PATTERNS:
        if pattern in haystack:
            return FailureClass.TRANSIENT
    return FailureClass.PERMANENT


class ProcessRunner:
    """
    Wraps a single invocation of the yt-dlp executable.

    The executable is a black box: only its exit code, its stdout progress
    lines and its stderr diagnostics are observed.
    """

    def __init__(
        self,
        command: Sequence[str] = ("yt-dlp",),
        user_agents: Sequence[str] = DEFAULT_USER_AGENTS,
        extractor_args: str = "youtube:player_client=android,web",
        terminate_timeout: float = 2.0,
    ):
        """
        Initializes the runner.

        Args:
            command: The executable (and any leading arguments) to invoke.
            user_agents: Pool of client identities; one is drawn per invocation.
            extractor_args: Value passed through to yt-dlp's --extractor-args.
            terminate_timeout: Seconds to wait after SIGTERM before killing.
        """
        self.command: List[str] = list(command)
        self.user_agents: List[str] = list(user_agents)
        self.extractor_args = extractor_args
        self.terminate_timeout = terminate_timeout

    @classmethod
    def from_config(cls, config: ServerConfig) -> "ProcessRunner":
        return cls(
            command=config.retriever_command,
            user_agents=config.user_agents,
            extractor_args=config.extractor_args,
        )

    def random_user_agent(self) -> str:
        return random.choice(self.user_agents)

    def build_download_args(
        self,
        locator: str,
        media_format: MediaFormat,
        quality: str,
        output_path: Path,
        user_agent: str,
    ) -> List[str]:
        args = [
            "--no-playlist",
            "--user-agent",
            user_agent,
            "--newline",
            "-o",
            str(output_path),
            "--extractor-args",
            self.extractor_args,
            "--no-check-certificate",
            "--prefer-free-formats",
        ]

        if media_format is MediaFormat.MP3:
            bitrate = quality.removesuffix("kbps")
            args += [
                "-f",
                "bestaudio",
                "-x",
                "--audio-format",
                "mp3",
                "--audio-quality",
                f"{bitrate}K",
            ]
        else:
            height = quality.removesuffix("p")
            args += [
                "-f",
                f"bestvideo[height<={height}]+bestaudio/best[height<={height}]",
                "--merge-output-format",
                "mp4",
            ]

        args.append(locator)
        return args

    def build_info_args(self, locator: str, user_agent: str) -> List[str]:
        return [
            "--dump-json",
            "--no-playlist",
            "--user-agent",
            user_agent,
            "--extractor-args",
            self.extractor_args,
            "--no-check-certificate",
            locator,
        ]

    async def run(
        self,
        locator: str,
        media_format: MediaFormat,
        quality: str,
        destination: Path,
        on_progress: Optional[ProgressCallback] = None,
        user_agent: Optional[str] = None,
    ) -> Path:
        """
        Invokes yt-dlp exactly once and resolves with the destination path.

        Raises:
            RetrieverError: On a non-zero exit, classified transient or permanent.
                A partial file may remain at `destination`.
            RetrieverNotFoundError: If the executable cannot be started.
        """
        args = self.build_download_args(
            locator,
            media_format,
            quality,
            destination,
            user_agent or self.random_user_agent(),
        )
        log.debug(f"Starting yt-dlp for {locator} -> '{destination.name}'")

        process = await self._spawn(args)
        try:
            _, stderr_bytes = await asyncio.gather(
                self._pump_progress(process.stdout, on_progress),
                process.stderr.read(),
            )
            returncode = await process.wait()
        except asyncio.CancelledError:
            await self._terminate(process)
            raise

        if returncode != 0:
            stderr = stderr_bytes.decode("utf-8", errors="replace").strip()
            failure = classify_failure(returncode, stderr)
            raise RetrieverError(
                truncate_tail(stderr, MAX_DIAGNOSTIC_CHARS) or "Download failed",
                transient=failure is FailureClass.TRANSIENT,
                exit_code=returncode,
            )

        log.debug(f"yt-dlp finished '{destination.name}'")
        return destination

    async def fetch_info(self, locator: str) -> VideoInfo:
        """Runs yt-dlp in --dump-json mode and parses the available formats."""
        process = await self._spawn(
            self.build_info_args(locator, self.random_user_agent())
        )
        try:
            stdout, stderr_bytes = await process.communicate()
        except asyncio.CancelledError:
            await self._terminate(process)
            raise

        if process.returncode != 0:
            stderr = stderr_bytes.decode("utf-8", errors="replace").strip()
            raise RetrieverError(
                "Failed to get video info: "
                + truncate_tail(stderr, MAX_DIAGNOSTIC_CHARS),
                transient=classify_failure(process.returncode, stderr)
                is FailureClass.TRANSIENT,
                exit_code=process.returncode,
            )

        try:
            info = json.loads(stdout.decode("utf-8", errors="replace"))
        except json.JSONDecodeError as e:
            log.debug(f"Unparseable yt-dlp info output for {locator}: {e}")
            raise RetrieverError("Failed to parse video info") from e
        if not isinstance(info, dict):
            raise RetrieverError("Failed to parse video info")
        return parse_video_info(info)

    async def _spawn(self, args: List[str]) -> asyncio.subprocess.Process:
        try:
            return await asyncio.create_subprocess_exec(
                *self.command,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            log.error(f"yt-dlp executable not found: {self.command[0]}")
            raise RetrieverNotFoundError() from e
        except OSError as e:
            raise RetrieverError(f"yt-dlp failed to start: {e}") from e

    async def _pump_progress(
        self, stream: asyncio.StreamReader, on_progress: Optional[ProgressCallback]
    ) -> None:
        decoder = ProgressDecoder()
        while chunk := await stream.read(READ_CHUNK_SIZE):
            self._report(decoder.feed(chunk), on_progress)
        self._report(decoder.finish(), on_progress)

    @staticmethod
    def _report(values: List[float], on_progress: Optional[ProgressCallback]) -> None:
        if on_progress is None:
            return
        for value in values:
            on_progress(value)

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """Stops a still-running subprocess: SIGTERM, then SIGKILL after a timeout."""
        if process.returncode is not None:
            return
        try:
            process.terminate()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(process.wait(), timeout=self.terminate_timeout)
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                return
            await process.wait()
