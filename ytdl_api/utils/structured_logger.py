"""
Structured logging system for better log analysis and debugging.
Provides JSON-formatted job and request events with context and metadata.
"""

import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any


class StructuredLogger:
    """
    Enhanced logger that outputs both human-readable and machine-parseable logs.

    Usage:
        logger = StructuredLogger("ytdl_api")
        logger.info("job_completed",
                    job_id="3f2a...",
                    media_format="mp4",
                    duration_s=12.4)
    """

    def __init__(
        self,
        name: str,
        log_dir: Path | None = None,
        enable_json: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            log_dir: Directory for JSON log files (None = disabled)
            enable_json: Enable JSON file logging
            enable_console: Enable console output
        """
        self.name = name
        self.log_dir = log_dir
        self.enable_json = enable_json and log_dir is not None
        self.enable_console = enable_console

        self._logger = logging.getLogger(name)

        self._json_file = None
        if self.enable_json:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            json_log_path = log_dir / f"ytdl_api_{timestamp}.jsonl"
            self._json_file = open(json_log_path, "a", encoding="utf-8")  # noqa: SIM115

        # Session context (added to all log entries)
        self._session_context: dict[str, Any] = {
            "session_id": f"{int(time.time())}_{id(self)}",
            "start_time": datetime.now().isoformat(),
        }

    def _format_message(self, event: str, **context) -> str:
        """Format message for console output."""
        parts = [f"[{event}]"]
        for key, value in context.items():
            if key not in ("level", "timestamp"):
                parts.append(f"{key}={value}")
        return " ".join(parts)

    def _write_json(self, level: str, event: str, **context) -> None:
        """Write structured log entry to JSON file."""
        if not self._json_file or self._json_file.closed:
            return

        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event,
            **self._session_context,
            **context,
        }

        try:
            self._json_file.write(json.dumps(entry, default=str) + "\n")
            self._json_file.flush()
        except (OSError, TypeError, ValueError) as e:
            print(f"JSON logging failed: {e}", file=sys.stderr)

    def _emit(self, level: int, event: str, **context) -> None:
        if self.enable_console:
            self._logger.log(level, self._format_message(event, **context))
        if self.enable_json:
            self._write_json(logging.getLevelName(level), event, **context)

    def debug(self, event: str, **context) -> None:
        """Log debug event."""
        self._emit(logging.DEBUG, event, **context)

    def info(self, event: str, **context) -> None:
        """Log info event."""
        self._emit(logging.INFO, event, **context)

    def warning(self, event: str, **context) -> None:
        """Log warning event."""
        self._emit(logging.WARNING, event, **context)

    def error(self, event: str, **context) -> None:
        """Log error event."""
        self._emit(logging.ERROR, event, **context)

    def close(self) -> None:
        """Close JSON log file."""
        if self._json_file and not self._json_file.closed:
            self._json_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class JobEventLogger:
    """Specialized logger for job lifecycle events."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def job_created(self, job_id: str, locator: str, media_format: str, quality: str):
        self.logger.info(
            "job_created",
            job_id=job_id,
            locator=locator,
            media_format=media_format,
            quality=quality,
        )

    def attempt_failed(
        self, job_id: str, attempt: int, transient: bool, exit_code: int | None, error: str
    ):
        """Log one failed retriever invocation, including ones later retried."""
        self.logger.warning(
            "attempt_failed",
            job_id=job_id,
            attempt=attempt,
            transient=transient,
            exit_code=exit_code,
            error=error,
        )

    def retry_scheduled(self, job_id: str, retry: int, delay_s: float):
        self.logger.info("retry_scheduled", job_id=job_id, retry=retry, delay_s=delay_s)

    def job_completed(self, job_id: str, size_bytes: int, duration_s: float):
        self.logger.info(
            "job_completed",
            job_id=job_id,
            size_bytes=size_bytes,
            size_mb=round(size_bytes / (1024 * 1024), 2),
            duration_s=round(duration_s, 2),
        )

    def job_failed(self, job_id: str, error: str):
        self.logger.error("job_failed", job_id=job_id, error=error)

    def job_cleaned(self, job_id: str, files_removed: int):
        self.logger.info("job_cleaned", job_id=job_id, files_removed=files_removed)


class HttpEventLogger:
    """Specialized logger for HTTP request events."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def request_received(self, method: str, path: str, client: str):
        self.logger.debug("request_received", method=method, path=path, client=client)

    def rate_limited(self, client: str, count: int, limit_kind: str):
        self.logger.warning(
            "rate_limited", client=client, count=count, limit_kind=limit_kind
        )

    def artifact_streamed(self, job_id: str, size_bytes: int, completed: bool):
        self.logger.info(
            "artifact_streamed",
            job_id=job_id,
            size_bytes=size_bytes,
            completed=completed,
        )


def create_structured_logger(
    log_dir: Path | None = None, enable_json: bool = False, enable_console: bool = True
) -> tuple[StructuredLogger, JobEventLogger, HttpEventLogger]:
    """
    Create all structured loggers.

    Returns:
        Tuple of (base_logger, job_logger, http_logger)
    """
    base = StructuredLogger(
        "ytdl_api.events",
        log_dir=log_dir,
        enable_json=enable_json,
        enable_console=enable_console,
    )
    return base, JobEventLogger(base), HttpEventLogger(base)
