"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class YtdlApiError(Exception):
    """Base exception for all application-specific errors."""

    status_code: int = 500


class ConfigurationError(YtdlApiError):
    """Raised for issues related to configuration loading or validation."""


class CapacityError(YtdlApiError):
    """Raised when a client exceeds one of the admission limits."""

    status_code = 429
    title = "Too many requests"


class RateLimitExceededError(CapacityError):
    """Raised when a client sends more requests than the window allows."""


class ConcurrencyLimitError(CapacityError):
    """Raised when a client already has the maximum number of jobs in flight."""

    title = "Too many concurrent downloads"


class JobNotFoundError(YtdlApiError):
    """Raised when a job ID is unknown or its record has already been cleaned up."""

    status_code = 404


class RetrieverError(YtdlApiError):
    """
    Raised when a yt-dlp invocation fails.

    `transient` marks failures worth retrying with a different client identity.
    """

    def __init__(self, message: str, *, transient: bool = False, exit_code: int | None = None):
        super().__init__(message)
        self.transient = transient
        self.exit_code = exit_code


class RetrieverNotFoundError(RetrieverError):
    """Raised when the yt-dlp executable cannot be started."""

    def __init__(self, message: str = "yt-dlp not found. Please install yt-dlp"):
        super().__init__(message, transient=False)


class ArtifactMissingError(YtdlApiError):
    """Raised when a job reports success but its output file is not on disk."""

    status_code = 404


class FileIntegrityError(YtdlApiError):
    """Raised when a downloaded file fails a post-download integrity check."""
