"""
Pydantic model for server configuration.
Provides robust validation for all settings.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
]

ENVIRONMENTS = ("development", "production", "test")


class ServerConfig(BaseModel):
    """A validated configuration model for the server."""

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    # HTTP
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "development"

    # Storage & cleanup
    downloads_dir: Path = Path("downloads")
    completed_grace_seconds: float = 300.0
    failed_grace_seconds: float = 60.0

    # Admission control
    window_seconds: float = 60.0
    max_requests: int = 30
    max_concurrent_downloads: int = 3

    # Retriever
    retriever_command: list[str] = Field(default_factory=lambda: ["yt-dlp"])
    max_retries: int = 3
    retry_delay: float = 1.0
    user_agents: list[str] = Field(default_factory=lambda: list(DEFAULT_USER_AGENTS))
    extractor_args: str = "youtube:player_client=android,web"
    verify_artifacts: bool = True

    # Logging
    log_dir: Optional[Path] = None

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError("Port must be between 1 and 65535.")
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        v = v.lower()
        if v not in ENVIRONMENTS:
            raise ValueError(f"Environment must be one of {', '.join(ENVIRONMENTS)}.")
        return v

    @field_validator(
        "completed_grace_seconds", "failed_grace_seconds", "window_seconds"
    )
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Durations must be greater than zero.")
        return v

    @field_validator("max_requests", "max_concurrent_downloads")
    @classmethod
    def validate_limits(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Limits must be at least 1.")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 0 or v > 10:
            raise ValueError("Max retries must be between 0 and 10.")
        return v

    @field_validator("retry_delay")
    @classmethod
    def validate_retry_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Retry delay cannot be negative.")
        return v

    @model_validator(mode="after")
    def validate_retriever(self) -> "ServerConfig":
        """Ensures yt-dlp can actually be invoked with a rotating identity."""
        if not [part for part in self.retriever_command if part.strip()]:
            raise ValueError("Retriever command cannot be empty.")
        if not [ua for ua in self.user_agents if ua.strip()]:
            raise ValueError("At least one user agent is required.")
        return self
