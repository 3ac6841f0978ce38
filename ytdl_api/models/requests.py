"""
Pydantic models for validating incoming request bodies.
"""

from typing import Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from ytdl_api.models.job import AUDIO_QUALITY_RE, VIDEO_QUALITY_RE, MediaFormat
from ytdl_api.utils.path import resolve_locator


class DownloadRequest(BaseModel):
    """A validated request to start a download job."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    locator: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("locator", "videoId", "video_id", "url"),
    )
    format: MediaFormat
    quality: str
    title: Optional[str] = Field(default=None, max_length=500)

    @field_validator("locator")
    @classmethod
    def validate_locator(cls, v: str) -> str:
        """Turns a bare video ID or any YouTube URL form into a watch URL."""
        resolved = resolve_locator(v)
        if resolved is None:
            raise ValueError("videoId must be a YouTube video ID or URL")
        return resolved

    @field_validator("format", mode="before")
    @classmethod
    def validate_format(cls, v: object) -> MediaFormat:
        try:
            return MediaFormat.parse(str(v))
        except ValueError:
            raise ValueError("format must be mp3 or mp4") from None

    @field_validator("quality")
    @classmethod
    def validate_quality(cls, v: str) -> str:
        if not (AUDIO_QUALITY_RE.match(v) or VIDEO_QUALITY_RE.match(v)):
            raise ValueError('quality must be in format "128kbps" or "720p"')
        return v

    @model_validator(mode="after")
    def validate_quality_matches_format(self) -> "DownloadRequest":
        """mp3 needs a kbps quality, mp4 needs a resolution."""
        if not self.format.quality_pattern.match(self.quality):
            raise ValueError("quality format does not match the selected format type")
        return self
