import pytest
from pydantic import ValidationError

from ytdl_api.models.job import MediaFormat
from ytdl_api.models.requests import DownloadRequest

WATCH_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


def test_bare_video_id_becomes_watch_url() -> None:
    request = DownloadRequest.model_validate(
        {"videoId": "dQw4w9WgXcQ", "format": "mp3", "quality": "192kbps"}
    )
    assert request.locator == WATCH_URL
    assert request.format is MediaFormat.MP3
    assert request.title is None


@pytest.mark.parametrize(
    "url",
    [
        "https://youtu.be/dQw4w9WgXcQ",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "https://m.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
    ],
)
def test_url_forms_are_normalized(url: str) -> None:
    request = DownloadRequest.model_validate(
        {"url": url, "format": "mp4", "quality": "1080p"}
    )
    assert request.locator == WATCH_URL


def test_format_aliases() -> None:
    request = DownloadRequest.model_validate(
        {"videoId": "dQw4w9WgXcQ", "format": "Video", "quality": "720p"}
    )
    assert request.format is MediaFormat.MP4


def test_unknown_format_is_rejected() -> None:
    with pytest.raises(ValidationError, match="format must be mp3 or mp4"):
        DownloadRequest.model_validate(
            {"videoId": "dQw4w9WgXcQ", "format": "flac", "quality": "128kbps"}
        )


def test_malformed_quality_is_rejected() -> None:
    with pytest.raises(ValidationError, match="128kbps"):
        DownloadRequest.model_validate(
            {"videoId": "dQw4w9WgXcQ", "format": "mp3", "quality": "high"}
        )


def test_quality_must_match_format() -> None:
    with pytest.raises(ValidationError, match="does not match"):
        DownloadRequest.model_validate(
            {"videoId": "dQw4w9WgXcQ", "format": "mp3", "quality": "720p"}
        )


def test_locator_must_be_youtube() -> None:
    with pytest.raises(ValidationError, match="YouTube video ID or URL"):
        DownloadRequest.model_validate(
            {"url": "https://vimeo.com/12345", "format": "mp3", "quality": "128kbps"}
        )


def test_locator_is_required() -> None:
    with pytest.raises(ValidationError):
        DownloadRequest.model_validate({"format": "mp3", "quality": "128kbps"})


def test_title_is_length_limited() -> None:
    with pytest.raises(ValidationError):
        DownloadRequest.model_validate(
            {
                "videoId": "dQw4w9WgXcQ",
                "format": "mp3",
                "quality": "128kbps",
                "title": "x" * 501,
            }
        )
