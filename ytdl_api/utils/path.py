"""
Utilities for handling file paths, artifact names, and URL parsing.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from pathvalidate import sanitize_filename

log = logging.getLogger(__name__)

MAX_DISPLAY_NAME_LENGTH = 200

_YOUTUBE_URL_RE = re.compile(r"^(https?://)?(www\.|m\.)?(youtube\.com|youtu\.be)/.+")
_VIDEO_ID_PATTERNS = (
    re.compile(r"(?:youtube\.com/watch\?(?:.*&)?v=|youtu\.be/)([^&\n?#/]+)"),
    re.compile(r"youtube\.com/embed/([^&\n?#/]+)"),
    re.compile(r"youtube\.com/v/([^&\n?#/]+)"),
    re.compile(r"youtube\.com/shorts/([^&\n?#/]+)"),
)
_BARE_VIDEO_ID_RE = re.compile(r"^[\w-]{6,64}$")


def is_youtube_url(value: str) -> bool:
    """Checks whether a string looks like a YouTube URL."""
    return bool(_YOUTUBE_URL_RE.match(value.strip()))


def extract_video_id(url: str) -> Optional[str]:
    """
    Extracts the video ID from a YouTube URL.
    Handles watch, short-link, embed, legacy /v/ and shorts formats.
    """
    for pattern in _VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def resolve_locator(value: str) -> Optional[str]:
    """
    Normalizes a bare video ID or a YouTube URL into a canonical watch URL.

    Returns None when the value is neither.
    """
    value = value.strip()
    if _BARE_VIDEO_ID_RE.match(value):
        return f"https://www.youtube.com/watch?v={value}"
    if is_youtube_url(value) and (video_id := extract_video_id(value)):
        return f"https://www.youtube.com/watch?v={video_id}"
    return None


def sanitize_display_name(name: Optional[str], fallback: str = "download") -> str:
    """
    Produces a filesystem-safe display name.

    Strips path separators, reserved characters, '..' sequences and
    leading/trailing dots or spaces, and caps the length.
    """
    if not name or not isinstance(name, str):
        return fallback

    sanitized = sanitize_filename(name.replace("..", ""), platform="universal")
    sanitized = sanitized.strip(" .")
    if len(sanitized) > MAX_DISPLAY_NAME_LENGTH:
        sanitized = sanitized[:MAX_DISPLAY_NAME_LENGTH].rstrip(" .")
    return sanitized or fallback


def build_artifact_filename(display_name: str, job_id: str, extension: str) -> str:
    """Names an artifact `{sanitized-title}_{job_id}.{ext}` so jobs never collide."""
    return f"{sanitize_display_name(display_name)}_{job_id}.{extension}"


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def remove_job_files(directory: Path, job_id: str) -> int:
    """
    Deletes every file in `directory` whose name contains the job ID.

    yt-dlp leaves `.part`, `.ytdl` and per-stream `.fNNN` fragments next to the
    output path, all of which carry the job ID. Returns the number removed.
    """
    removed = 0
    for path in directory.glob(f"*{job_id}*"):
        try:
            if path.is_file():
                path.unlink()
                removed += 1
        except FileNotFoundError:
            continue
        except OSError as e:
            log.error(f"Failed to delete file '{path.name}': {e}")
    return removed


def sweep_directory(directory: Path) -> int:
    """Removes stale files left behind by a previous run. Returns the count removed."""
    create_dir(directory)
    removed = 0
    for path in directory.iterdir():
        try:
            if path.is_file():
                path.unlink()
                removed += 1
        except OSError as e:
            log.warning(f"Could not remove stale file '{path.name}': {e}")
    if removed:
        log.info(f"Swept {removed} stale file(s) from '{directory}'.")
    return removed
