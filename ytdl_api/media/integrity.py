"""
Verifies that a file yt-dlp reported as finished is a playable container.
"""

import logging
from pathlib import Path

from mutagen import MutagenError
from mutagen.mp3 import MP3, HeaderNotFoundError
from mutagen.mp4 import MP4, MP4StreamInfoError

from ytdl_api.models.job import MediaFormat

log = logging.getLogger(__name__)

# Container class and the error mutagen raises when its header is missing.
_PARSERS = {
    MediaFormat.MP3: (MP3, HeaderNotFoundError),
    MediaFormat.MP4: (MP4, MP4StreamInfoError),
}


class FileIntegrityChecker:
    """Checks finished artifacts with mutagen before a job may complete."""

    @staticmethod
    def check(filepath: Path, media_format: MediaFormat) -> bool:
        """
        Returns True if mutagen can parse `filepath` as `media_format` and
        finds a stream with a positive duration.

        Never raises for a bad file; the reason is logged instead.
        """
        parser, header_error = _PARSERS[media_format]
        label = media_format.value.upper()
        try:
            if filepath.stat().st_size == 0:
                log.warning(f"{label} integrity check failed for '{filepath.name}': empty file.")
                return False
            media = parser(filepath)
        except header_error:
            log.warning(
                f"{label} integrity check failed for '{filepath.name}': missing header."
            )
            return False
        except (MutagenError, OSError) as e:
            log.warning(f"{label} integrity check failed for '{filepath.name}': {e}")
            return False

        if media.info is None or media.info.length <= 0:
            log.warning(
                f"{label} integrity check failed for '{filepath.name}': no valid stream info."
            )
            return False
        return True
