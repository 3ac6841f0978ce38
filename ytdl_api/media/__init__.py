"""
Media Processing Layer.

This package is responsible for driving yt-dlp: invoking it, decoding its
progress output, parsing its metadata mode and validating what it produced.
"""

from .info import VideoInfo, parse_video_info
from .integrity import FileIntegrityChecker
from .progress import ProgressDecoder
from .retriever import FailureClass, ProcessRunner, classify_failure

__all__ = [
    "FailureClass",
    "FileIntegrityChecker",
    "ProcessRunner",
    "ProgressDecoder",
    "VideoInfo",
    "classify_failure",
    "parse_video_info",
]
