"""
ytdl-api: an HTTP service that retrieves media through yt-dlp and serves each
finished file exactly once.
"""

__version__ = "1.0.0"
