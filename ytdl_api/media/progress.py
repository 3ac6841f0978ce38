"""
Extracts download percentages from yt-dlp's standard output.
"""

import codecs
import re
from typing import Optional

# Example: [download]  45.0% of 10.5MiB at 1.2MiB/s ETA 00:05
PROGRESS_RE = re.compile(r"\[download\]\s+(\d+(?:\.\d+)?)%")


def parse_progress(line: str) -> Optional[float]:
    """Returns the percentage on a yt-dlp progress line, or None for any other line."""
    match = PROGRESS_RE.search(line)
    if match:
        return float(match.group(1))
    return None


class ProgressDecoder:
    """
    Line-oriented decoder for a stream of raw stdout chunks.

    A chunk may end in the middle of a line (or of a UTF-8 sequence); the
    remainder is buffered until the next chunk completes it. Both '\\n' and
    '\\r' terminate a line, since yt-dlp redraws its progress bar with '\\r'
    when it is not run with --newline.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[float]:
        """Consumes a chunk and returns the percentages on every completed line."""
        self._buffer += self._decoder.decode(chunk)
        lines = re.split(r"[\r\n]", self._buffer)
        self._buffer = lines.pop()
        return self._values(lines)

    def finish(self) -> list[float]:
        """Flushes the trailing partial line once the stream has ended."""
        self._buffer += self._decoder.decode(b"", final=True)
        remainder, self._buffer = self._buffer, ""
        return self._values([remainder])

    @staticmethod
    def _values(lines: list[str]) -> list[float]:
        values = []
        for line in lines:
            if (value := parse_progress(line)) is not None:
                values.append(value)
        return values
