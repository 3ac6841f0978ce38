"""
Parses the JSON document yt-dlp prints in --dump-json mode.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from ytdl_api.utils.formatting import format_clock


@dataclass
class VideoInfo:
    """Metadata and the qualities a resource can be downloaded in."""

    id: Optional[str]
    title: Optional[str]
    thumbnail: Optional[str]
    duration: str
    channel: Optional[str]
    url: Optional[str]
    video_qualities: List[str] = field(default_factory=list)
    audio_qualities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["availableFormats"] = {
            "video": data.pop("video_qualities"),
            "audio": data.pop("audio_qualities"),
        }
        return data


def _sorted_qualities(values: set[str], suffix: str) -> List[str]:
    return sorted(values, key=lambda v: int(v[: -len(suffix)]))


def parse_video_info(info: Dict[str, Any]) -> VideoInfo:
    """
    Extracts the available video heights and audio bitrates from yt-dlp metadata.

    Video streams contribute '{height}p', audio streams '{abr}kbps' (rounded).
    """
    video_qualities: set[str] = set()
    audio_qualities: set[str] = set()

    for fmt in info.get("formats") or []:
        if fmt.get("height") and fmt.get("vcodec") != "none":
            video_qualities.add(f"{int(fmt['height'])}p")
        if fmt.get("abr") and fmt.get("acodec") != "none":
            audio_qualities.add(f"{round(fmt['abr'])}kbps")

    return VideoInfo(
        id=info.get("id"),
        title=info.get("title"),
        thumbnail=info.get("thumbnail"),
        duration=format_clock(info.get("duration")),
        channel=info.get("uploader") or info.get("channel"),
        url=info.get("webpage_url"),
        video_qualities=_sorted_qualities(video_qualities, "p"),
        audio_qualities=_sorted_qualities(audio_qualities, "kbps"),
    )
