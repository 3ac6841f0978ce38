"""
Stand-in for the yt-dlp executable, driven by environment variables.

FAKE_YTDLP_MODE selects the behaviour:
    success         print progress lines and write the output file
    forbidden       always exit 1 with an HTTP 403 diagnostic
    forbidden-once  fail with 403 on the first call (tracked in FAKE_YTDLP_STATE),
                    then behave like success
    fail            exit 1 with a permanent diagnostic
    no-output       exit 0 without writing anything
    slow            print one progress line, then hang until killed
FAKE_YTDLP_ARGS, when set, is a file every invocation's argv is appended to.
"""

import json
import os
import sys
import time
from pathlib import Path

INFO = {
    "id": "dQw4w9WgXcQ",
    "title": "Fake Video",
    "thumbnail": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
    "duration": 212,
    "uploader": "Fake Channel",
    "webpage_url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
    "formats": [
        {"format_id": "140", "acodec": "mp4a", "vcodec": "none", "abr": 129.5},
        {"format_id": "251", "acodec": "opus", "vcodec": "none", "abr": 160},
        {"format_id": "136", "acodec": "none", "vcodec": "avc1", "height": 720},
        {"format_id": "137", "acodec": "none", "vcodec": "avc1", "height": 1080},
        {"format_id": "18", "acodec": "mp4a", "vcodec": "avc1", "height": 360},
    ],
}


def _output_path(argv: list[str]) -> Path:
    return Path(argv[argv.index("-o") + 1])


def _succeed(argv: list[str]) -> int:
    for pct in ("12.5", "50.0", "99.9"):
        print(f"[download]  {pct}% of 1.00MiB at 1.00MiB/s ETA 00:01", flush=True)
    print("[download] 100% of 1.00MiB in 00:00:01", flush=True)
    _output_path(argv).write_bytes(b"fake media payload" * 64)
    return 0


def _forbidden() -> int:
    print("ERROR: unable to download video data: HTTP Error 403: Forbidden", file=sys.stderr)
    return 1


def main(argv: list[str]) -> int:
    if args_log := os.environ.get("FAKE_YTDLP_ARGS"):
        with open(args_log, "a", encoding="utf-8") as f:
            f.write(json.dumps(argv) + "\n")

    mode = os.environ.get("FAKE_YTDLP_MODE", "success")

    if "--dump-json" in argv:
        if mode in ("fail", "forbidden"):
            print("ERROR: Video unavailable", file=sys.stderr)
            return 1
        print(json.dumps(INFO))
        return 0

    if mode == "success":
        return _succeed(argv)
    if mode == "forbidden":
        return _forbidden()
    if mode == "forbidden-once":
        state = Path(os.environ["FAKE_YTDLP_STATE"])
        if not state.exists():
            state.write_text("seen", encoding="utf-8")
            return _forbidden()
        return _succeed(argv)
    if mode == "fail":
        print("ERROR: Video unavailable", file=sys.stderr)
        return 1
    if mode == "no-output":
        print("[download] 100% of 1.00MiB in 00:00:01", flush=True)
        return 0
    if mode == "slow":
        print("[download]  10.0% of 1.00MiB at 1.00KiB/s ETA 10:00", flush=True)
        _output_path(argv).with_suffix(".part").write_bytes(b"partial")
        time.sleep(60)
        return 0
    print(f"unknown FAKE_YTDLP_MODE {mode!r}", file=sys.stderr)
    return 2


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
