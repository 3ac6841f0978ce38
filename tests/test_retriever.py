import asyncio
import json
from pathlib import Path

import pytest

from conftest import FAKE_YTDLP_COMMAND
from ytdl_api.exceptions import RetrieverError, RetrieverNotFoundError
from ytdl_api.media.retriever import FailureClass, ProcessRunner, classify_failure
from ytdl_api.models.job import MediaFormat

URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


@pytest.fixture()
def runner() -> ProcessRunner:
    return ProcessRunner(command=FAKE_YTDLP_COMMAND, user_agents=["agent-a"])


def test_classify_forbidden_as_transient() -> None:
    stderr = "ERROR: unable to download video data: HTTP Error 403: Forbidden"
    assert classify_failure(1, stderr) is FailureClass.TRANSIENT


def test_classify_is_case_insensitive() -> None:
    assert classify_failure(1, "access FORBIDDEN by server") is FailureClass.TRANSIENT


def test_classify_everything_else_as_permanent() -> None:
    assert classify_failure(1, "ERROR: Video unavailable") is FailureClass.PERMANENT
    assert classify_failure(2, "") is FailureClass.PERMANENT


def test_mp3_args_extract_audio_at_bitrate(runner: ProcessRunner) -> None:
    args = runner.build_download_args(
        URL, MediaFormat.MP3, "192kbps", Path("out/a_1.mp3"), "agent-a"
    )
    assert args[-1] == URL
    assert args[args.index("-o") + 1] == str(Path("out/a_1.mp3"))
    assert args[args.index("--user-agent") + 1] == "agent-a"
    assert args[args.index("--audio-quality") + 1] == "192K"
    assert "-x" in args
    assert "--no-playlist" in args


def test_mp4_args_cap_resolution(runner: ProcessRunner) -> None:
    args = runner.build_download_args(
        URL, MediaFormat.MP4, "720p", Path("out/a_1.mp4"), "agent-a"
    )
    assert args[args.index("-f") + 1] == (
        "bestvideo[height<=720]+bestaudio/best[height<=720]"
    )
    assert args[args.index("--merge-output-format") + 1] == "mp4"
    assert "-x" not in args


async def test_run_reports_progress_and_returns_path(
    runner: ProcessRunner, fake_mode, tmp_path: Path
) -> None:
    args_log = fake_mode("success")
    destination = tmp_path / "video_abc.mp3"
    seen: list[float] = []

    result = await runner.run(
        URL, MediaFormat.MP3, "128kbps", destination, on_progress=seen.append
    )

    assert result == destination
    assert destination.is_file()
    assert seen == [12.5, 50.0, 99.9, 100.0]
    argv = json.loads(args_log.read_text().splitlines()[0])
    assert argv[argv.index("--user-agent") + 1] == "agent-a"


async def test_run_raises_permanent_error_with_diagnostic(
    runner: ProcessRunner, fake_mode, tmp_path: Path
) -> None:
    fake_mode("fail")
    with pytest.raises(RetrieverError) as excinfo:
        await runner.run(URL, MediaFormat.MP4, "720p", tmp_path / "v_1.mp4")
    assert not excinfo.value.transient
    assert excinfo.value.exit_code == 1
    assert "Video unavailable" in str(excinfo.value)


async def test_run_marks_forbidden_as_transient(
    runner: ProcessRunner, fake_mode, tmp_path: Path
) -> None:
    fake_mode("forbidden")
    with pytest.raises(RetrieverError) as excinfo:
        await runner.run(URL, MediaFormat.MP4, "720p", tmp_path / "v_1.mp4")
    assert excinfo.value.transient
    assert "403" in str(excinfo.value)


async def test_missing_executable_is_reported(tmp_path: Path) -> None:
    runner = ProcessRunner(command=[str(tmp_path / "no-such-yt-dlp")])
    with pytest.raises(RetrieverNotFoundError, match="yt-dlp not found"):
        await runner.run(URL, MediaFormat.MP3, "128kbps", tmp_path / "a_1.mp3")


async def test_cancel_terminates_subprocess(
    runner: ProcessRunner, fake_mode, tmp_path: Path
) -> None:
    fake_mode("slow")
    started = asyncio.Event()

    task = asyncio.create_task(
        runner.run(
            URL,
            MediaFormat.MP3,
            "128kbps",
            tmp_path / "a_1.mp3",
            on_progress=lambda _: started.set(),
        )
    )
    await asyncio.wait_for(started.wait(), timeout=10)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await asyncio.wait_for(task, timeout=10)


async def test_fetch_info_parses_formats(runner: ProcessRunner, fake_mode) -> None:
    fake_mode("success")
    info = await runner.fetch_info(URL)
    assert info.id == "dQw4w9WgXcQ"
    assert info.title == "Fake Video"
    assert info.duration == "3:32"
    assert info.video_qualities == ["360p", "720p", "1080p"]
    assert info.audio_qualities == ["130kbps", "160kbps"]


async def test_fetch_info_failure(runner: ProcessRunner, fake_mode) -> None:
    fake_mode("fail")
    with pytest.raises(RetrieverError, match="Failed to get video info"):
        await runner.fetch_info(URL)
