from pathlib import Path

from ytdl_api.utils.path import (
    build_artifact_filename,
    extract_video_id,
    is_youtube_url,
    remove_job_files,
    resolve_locator,
    sanitize_display_name,
    sweep_directory,
)


def test_is_youtube_url() -> None:
    assert is_youtube_url("https://www.youtube.com/watch?v=abc")
    assert is_youtube_url("youtu.be/abc")
    assert not is_youtube_url("https://example.com/watch?v=abc")
    assert not is_youtube_url("dQw4w9WgXcQ")


def test_extract_video_id_from_url_forms() -> None:
    assert extract_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=10") == "dQw4w9WgXcQ"
    assert extract_video_id("https://youtu.be/dQw4w9WgXcQ?si=x") == "dQw4w9WgXcQ"
    assert extract_video_id("https://www.youtube.com/v/dQw4w9WgXcQ") == "dQw4w9WgXcQ"
    assert extract_video_id("https://www.youtube.com/shorts/dQw4w9WgXcQ") == "dQw4w9WgXcQ"
    assert extract_video_id("https://www.youtube.com/") is None


def test_resolve_locator_rejects_garbage() -> None:
    assert resolve_locator("not a video") is None
    assert resolve_locator("https://www.youtube.com/") is None
    assert resolve_locator("abc") is None


def test_sanitize_strips_traversal_and_reserved_characters() -> None:
    name = sanitize_display_name("../../etc/passwd")
    assert "/" not in name
    assert ".." not in name
    assert sanitize_display_name('a<b>c:"d"|e?*') == "abcde"


def test_sanitize_falls_back_for_empty_names() -> None:
    assert sanitize_display_name(None) == "download"
    assert sanitize_display_name(" ... ") == "download"


def test_sanitize_caps_length() -> None:
    assert len(sanitize_display_name("x" * 500)) == 200


def test_artifact_filename_embeds_job_id() -> None:
    assert build_artifact_filename("My Song", "abc123", "mp3") == "My Song_abc123.mp3"


def test_remove_job_files_only_touches_that_job(tmp_path: Path) -> None:
    mine = [tmp_path / "t_job1.mp4", tmp_path / "t_job1.f137.mp4.part"]
    other = tmp_path / "t_job2.mp4"
    for path in [*mine, other]:
        path.write_bytes(b"x")

    assert remove_job_files(tmp_path, "job1") == 2
    assert other.exists()
    assert remove_job_files(tmp_path, "job1") == 0


def test_sweep_directory_creates_and_empties(tmp_path: Path) -> None:
    target = tmp_path / "downloads"
    assert sweep_directory(target) == 0
    (target / "stale.mp3").write_bytes(b"x")
    (target / "stale.mp4.part").write_bytes(b"x")
    assert sweep_directory(target) == 2
    assert list(target.iterdir()) == []
