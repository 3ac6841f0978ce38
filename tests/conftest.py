"""Shared test fixtures."""

import asyncio
import sys
from pathlib import Path

import pytest

from ytdl_api.core.job_manager import JobManager
from ytdl_api.models.config import ServerConfig

FAKE_YTDLP = Path(__file__).parent / "fake_ytdlp.py"
FAKE_YTDLP_COMMAND = [sys.executable, str(FAKE_YTDLP)]


@pytest.fixture()
def downloads_dir(tmp_path: Path) -> Path:
    path = tmp_path / "downloads"
    path.mkdir()
    return path


@pytest.fixture()
def make_config(downloads_dir: Path):
    """Builds a ServerConfig wired to the fake yt-dlp, with short timings."""

    def _make(**overrides) -> ServerConfig:
        settings = {
            "environment": "test",
            "downloads_dir": downloads_dir,
            "retriever_command": FAKE_YTDLP_COMMAND,
            "retry_delay": 0.01,
            "completed_grace_seconds": 30,
            "failed_grace_seconds": 30,
            "verify_artifacts": False,
        }
        settings.update(overrides)
        return ServerConfig(**settings)

    return _make


@pytest.fixture()
def config(make_config) -> ServerConfig:
    return make_config()


@pytest.fixture()
def fake_mode(monkeypatch, tmp_path: Path):
    """Selects the fake yt-dlp behaviour; returns the file its argv is logged to."""
    args_log = tmp_path / "ytdlp_args.jsonl"
    monkeypatch.setenv("FAKE_YTDLP_ARGS", str(args_log))
    monkeypatch.setenv("FAKE_YTDLP_STATE", str(tmp_path / "ytdlp_state"))

    def _set(mode: str) -> Path:
        monkeypatch.setenv("FAKE_YTDLP_MODE", mode)
        return args_log

    return _set


@pytest.fixture()
async def make_manager():
    """Builds JobManagers and tears down their jobs after the test."""
    managers: list[JobManager] = []

    def _make(config: ServerConfig) -> JobManager:
        manager = JobManager.from_config(config)
        managers.append(manager)
        return manager

    yield _make

    for manager in managers:
        await manager.shutdown()
        manager.store.clear()


async def wait_until(predicate, timeout: float = 10.0, interval: float = 0.02) -> None:
    """Polls `predicate` until it is truthy, failing the test on timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            pytest.fail("Timed out waiting for condition")
        await asyncio.sleep(interval)
