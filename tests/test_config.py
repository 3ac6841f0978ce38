from pathlib import Path

import pytest
from pydantic import ValidationError

from ytdl_api.exceptions import ConfigurationError
from ytdl_api.models.config import DEFAULT_USER_AGENTS, ServerConfig
from ytdl_api.storage.config_manager import ConfigManager


def write_ini(path: Path, body: str) -> Path:
    path.write_text("[DEFAULT]\n" + body, encoding="utf-8")
    return path


def test_defaults() -> None:
    config = ServerConfig()
    assert config.port == 3000
    assert config.completed_grace_seconds == 300
    assert config.failed_grace_seconds == 60
    assert config.max_requests == 30
    assert config.window_seconds == 60
    assert config.max_concurrent_downloads == 3
    assert config.max_retries == 3
    assert config.retry_delay == 1.0
    assert config.user_agents == DEFAULT_USER_AGENTS
    assert config.is_development


@pytest.mark.parametrize(
    "overrides",
    [
        {"port": 0},
        {"environment": "staging"},
        {"failed_grace_seconds": 0},
        {"max_concurrent_downloads": 0},
        {"retriever_command": []},
        {"user_agents": ["  "]},
    ],
)
def test_invalid_settings_are_rejected(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        ServerConfig(**overrides)


def test_precedence_file_env_cli(tmp_path: Path) -> None:
    ini = write_ini(
        tmp_path / "config.ini",
        "port = 4000\nmax_requests = 10\nmax_retries = 1\n",
    )
    environ = {"YTDL_API_MAX_REQUESTS": "20", "YTDL_API_MAX_RETRIES": "2"}

    config = ConfigManager(ini).load_config({"max_retries": 5}, environ=environ)

    assert config.port == 4000
    assert config.max_requests == 20
    assert config.max_retries == 5


def test_unprefixed_port_and_environment(tmp_path: Path) -> None:
    config = ConfigManager().load_config(
        environ={"PORT": "8080", "ENVIRONMENT": "Production"}
    )
    assert config.port == 8080
    assert config.environment == "production"
    assert not config.is_development


def test_cli_none_values_do_not_override() -> None:
    config = ConfigManager().load_config({"port": None}, environ={"PORT": "9000"})
    assert config.port == 9000


def test_list_values_from_file(tmp_path: Path) -> None:
    ini = write_ini(
        tmp_path / "config.ini",
        "retriever_command = python3 -m yt_dlp\n"
        "user_agents =\n"
        "    Mozilla/5.0 (X11; Linux x86_64) Firefox/121.0\n"
        "    Agent, With Commas\n",
    )
    config = ConfigManager(ini).load_config(environ={})
    assert config.retriever_command == ["python3", "-m", "yt_dlp"]
    assert config.user_agents == [
        "Mozilla/5.0 (X11; Linux x86_64) Firefox/121.0",
        "Agent, With Commas",
    ]


def test_missing_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        ConfigManager(tmp_path / "absent.ini").load_config(environ={})


def test_invalid_value_is_a_configuration_error(tmp_path: Path) -> None:
    ini = write_ini(tmp_path / "config.ini", "port = 70000\n")
    with pytest.raises(ConfigurationError, match="validation failed"):
        ConfigManager(ini).load_config(environ={})


def test_saved_config_loads_back(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "config.ini"
    original = ServerConfig(
        port=8123,
        retriever_command=["/opt/yt dlp/bin/yt-dlp"],
        verify_artifacts=False,
    )
    ConfigManager(path).save_config(original)

    loaded = ConfigManager(path).load_config(environ={})

    assert loaded == original
