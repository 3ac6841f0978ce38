"""
Manages loading and validation of the server configuration from an INI file,
the environment and command-line overrides.
"""

import configparser
import logging
import os
import shlex
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from ytdl_api.exceptions import ConfigurationError
from ytdl_api.models.config import ServerConfig

log = logging.getLogger(__name__)

ENV_PREFIX = "YTDL_API_"

# List-valued keys. User agents contain commas, so they are one per line.
_LIST_KEYS = {"retriever_command", "user_agents"}


class ConfigManager:
    """Handles all operations related to the server's configuration sources."""

    def __init__(self, config_file_path: Optional[Path] = None):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(
        self,
        cli_options: Optional[dict[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> ServerConfig:
        """
        Builds a validated configuration.

        Precedence, lowest to highest: model defaults, the INI file's
        [DEFAULT] section, YTDL_API_* environment variables, CLI options.

        Raises:
            ConfigurationError: If the config file is unreadable or validation fails.
        """
        settings: dict[str, Any] = {}

        if self.config_file_path is not None:
            if not self.config_file_path.is_file():
                raise ConfigurationError(
                    f"Configuration file not found at '{self.config_file_path}'."
                )
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(f"Error parsing configuration file: {e}") from e
            settings.update(self._get_config_as_dict())

        settings.update(self._get_env_overrides(os.environ if environ is None else environ))

        if cli_options:
            settings.update({k: v for k, v in cli_options.items() if v is not None})

        try:
            return ServerConfig(**settings)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_config(self, config: ServerConfig) -> None:
        """Writes a configuration back out as an INI file."""
        if self.config_file_path is None:
            raise ConfigurationError("No configuration file path was given.")

        parser = configparser.ConfigParser(interpolation=None)
        section = parser["DEFAULT"]
        for key, value in config.model_dump().items():
            if value is None:
                continue
            if isinstance(value, bool):
                section[key] = "true" if value else "false"
            elif key == "retriever_command":
                section[key] = shlex.join(value)
            elif isinstance(value, list):
                section[key] = "\n".join(map(str, value))
            else:
                section[key] = str(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                parser.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the known keys of the 'DEFAULT' section into a dictionary."""
        section = self._parser["DEFAULT"]
        settings: dict[str, Any] = {}
        for key in ServerConfig.model_fields:
            if key not in section:
                continue
            raw = section.get(key)
            settings[key] = _parse_value(key, raw)
        unknown = set(section) - set(ServerConfig.model_fields)
        if unknown:
            log.warning(f"Ignoring unknown configuration keys: {', '.join(sorted(unknown))}")
        return settings

    def _get_env_overrides(self, environ: Mapping[str, str]) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        # Conventional unprefixed names first, so the prefixed ones win.
        if port := environ.get("PORT"):
            settings["port"] = port
        if environment := environ.get("ENVIRONMENT"):
            settings["environment"] = environment

        for key in ServerConfig.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{key.upper()}")
            if raw is None:
                continue
            settings[key] = _parse_value(key, raw)
        return settings


def _parse_value(key: str, raw: str) -> Any:
    """Converts list-valued keys; the model coerces everything else."""
    if key == "retriever_command":
        return shlex.split(raw)
    if key in _LIST_KEYS:
        return [line.strip() for line in raw.splitlines() if line.strip()]
    return raw
