"""
User configuration management for usbmount.

Settings come from several sources:
1. Environment variables (highest precedence)
2. Command-line provided config file
3. Config file in current directory
4. User's XDG config directory
5. Default values (lowest precedence)
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from usbmount.config.models import UserConfigData
from usbmount.core.errors import UsbmountError
from usbmount.core.structlog_logger import get_struct_logger


logger = get_struct_logger(__name__)

ENV_PREFIX = "USBMOUNT_"


class ConfigError(UsbmountError):
    """Invalid or unreadable configuration file."""


class UserConfig:
    """Manages user-specific configuration for usbmount."""

    def __init__(self, cli_config_path: str | Path | None = None) -> None:
        self._config_paths = self._generate_config_paths(cli_config_path)
        self._loaded_from: Path | None = None
        self._config = self._load_config()

    def _generate_config_paths(self, cli_config_path: str | Path | None) -> list[Path]:
        """Generate a list of config paths to search in order of precedence."""
        config_paths = []

        if cli_config_path:
            config_paths.append(Path(cli_config_path).expanduser().resolve())

        config_paths.append(Path.cwd() / "usbmount.yaml")

        xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
        config_root = (
            Path(xdg_config_home) if xdg_config_home else Path.home() / ".config"
        )
        config_paths.extend(
            [
                config_root / "usbmount" / "config.yaml",
                config_root / "usbmount" / "config.yml",
            ]
        )
        return config_paths

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        try:
            with path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config file {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return data

    def _load_config(self) -> UserConfigData:
        if logging.getLogger(__name__).isEnabledFor(logging.DEBUG):
            logger.debug(
                "config_search_paths", paths=[str(p) for p in self._config_paths]
            )
            env_vars = sorted(k for k in os.environ if k.startswith(ENV_PREFIX))
            if env_vars:
                logger.debug("config_env_vars", names=env_vars)

        config_data: dict[str, Any] = {}
        for path in self._config_paths:
            if path.is_file():
                config_data = self._read_yaml(path)
                self._loaded_from = path
                logger.debug("config_loaded", path=str(path))
                break

        try:
            return UserConfigData(**config_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    @property
    def data(self) -> UserConfigData:
        return self._config

    @property
    def loaded_from(self) -> Path | None:
        """Config file that was used, if any."""
        return self._loaded_from

    def get_log_level_int(self) -> int:
        """Get the configured log level as an integer for the logging module."""
        return int(getattr(logging, self._config.log_level, logging.WARNING))


def create_user_config(cli_config_path: str | Path | None = None) -> UserConfig:
    """Factory function to create a UserConfig instance."""
    return UserConfig(cli_config_path=cli_config_path)
