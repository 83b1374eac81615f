"""Configuration for usbmount."""

from usbmount.config.models import (
    DEFAULT_AUTO_MOUNT_DIR,
    DEFAULT_MARKER_NAME,
    UserConfigData,
)
from usbmount.config.user_config import ConfigError, UserConfig, create_user_config


__all__ = [
    "DEFAULT_AUTO_MOUNT_DIR",
    "DEFAULT_MARKER_NAME",
    "ConfigError",
    "UserConfig",
    "UserConfigData",
    "create_user_config",
]
