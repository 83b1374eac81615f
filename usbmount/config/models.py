"""User configuration models."""

from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_AUTO_MOUNT_DIR = Path("/var/run/media/")
DEFAULT_MARKER_NAME = ".create_by_usbmount"


class UserConfigData(BaseSettings):
    """User configuration data model with automatic environment variable support.

    Precedence order (highest to lowest):
    1. Environment variables (highest)
    2. Constructor arguments (file data)
    3. Default values (lowest)
    """

    model_config = SettingsConfigDict(
        env_prefix="USBMOUNT_",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Environment variables override file configuration."""
        return (env_settings, init_settings)

    auto_mount_dir: Path = Field(
        default=DEFAULT_AUTO_MOUNT_DIR,
        description="Root under which <user>/<name> mount directories are created",
    )
    mount_info_path: Path = Field(
        default=Path("/proc/self/mountinfo"),
        description="Kernel mount table to correlate devices with",
    )
    default_option_filesystems: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["ntfs", "vfat", "exfat"],
        description="Filesystems mounted with uid=/gid= of the invoking user",
    )
    marker_name: str = Field(
        default=DEFAULT_MARKER_NAME,
        description="Sentinel file marking directories created by usbmount",
    )
    use_device_lock: bool = Field(
        default=True, description="Hold an advisory lock per device while mounting"
    )
    lock_dir: Path = Field(default=Path("/run/lock"))
    escalation_command: str = Field(
        default="sudo", description="Command used to re-run usbmount as root"
    )
    log_level: str = "WARNING"
    icon_mode: Literal["emoji", "text"] = "emoji"

    @field_validator("default_option_filesystems", mode="before")
    @classmethod
    def decode_filesystems(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            return [fs.strip() for fs in v.split(",") if fs.strip()]
        if isinstance(v, list | tuple):
            return [str(fs).strip() for fs in v if str(fs).strip()]
        return []

    @field_validator("marker_name")
    @classmethod
    def validate_marker_name(cls, v: str) -> str:
        if not v or "/" in v or v in (".", ".."):
            raise ValueError(f"marker_name must be a plain file name, got {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        upper_v = v.strip().upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return upper_v
