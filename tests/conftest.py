"""Core test fixtures for the usbmount project."""

import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any
from unittest.mock import Mock

import pytest
from typer.testing import CliRunner

from usbmount.config.models import UserConfigData
from usbmount.models.device import PartitionDevice, UserIdentity
from usbmount.protocols import IdentityProviderProtocol, MounterProtocol


# ---- Base Fixtures ----


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def identity() -> UserIdentity:
    return UserIdentity(username="alice", uid=1000, gid=1000)


@pytest.fixture
def mock_identity_provider(identity: UserIdentity) -> Mock:
    """Create a mock identity provider returning ``alice``."""
    provider = Mock(spec=IdentityProviderProtocol)
    provider.current_user_identity.return_value = identity
    return provider


@pytest.fixture
def mock_mounter() -> Mock:
    """Create a mock mounter for testing."""
    mounter = Mock(spec=MounterProtocol)
    mounter.supported_filesystems.return_value = ["ext4", "vfat", "exfat"]
    mounter.mount.side_effect = lambda source, target, filesystems, *a, **k: (
        filesystems[0]
    )
    return mounter


# ---- Test Isolation Fixtures ----


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Keep tests away from the user's config files and USBMOUNT_* variables."""
    for name in list(os.environ):
        if name.startswith("USBMOUNT_") or name.startswith("SUDO_"):
            monkeypatch.delenv(name, raising=False)

    config_home = tmp_path / "xdg-config"
    config_home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))

    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    yield workdir


@pytest.fixture
def settings(tmp_path: Path) -> UserConfigData:
    """Settings pointing every path into the test directory."""
    return UserConfigData(
        auto_mount_dir=tmp_path / "media",
        lock_dir=tmp_path / "lock",
        mount_info_path=tmp_path / "mountinfo",
    )


# ---- Device Fixtures ----


@pytest.fixture
def partition_factory() -> Callable[..., PartitionDevice]:
    """Factory for PartitionDevice models with sensible defaults."""

    def _make(**overrides: Any) -> PartitionDevice:
        values: dict[str, Any] = {
            "dev_path": "/dev/sdb1",
            "filesystem": "vfat",
            "size_bytes": 1073741824,
            "label": "BOOT",
            "usb_model_name": "Flash_Disk",
            "mounted_points": (),
            "device_id": "8:17",
            "sys_path": "/sys/devices/usb1/1-1/block/sdb/sdb1",
        }
        values.update(overrides)
        return PartitionDevice(**values)

    return _make


@pytest.fixture
def udev_device_factory(tmp_path: Path) -> Callable[..., Mock]:
    """Factory for objects shaped like ``pyudev.Device``.

    ``sys_path`` is a real directory under tmp_path so that a ``slaves``
    directory can be created in it.
    """

    def _make(
        name: str = "sdb1",
        properties: dict[str, str] | None = None,
        attributes: dict[str, bytes] | None = None,
        usb: bool = True,
        device_node: str | None = None,
    ) -> Mock:
        sys_path = tmp_path / "sys" / name
        sys_path.mkdir(parents=True, exist_ok=True)

        device = Mock()
        device.sys_path = str(sys_path)
        device.device_node = (
            device_node if device_node is not None else f"/dev/{name}"
        )
        device.properties = (
            dict(properties) if properties is not None else {"ID_FS_TYPE": "vfat"}
        )
        device.attributes = (
            dict(attributes)
            if attributes is not None
            else {"size": b"2048\n", "dev": b"8:17\n"}
        )
        device.ancestors = [
            Mock(subsystem="scsi"),
            Mock(subsystem="usb" if usb else "pci"),
        ]
        return device

    return _make
