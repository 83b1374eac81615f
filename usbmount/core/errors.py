"""Exception hierarchy for usbmount.

Two tiers of errors exist:

* Fatal errors describe a broken assumption about the host environment (a
  malformed mount table line, a classified device without a ``dev`` attribute,
  a mount directory that cannot be created). They abort the command.
* Recoverable errors describe expected runtime conditions (no device found,
  device already mounted, ...). The CLI reports them on stderr and exits with
  a non-zero status.
"""

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from usbmount.models.device import PartitionDevice


class UsbmountError(Exception):
    """Base exception for all usbmount errors."""


class MountTableParseError(UsbmountError):
    """A mount table line does not have the expected shape."""

    def __init__(self, line: str, reason: str) -> None:
        self.line = line
        self.reason = reason
        super().__init__(f"mountinfo parse error ({reason}): {line!r}")


class DeviceAttributeError(UsbmountError):
    """A classified device lacks an attribute it is expected to have."""

    def __init__(self, sys_path: str, attribute: str) -> None:
        self.sys_path = sys_path
        self.attribute = attribute
        super().__init__(f"{attribute} for device `{sys_path}` get failed")


class MountPathError(UsbmountError):
    """A mount directory or its marker file could not be created."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"mount path `{path}` create error: {reason}")


class MountPathCleanupError(UsbmountError):
    """A marked mount directory could not be removed after unmount."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"mount path `{path}` remove error: {reason}")


class DeviceSelectionError(UsbmountError):
    """No device could be chosen for the requested action."""


class NoDeviceError(DeviceSelectionError):
    """There is no candidate device left to act on."""


class DeviceNotFoundError(DeviceSelectionError):
    """An explicitly requested device is not an eligible partition."""

    def __init__(self, dev_path: str) -> None:
        self.dev_path = dev_path
        super().__init__(
            f"device `{dev_path}` not exist or its not a portable block device"
        )


class MountError(UsbmountError):
    """Base exception for mount and unmount failures."""


class AlreadyMountedError(MountError):
    """The device already has at least one mount point."""

    def __init__(self, device: "PartitionDevice", mount_point: str) -> None:
        self.device = device
        self.mount_point = mount_point
        super().__init__(
            f"device `{device.dev_path}` already mounted at `{mount_point}`"
        )


class NotMountedError(MountError):
    """The device has no mount point to unmount."""

    def __init__(self, device: "PartitionDevice") -> None:
        self.device = device
        super().__init__(f"device `{device.dev_path}` don't have any mount point")


class MountFailedError(MountError):
    """The mount syscall failed for every candidate filesystem."""

    def __init__(self, device: "PartitionDevice", target: str, reason: str) -> None:
        self.device = device
        self.target = target
        self.reason = reason
        super().__init__(f"failed to mount {device.dev_path} to {target}: {reason}")


class DeviceBusyError(MountError):
    """Another usbmount process holds the lock for this device."""

    def __init__(self, dev_path: str) -> None:
        self.dev_path = dev_path
        super().__init__(f"device `{dev_path}` is being handled by another process")


__all__ = [
    "AlreadyMountedError",
    "DeviceAttributeError",
    "DeviceBusyError",
    "DeviceNotFoundError",
    "DeviceSelectionError",
    "MountError",
    "MountFailedError",
    "MountPathCleanupError",
    "MountPathError",
    "MountTableParseError",
    "NoDeviceError",
    "NotMountedError",
    "UsbmountError",
]
