"""Mount directory allocation and cleanup."""

import os
from pathlib import Path

from usbmount.config.models import DEFAULT_MARKER_NAME
from usbmount.core.errors import MountPathCleanupError, MountPathError
from usbmount.core.structlog_logger import get_struct_logger
from usbmount.models.device import PartitionDevice
from usbmount.protocols.identity_protocol import IdentityProviderProtocol


logger = get_struct_logger(__name__)


def mount_base_name(device: PartitionDevice) -> str:
    """Directory name for a device: its label, else the devnode name."""
    name = device.label or Path(device.dev_path).name
    # Keep the name a single path component
    name = name.replace("/", "_")
    if name in ("", ".", ".."):
        name = Path(device.dev_path).name
    return name


class MountPathAllocator:
    """Creates collision-free mount directories marked with a sentinel file.

    A directory is ``<root>/<user>/<name>``; when that path is taken the
    first free ``<name>-0``, ``<name>-1``, ... is used instead. The sentinel
    file inside the directory is what later allows :meth:`release` to tell a
    directory created here apart from one that belongs to someone else.
    """

    def __init__(
        self,
        identity_provider: IdentityProviderProtocol,
        marker_name: str = DEFAULT_MARKER_NAME,
    ) -> None:
        self.identity_provider = identity_provider
        self.marker_name = marker_name

    def candidate_path(self, device: PartitionDevice, auto_mount_root: Path) -> Path:
        username = self.identity_provider.current_user_identity().username
        base = Path(auto_mount_root) / username / mount_base_name(device)
        # lexists: a dangling symlink still occupies the name
        if not os.path.lexists(base):
            return base

        suffix = 0
        while True:
            candidate = Path(f"{base}-{suffix}")
            if not os.path.lexists(candidate):
                return candidate
            suffix += 1

    def allocate(self, device: PartitionDevice, auto_mount_root: Path) -> Path:
        """Create and mark a fresh mount directory for ``device``.

        Raises:
            MountPathError: If the directory or its marker cannot be created
        """
        path = self.candidate_path(device, auto_mount_root)
        try:
            path.mkdir(parents=True)
        except OSError as e:
            raise MountPathError(str(path), str(e)) from e

        marker = path / self.marker_name
        try:
            marker.touch()
        except OSError as e:
            raise MountPathError(str(marker), str(e)) from e

        logger.debug("mount_path_allocated", dev_path=device.dev_path, path=str(path))
        return path

    def is_marked(self, path: Path | str) -> bool:
        return (Path(path) / self.marker_name).is_file()

    def release(self, path: Path | str) -> bool:
        """Remove ``path`` if it carries the marker; leave it untouched otherwise.

        Only a directory holding nothing but the marker is removed. If the
        removal fails the marker is put back, so a later run can retry.

        Returns:
            True if the directory was removed

        Raises:
            MountPathCleanupError: If a marked directory cannot be removed
        """
        path = Path(path)
        if not self.is_marked(path):
            return False

        marker = path / self.marker_name
        try:
            leftovers = sorted(
                entry.name for entry in path.iterdir() if entry.name != marker.name
            )
            if leftovers:
                raise MountPathCleanupError(
                    str(path), f"directory not empty: {', '.join(leftovers)}"
                )
            marker.unlink()
        except OSError as e:
            raise MountPathCleanupError(str(path), str(e)) from e

        try:
            path.rmdir()
        except OSError as e:
            reason = str(e)
            try:
                marker.touch()
            except OSError as restore_error:
                reason = f"{reason}, marker not restored: {restore_error}"
            raise MountPathCleanupError(str(path), reason) from e

        logger.debug("mount_path_removed", path=str(path))
        return True
