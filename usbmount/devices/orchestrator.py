"""Mount and unmount orchestration."""

import contextlib
from collections.abc import Iterator, Sequence
from pathlib import Path

from usbmount.config.models import UserConfigData
from usbmount.core.errors import (
    AlreadyMountedError,
    MountFailedError,
    MountPathCleanupError,
    NotMountedError,
)
from usbmount.core.structlog_logger import get_struct_logger
from usbmount.devices.lock import device_lock
from usbmount.devices.paths import MountPathAllocator
from usbmount.models.device import PartitionDevice, UnmountResult
from usbmount.protocols.identity_protocol import IdentityProviderProtocol
from usbmount.protocols.mounter_protocol import MounterProtocol


logger = get_struct_logger(__name__)


class MountOrchestrator:
    """Executes mount/unmount for one device and keeps mount directories tidy."""

    def __init__(
        self,
        mounter: MounterProtocol,
        allocator: MountPathAllocator,
        identity_provider: IdentityProviderProtocol,
        settings: UserConfigData | None = None,
    ) -> None:
        self.mounter = mounter
        self.allocator = allocator
        self.identity_provider = identity_provider
        self.settings = settings or UserConfigData()

    @contextlib.contextmanager
    def _locked(self, device: PartitionDevice) -> Iterator[None]:
        if not self.settings.use_device_lock:
            yield
            return
        with device_lock(device.dev_path, self.settings.lock_dir):
            yield

    def default_options(self, device: PartitionDevice) -> str:
        """Options injected when the caller gave none.

        Filesystems without POSIX ownership get ``uid=``/``gid=`` of the
        invoking user; everything else mounts with no extra data.
        """
        if device.filesystem not in self.settings.default_option_filesystems:
            return ""
        identity = self.identity_provider.current_user_identity()
        return f"uid={identity.uid},gid={identity.gid}"

    def filesystem_candidates(self, device: PartitionDevice) -> list[str]:
        """Reported filesystem first, then whatever else the kernel supports."""
        candidates = [device.filesystem]
        candidates.extend(
            fs for fs in self.mounter.supported_filesystems() if fs != device.filesystem
        )
        return candidates

    def mount(
        self,
        device: PartitionDevice,
        mount_path: Path | str | None = None,
        options: str | None = None,
        auto_mount_root: Path | None = None,
    ) -> Path:
        """Mount ``device`` and return the mount path.

        Raises:
            AlreadyMountedError: If the device already has a mount point
            MountFailedError: If the mount syscall fails
        """
        if device.mounted_points:
            raise AlreadyMountedError(device, device.mounted_points[0])

        with self._locked(device):
            allocated = mount_path is None
            if mount_path is None:
                target = self.allocator.allocate(
                    device, auto_mount_root or self.settings.auto_mount_dir
                )
            else:
                target = Path(mount_path)

            data = options if options is not None else self.default_options(device)
            logger.info(
                "mounting",
                dev_path=device.dev_path,
                target=str(target),
                filesystem=device.filesystem,
                options=data,
            )

            try:
                filesystem = self.mounter.mount(
                    device.dev_path, target, self.filesystem_candidates(device), data
                )
            except OSError as e:
                if allocated:
                    self._release_quietly(device, str(target))
                raise MountFailedError(device, str(target), str(e)) from e

        logger.info(
            "mounted",
            dev_path=device.dev_path,
            target=str(target),
            filesystem=filesystem,
        )
        return target

    def unmount(self, device: PartitionDevice) -> list[UnmountResult]:
        """Unmount every mount point of ``device``.

        A failure at one mount point is recorded in its result and does not
        stop the remaining ones.

        Raises:
            NotMountedError: If the device has no mount point
        """
        if not device.mounted_points:
            raise NotMountedError(device)

        with self._locked(device):
            return [
                self._unmount_point(device, point) for point in device.mounted_points
            ]

    def _unmount_point(
        self, device: PartitionDevice, mount_point: str
    ) -> UnmountResult:
        try:
            self.mounter.unmount(mount_point)
        except OSError as e:
            logger.warning(
                "unmount_failed",
                dev_path=device.dev_path,
                mount_point=mount_point,
                error=str(e),
            )
            return UnmountResult(mount_point=mount_point, error=str(e))

        try:
            removed = self.allocator.release(mount_point)
        except MountPathCleanupError as e:
            logger.warning(
                "mount_path_cleanup_failed",
                dev_path=device.dev_path,
                mount_point=mount_point,
                error=str(e),
            )
            return UnmountResult(mount_point=mount_point, cleanup_error=str(e))

        logger.info(
            "unmounted",
            dev_path=device.dev_path,
            mount_point=mount_point,
            directory_removed=removed,
        )
        return UnmountResult(mount_point=mount_point, directory_removed=removed)

    def _release_quietly(self, device: PartitionDevice, path: str) -> None:
        try:
            self.allocator.release(path)
        except MountPathCleanupError as e:
            logger.warning(
                "mount_path_cleanup_failed", dev_path=device.dev_path, error=str(e)
            )


def failed_points(results: Sequence[UnmountResult]) -> list[UnmountResult]:
    return [result for result in results if not result.success]
