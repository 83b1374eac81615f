"""Mounts and unmounts filesystems through libc."""

import ctypes
import errno
import os
from collections.abc import Sequence
from ctypes.util import find_library
from enum import IntEnum
from pathlib import Path
from typing import Any

from usbmount.core.structlog_logger import get_struct_logger


logger = get_struct_logger(__name__)

PROC_FILESYSTEMS = Path("/proc/filesystems")

# Errors meaning "this filesystem type does not fit the device"
_WRONG_FILESYSTEM_ERRNOS = frozenset({errno.ENODEV, errno.EINVAL})


class UnmountFlags(IntEnum):
    """Flags for umount2."""

    MNT_FORCE = 1
    MNT_DETACH = 2
    MNT_EXPIRE = 4
    UMOUNT_NOFOLLOW = 8


def _load_libc() -> Any:
    libc = ctypes.CDLL(find_library("c"), use_errno=True)
    libc.mount.argtypes = (
        ctypes.c_char_p,
        ctypes.c_char_p,
        ctypes.c_char_p,
        ctypes.c_ulong,
        ctypes.c_char_p,
    )
    libc.umount2.argtypes = (ctypes.c_char_p, ctypes.c_int)
    return libc


def read_supported_filesystems(path: Path = PROC_FILESYSTEMS) -> list[str]:
    """Return the block-device filesystems the kernel has registered.

    ``/proc/filesystems`` lists one filesystem per line; virtual ones are
    prefixed with ``nodev`` and cannot back a partition.
    """
    filesystems = []
    with path.open(encoding="utf-8") as f:
        for line in f:
            fields = line.split()
            if len(fields) == 1:
                filesystems.append(fields[0])
    return filesystems


class LibcMounter:
    """Implementation of the mount primitive over ``mount(2)``/``umount2(2)``."""

    def __init__(
        self, libc: Any | None = None, filesystems_path: Path = PROC_FILESYSTEMS
    ) -> None:
        self._libc = libc
        self._filesystems_path = filesystems_path

    @property
    def libc(self) -> Any:
        if self._libc is None:
            self._libc = _load_libc()
        return self._libc

    def supported_filesystems(self) -> list[str]:
        try:
            return read_supported_filesystems(self._filesystems_path)
        except OSError as e:
            logger.warning(
                "supported_filesystems_unreadable",
                path=str(self._filesystems_path),
                error=str(e),
            )
            return []

    def _mount_once(
        self, source: str, target: str, filesystem: str, options: str, flags: int
    ) -> None:
        result: int = self.libc.mount(
            source.encode(),
            target.encode(),
            filesystem.encode(),
            flags,
            options.encode() if options else None,
        )
        if result < 0:
            err = ctypes.get_errno()
            raise OSError(err, f"Error mounting {target}: {os.strerror(err)}")

    def mount(
        self,
        source: str | Path,
        target: str | Path,
        filesystems: Sequence[str],
        options: str = "",
        flags: int = 0,
    ) -> str:
        """
        Mount a filesystem, trying each candidate type in order.

        https://man7.org/linux/man-pages/man2/mount.2.html

        Raises:
            OSError: The first error when every candidate failed, or any error
                that does not indicate a filesystem type mismatch.
        """
        if not filesystems:
            raise OSError(errno.ENODEV, f"No filesystem type to mount {source} with")

        first_error: OSError | None = None
        for filesystem in filesystems:
            try:
                self._mount_once(str(source), str(target), filesystem, options, flags)
            except OSError as e:
                if e.errno not in _WRONG_FILESYSTEM_ERRNOS:
                    raise
                logger.debug(
                    "mount_filesystem_rejected",
                    source=str(source),
                    filesystem=filesystem,
                    error=str(e),
                )
                if first_error is None:
                    first_error = e
                continue

            logger.debug(
                "mounted", source=str(source), target=str(target), filesystem=filesystem
            )
            return filesystem

        assert first_error is not None
        raise first_error

    def unmount(self, target: str | Path, flags: int = 0) -> None:
        """
        Unmount a filesystem.

        https://man7.org/linux/man-pages/man2/umount.2.html

        Raises:
            OSError: On any unmount error.
        """
        result: int = self.libc.umount2(str(target).encode(), int(flags))
        if result < 0:
            err = ctypes.get_errno()
            raise OSError(err, f"Error unmounting {target}: {os.strerror(err)}")


def create_mounter() -> LibcMounter:
    """Factory function to create the default mounter."""
    return LibcMounter()
