"""Advisory per-device lock serialising concurrent usbmount runs."""

import fcntl
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from usbmount.core.errors import DeviceBusyError
from usbmount.core.structlog_logger import get_struct_logger


logger = get_struct_logger(__name__)


def lock_path_for(dev_path: str, lock_dir: Path) -> Path:
    """Lock file for a device, e.g. /run/lock/usbmount-dev-mapper-data.lock."""
    name = dev_path.strip("/").replace("/", "-")
    return Path(lock_dir) / f"usbmount-{name}.lock"


@contextmanager
def device_lock(dev_path: str, lock_dir: Path) -> Generator[Path, None, None]:
    """Hold an exclusive ``flock`` on the device's lock file.

    The lock file is never removed, so every run locks the same inode.

    Raises:
        DeviceBusyError: If another process holds the lock
    """
    lock_path = lock_path_for(dev_path, lock_dir)
    lock_path.parent.mkdir(parents=True, exist_ok=True)

    with lock_path.open("a") as lock_file:
        try:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            raise DeviceBusyError(dev_path) from None

        logger.debug("device_locked", dev_path=dev_path, lock=str(lock_path))
        try:
            yield lock_path
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
            logger.debug("device_unlocked", dev_path=dev_path)
