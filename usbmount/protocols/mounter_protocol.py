"""Protocol definition for mount/unmount syscalls."""

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class MounterProtocol(Protocol):
    """Protocol for the OS level mount and unmount primitives."""

    def mount(
        self,
        source: str | Path,
        target: str | Path,
        filesystems: Sequence[str],
        options: str = "",
        flags: int = 0,
    ) -> str:
        """Mount ``source`` on ``target``.

        Args:
            source: Block device path
            target: Existing directory to mount on
            filesystems: Filesystem types to try, in order
            options: Filesystem specific data string, e.g. ``uid=1000,gid=1000``
            flags: ``MS_*`` mount flags

        Returns:
            The filesystem type that succeeded

        Raises:
            OSError: If no candidate filesystem could be mounted
        """
        ...

    def unmount(self, target: str | Path, flags: int = 0) -> None:
        """Unmount ``target``.

        Raises:
            OSError: If the unmount syscall fails
        """
        ...

    def supported_filesystems(self) -> list[str]:
        """Block-device filesystems registered with the running kernel."""
        ...
