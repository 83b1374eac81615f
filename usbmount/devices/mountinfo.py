"""Index of the kernel mount table keyed by device id.

Each line of ``/proc/self/mountinfo`` has the layout::

    36 35 98:0 /mnt1 /mnt2 rw,noatime master:1 - ext3 /dev/root rw,errors=continue
    (1)(2)(3)   (4)   (5)      (6)      (7)   (8) (9)     (10)       (11)

(1) mount id, (2) parent id, (3) ``major:minor``, (4) root, (5) mount point,
(6) mount options, (7) zero or more optional fields, (8) separator, (9)
filesystem type, (10) mount source, (11) super options.

See proc(5).
"""

import re
from collections import defaultdict
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import NamedTuple

from usbmount.core.errors import MountTableParseError
from usbmount.core.structlog_logger import get_struct_logger


logger = get_struct_logger(__name__)

DEFAULT_MOUNTINFO_PATH = Path("/proc/self/mountinfo")

_DEVICE_ID_RE = re.compile(r"^\d+:\d+$")
_OCTAL_ESCAPE_RE = re.compile(r"\\([0-7]{3})")
_SEPARATOR = "-"
_FIXED_FIELDS = 6


class MountInfoEntry(NamedTuple):
    """One parsed mountinfo line."""

    mount_id: int
    parent_id: int
    device_id: str
    root: str
    mount_point: str
    mount_options: str
    optional_fields: tuple[str, ...]
    filesystem: str
    source: str
    super_options: str


def unescape_mount_field(value: str) -> str:
    """Decode the octal escapes used for space, tab, newline and backslash."""
    return _OCTAL_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 8)), value)


def parse_mountinfo_line(line: str) -> MountInfoEntry:
    """Tokenize a single mountinfo line.

    Raises:
        MountTableParseError: If the line does not have the mountinfo shape
    """
    fields = line.split()
    if len(fields) < _FIXED_FIELDS + 3:
        raise MountTableParseError(line, "too few fields")

    try:
        separator = fields.index(_SEPARATOR, _FIXED_FIELDS)
    except ValueError:
        raise MountTableParseError(line, "missing `-` separator") from None

    tail = fields[separator + 1 :]
    if len(tail) < 2:
        raise MountTableParseError(line, "missing filesystem type or source")

    mount_id, parent_id, device_id = fields[0], fields[1], fields[2]
    if not (mount_id.isdigit() and parent_id.isdigit()):
        raise MountTableParseError(line, "mount id and parent id must be numeric")
    if not _DEVICE_ID_RE.match(device_id):
        raise MountTableParseError(line, f"invalid device id {device_id!r}")

    return MountInfoEntry(
        mount_id=int(mount_id),
        parent_id=int(parent_id),
        device_id=device_id,
        root=unescape_mount_field(fields[3]),
        mount_point=unescape_mount_field(fields[4]),
        mount_options=fields[5],
        optional_fields=tuple(fields[_FIXED_FIELDS:separator]),
        filesystem=tail[0],
        source=unescape_mount_field(tail[1]),
        super_options=tail[2] if len(tail) > 2 else "",
    )


def iter_mountinfo(
    lines: Iterable[str], strict: bool = True
) -> Iterator[MountInfoEntry]:
    """Parse mountinfo lines, skipping blanks.

    With ``strict`` a malformed line raises; otherwise it is logged and skipped.
    """
    for line in lines:
        line = line.rstrip("\n")
        if not line.strip():
            continue
        try:
            yield parse_mountinfo_line(line)
        except MountTableParseError as e:
            if strict:
                raise
            logger.warning("mountinfo_line_skipped", line=e.line, reason=e.reason)


class MountTableIndex:
    """Immutable map from ``major:minor`` to the mount points of that device."""

    def __init__(self, mount_points: dict[str, tuple[str, ...]] | None = None) -> None:
        self._mount_points: dict[str, tuple[str, ...]] = dict(mount_points or {})

    @classmethod
    def from_entries(cls, entries: Iterable[MountInfoEntry]) -> "MountTableIndex":
        grouped: dict[str, list[str]] = defaultdict(list)
        for entry in entries:
            grouped[entry.device_id].append(entry.mount_point)
        return cls({device_id: tuple(points) for device_id, points in grouped.items()})

    @classmethod
    def from_lines(cls, lines: Iterable[str], strict: bool = True) -> "MountTableIndex":
        return cls.from_entries(iter_mountinfo(lines, strict=strict))

    @classmethod
    def build(
        cls, path: Path | str = DEFAULT_MOUNTINFO_PATH, strict: bool = True
    ) -> "MountTableIndex":
        """Read and index the mount table at ``path``."""
        with Path(path).open(encoding="utf-8", errors="surrogateescape") as f:
            index = cls.from_lines(f, strict=strict)
        logger.debug("mount_table_indexed", path=str(path), devices=len(index))
        return index

    def lookup(self, device_id: str) -> tuple[str, ...]:
        """Mount points of ``device_id`` in table order, empty if unknown."""
        return self._mount_points.get(device_id, ())

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._mount_points

    def __len__(self) -> int:
        return len(self._mount_points)

    def __repr__(self) -> str:
        return f"MountTableIndex({self._mount_points!r})"
