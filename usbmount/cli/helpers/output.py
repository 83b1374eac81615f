"""Helper functions for rendering partition devices."""

import json
from collections.abc import Sequence

from rich.markup import escape
from rich.table import Table

from usbmount.cli.helpers.theme import TableStyles
from usbmount.models.device import PartitionDevice


OUTPUT_FORMATS = ("text", "table", "json")


def format_size(size_bytes: int) -> str:
    """Format a byte count with binary units, e.g. ``1.00 GiB``."""
    if size_bytes < 1024:
        return f"{max(size_bytes, 0)} B"

    size = float(size_bytes)
    for unit in ["B", "KiB", "MiB", "GiB", "TiB", "PiB"]:
        if size < 1024.0 or unit == "PiB":
            return f"{size:.2f} {unit}"
        size /= 1024.0
    return f"{size:.2f} PiB"


def format_optional(value: str | None) -> str:
    return f'"{value}"' if value is not None else "None"


def format_mount_points(mount_points: Sequence[str]) -> str:
    return "[" + ",".join(f'"{point}"' for point in mount_points) + "]"


def format_device_line(device: PartitionDevice, show_mount_points: bool = True) -> str:
    """One-line description used by ``info`` and the selection prompt.

    Example:
        /dev/sdb1 [MountPoint(["/media/a"]) FileSystem("vfat") Size("1.00 GiB")
        Label("BOOT") Model("nRF_UF2")]
    """
    fields = []
    if show_mount_points:
        fields.append(f"MountPoint({format_mount_points(device.mounted_points)})")
    fields.extend(
        [
            f"FileSystem({format_optional(device.filesystem)})",
            f"Size({format_optional(format_size(device.size_bytes))})",
            f"Label({format_optional(device.label)})",
            f"Model({format_optional(device.usb_model_name)})",
        ]
    )
    return f"{device.dev_path} [{' '.join(fields)}]"


def build_device_table(
    devices: Sequence[PartitionDevice],
    icon_mode: str = "emoji",
    show_mount_points: bool = True,
) -> Table:
    table = TableStyles.create_device_table(icon_mode, show_mount_points)
    for index, device in enumerate(devices, start=1):
        row = [str(index), escape(device.dev_path)]
        if show_mount_points:
            row.append(escape("\n".join(device.mounted_points)) or "-")
        row.extend(
            [
                device.filesystem,
                format_size(device.size_bytes),
                escape(device.label or "-"),
                escape(device.usb_model_name or "-"),
            ]
        )
        table.add_row(*row)
    return table


def devices_to_json(devices: Sequence[PartitionDevice]) -> str:
    return json.dumps([device.to_dict() for device in devices], indent=2)
