"""Helpers shared by CLI commands."""

from usbmount.cli.helpers.output import (
    build_device_table,
    devices_to_json,
    format_device_line,
    format_size,
)
from usbmount.cli.helpers.theme import Icons, ThemedConsole, get_themed_console


__all__ = [
    "Icons",
    "ThemedConsole",
    "build_device_table",
    "devices_to_json",
    "format_device_line",
    "format_size",
    "get_themed_console",
]
