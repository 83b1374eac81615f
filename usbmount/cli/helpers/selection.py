"""Device selection for mount and umount commands."""

from collections.abc import Callable, Sequence

import click
import typer

from usbmount.cli.helpers.output import build_device_table
from usbmount.cli.helpers.theme import ThemedConsole
from usbmount.core.errors import DeviceNotFoundError, NoDeviceError
from usbmount.core.structlog_logger import get_struct_logger
from usbmount.devices.classifier import find_device
from usbmount.models.device import PartitionDevice


logger = get_struct_logger(__name__)

Picker = Callable[[Sequence[PartitionDevice], str], int | None]


class SelectionCancelled(Exception):
    """The user left the interactive prompt without choosing."""


def prompt_for_device(
    devices: Sequence[PartitionDevice],
    prompt: str,
    console: ThemedConsole,
    show_mount_points: bool = True,
) -> int | None:
    """Show the candidates and ask for a number.

    Returns:
        Zero-based index of the chosen device, or None when cancelled
    """
    console.console.print(
        build_device_table(devices, console.icon_mode, show_mount_points)
    )
    try:
        choice: int = typer.prompt(
            prompt,
            default=1,
            type=click.IntRange(1, len(devices)),
            err=True,
        )
    except (click.Abort, KeyboardInterrupt, EOFError):
        return None
    return choice - 1


def choose_device(
    devices: Sequence[PartitionDevice],
    dev_path: str | None,
    want_mounted: bool,
    picker: Picker,
) -> PartitionDevice:
    """Resolve which device a mount (``want_mounted=False``) or umount acts on.

    * an explicit ``dev_path`` must be one of ``devices``;
    * a single candidate is used as is;
    * otherwise the user picks among the unmounted (mount) or mounted (umount)
      candidates.

    Raises:
        DeviceNotFoundError: If ``dev_path`` is not an eligible device
        NoDeviceError: If there is nothing to choose from
        SelectionCancelled: If the user cancelled the prompt
    """
    if dev_path is not None:
        device = find_device(devices, dev_path)
        if device is None:
            raise DeviceNotFoundError(dev_path)
        return device

    if not devices:
        raise NoDeviceError("usb block device not found")

    if len(devices) == 1:
        logger.debug("single_device_selected", dev_path=devices[0].dev_path)
        return devices[0]

    choices = [device for device in devices if device.is_mounted == want_mounted]
    if not choices:
        raise NoDeviceError(
            "no mounted device found" if want_mounted else "all device already mounted"
        )

    prompt = (
        "pick the device you want umount"
        if want_mounted
        else "pick the device you want mount"
    )
    index = picker(choices, prompt)
    if index is None:
        raise SelectionCancelled()
    return choices[index]


def make_picker(console: ThemedConsole, show_mount_points: bool) -> Picker:
    def picker(devices: Sequence[PartitionDevice], prompt: str) -> int | None:
        return prompt_for_device(devices, prompt, console, show_mount_points)

    return picker


__all__ = [
    "SelectionCancelled",
    "choose_device",
    "make_picker",
    "prompt_for_device",
]
