"""Umount command."""

from typing import Annotated

import typer

from usbmount.cli.app import AppContext
from usbmount.cli.decorators import handle_errors
from usbmount.cli.helpers.selection import choose_device, make_picker
from usbmount.cli.helpers.theme import get_themed_console
from usbmount.devices.orchestrator import failed_points


@handle_errors
def umount_command(
    ctx: typer.Context,
    dev_path: Annotated[
        str | None,
        typer.Argument(help="Device to unmount, e.g. /dev/sdb1", show_default=False),
    ] = None,
) -> None:
    """Unmount every mount point of a USB partition.

    Directories created by mount are removed afterwards. Exits with status 1
    when any mount point could not be unmounted.
    """
    app_ctx: AppContext = ctx.obj
    console = get_themed_console(app_ctx.icon_mode)

    device = choose_device(
        app_ctx.discover_devices(),
        dev_path,
        want_mounted=True,
        picker=make_picker(console, show_mount_points=True),
    )
    results = app_ctx.create_orchestrator().unmount(device)

    for result in results:
        if result.success:
            typer.echo(result.mount_point)
            if result.cleanup_error:
                console.print_warning(
                    f"mount point `{result.mount_point}` unmounted, "
                    f"directory kept: {result.cleanup_error}"
                )
        else:
            console.print_error(
                f"when umount device `{device.dev_path}` mount point "
                f"`{result.mount_point}`, encount error `{result.error}`"
            )

    if failed_points(results):
        raise typer.Exit(1)


def register_commands(app: typer.Typer) -> None:
    """Register umount command and its alias with the main app."""
    app.command(name="umount")(umount_command)
    app.command(name="u", hidden=True)(umount_command)
