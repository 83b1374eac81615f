"""Mount command."""

from pathlib import Path
from typing import Annotated

import typer

from usbmount.cli.app import AppContext
from usbmount.cli.decorators import handle_errors
from usbmount.cli.helpers.selection import choose_device, make_picker
from usbmount.cli.helpers.theme import get_themed_console


@handle_errors
def mount_command(
    ctx: typer.Context,
    dev_path: Annotated[
        str | None,
        typer.Argument(help="Device to mount, e.g. /dev/sdb1", show_default=False),
    ] = None,
    mount_path: Annotated[
        Path | None,
        typer.Argument(
            help="Mount here instead of <auto-mount-dir>/<user>/<label>",
            show_default=False,
        ),
    ] = None,
    auto_mount_dir: Annotated[
        Path | None,
        typer.Option(
            "-a",
            "--auto-mount-dir",
            help="Root of automatically created mount directories "
            "[default: from config, /var/run/media/]",
            show_default=False,
        ),
    ] = None,
    mount_option: Annotated[
        str | None,
        typer.Option(
            "-m",
            "--mount-option",
            help="Filesystem data passed to mount, e.g. 'uid=1000,gid=1000'",
        ),
    ] = None,
) -> None:
    """Mount a USB partition and print where it was mounted.

    Without DEV_PATH the only candidate is used, or you pick one of the
    unmounted devices.
    """
    app_ctx: AppContext = ctx.obj
    console = get_themed_console(app_ctx.icon_mode)

    device = choose_device(
        app_ctx.discover_devices(),
        dev_path,
        want_mounted=False,
        picker=make_picker(console, show_mount_points=False),
    )
    target = app_ctx.create_orchestrator().mount(
        device,
        mount_path=mount_path,
        options=mount_option,
        auto_mount_root=auto_mount_dir,
    )
    typer.echo(str(target))


def register_commands(app: typer.Typer) -> None:
    """Register mount command and its alias with the main app."""
    app.command(name="mount")(mount_command)
    app.command(name="m", hidden=True)(mount_command)
