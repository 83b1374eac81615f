"""CLI command modules."""

import typer

from usbmount.cli.commands.info import register_commands as register_info_commands
from usbmount.cli.commands.mount import register_commands as register_mount_commands
from usbmount.cli.commands.umount import (
    register_commands as register_umount_commands,
)


def register_all_commands(app: typer.Typer) -> None:
    """Register all CLI commands with the main app.

    Args:
        app: The main Typer app
    """
    register_mount_commands(app)
    register_umount_commands(app)
    register_info_commands(app)
