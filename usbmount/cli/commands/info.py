"""Info command."""

from typing import Annotated

import typer
from rich.console import Console

from usbmount.cli.app import AppContext
from usbmount.cli.decorators import handle_errors
from usbmount.cli.helpers.output import (
    OUTPUT_FORMATS,
    build_device_table,
    devices_to_json,
    format_device_line,
)


@handle_errors
def info_command(
    ctx: typer.Context,
    output_format: Annotated[
        str,
        typer.Option(
            "--output-format",
            "-f",
            help="Output format: text|table|json",
        ),
    ] = "text",
) -> None:
    """List USB partitions with their mount points.

    Formats:
    - text: one line per device (default)
    - table: Rich table
    - json: list of device objects
    """
    output_format = output_format.lower()
    if output_format not in OUTPUT_FORMATS:
        raise typer.BadParameter(
            f"Unknown format '{output_format}'. "
            f"Supported formats: {', '.join(OUTPUT_FORMATS)}",
            param_hint="--output-format",
        )

    app_ctx: AppContext = ctx.obj
    devices = app_ctx.discover_devices()

    if output_format == "json":
        print(devices_to_json(devices))
    elif output_format == "table":
        Console().print(build_device_table(devices, app_ctx.icon_mode))
    else:
        for device in devices:
            print(format_device_line(device))


def register_commands(app: typer.Typer) -> None:
    """Register info command and its alias with the main app."""
    app.command(name="info")(info_command)
    app.command(name="i", hidden=True)(info_command)
