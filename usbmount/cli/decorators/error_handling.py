"""Error handling decorators for CLI commands."""

import logging
import sys
import traceback
from collections.abc import Callable
from functools import wraps
from typing import Any

import click
import typer

from usbmount.cli.helpers.selection import SelectionCancelled
from usbmount.cli.helpers.theme import get_themed_console
from usbmount.config.user_config import ConfigError
from usbmount.core.errors import (
    DeviceAttributeError,
    DeviceSelectionError,
    MountError,
    MountPathError,
    MountTableParseError,
    UsbmountError,
)
from usbmount.core.structlog_logger import get_struct_logger


__all__ = ["handle_errors", "print_stack_trace_if_verbose"]

logger = get_struct_logger(__name__)


def _icon_mode() -> str:
    ctx = click.get_current_context(silent=True)
    app_context = getattr(ctx, "obj", None)
    return str(getattr(app_context, "icon_mode", "emoji"))


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to handle usbmount exceptions in CLI commands.

    Expected conditions (no device, already mounted, ...) are reported on
    stderr; broken host assumptions (malformed mount table, missing device
    attributes, uncreatable directories) are logged as errors. Both exit with
    status 1.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        console = get_themed_console(_icon_mode())
        try:
            return func(*args, **kwargs)
        except SelectionCancelled as e:
            # Prompt may have hidden the cursor
            console.console.show_cursor(True)
            raise typer.Exit(1) from e
        except (DeviceSelectionError, MountError) as e:
            console.print_error(str(e))
            raise typer.Exit(1) from e
        except (
            MountTableParseError,
            DeviceAttributeError,
            MountPathError,
            ConfigError,
        ) as e:
            exc_info = logging.getLogger().isEnabledFor(logging.DEBUG)
            logger.error("host_assumption_violated", error=str(e), exc_info=exc_info)
            console.print_error(str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except UsbmountError as e:
            console.print_error(str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except PermissionError as e:
            console.print_error(f"{e} (are you root? try without --skip-escalate)")
            raise typer.Exit(1) from e

    return wrapper


def print_stack_trace_if_verbose() -> None:
    """Print stack trace if verbose/debug mode is enabled."""
    if any(arg in sys.argv for arg in ["-v", "-vv", "--verbose", "--debug"]):
        print("\nStack trace:", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
