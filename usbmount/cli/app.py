"""Main CLI application for usbmount."""

import logging
import sys
from importlib.metadata import distribution
from typing import Annotated

import typer

from usbmount.adapters.identity_adapter import create_identity_provider
from usbmount.adapters.mount_adapter import create_mounter
from usbmount.cli.decorators.error_handling import print_stack_trace_if_verbose
from usbmount.cli.helpers.escalation import (
    escalate,
    forwarded_env_names,
    needs_escalation,
)
from usbmount.cli.helpers.theme import get_themed_console
from usbmount.config.models import UserConfigData
from usbmount.config.user_config import ConfigError, UserConfig, create_user_config
from usbmount.core.logging import setup_logging
from usbmount.devices.classifier import DeviceClassifier
from usbmount.devices.mountinfo import MountTableIndex
from usbmount.devices.orchestrator import MountOrchestrator
from usbmount.devices.paths import MountPathAllocator
from usbmount.models.device import PartitionDevice


__all__ = ["AppContext", "app", "main", "__version__", "setup_logging"]


__version__ = distribution("usbmount").version

logger = logging.getLogger(__name__)


class AppContext:
    """Application context shared by all commands of one invocation.

    The mount table is parsed at most once per process, on first use, and
    handed to the classifier by reference.
    """

    def __init__(
        self,
        verbose: int = 0,
        log_file: str | None = None,
        config_file: str | None = None,
        no_emoji: bool = False,
        skip_escalate: bool = False,
        user_config: UserConfig | None = None,
    ) -> None:
        self.verbose = verbose
        self.log_file = log_file
        self.config_file = config_file
        self.no_emoji = no_emoji
        self.skip_escalate = skip_escalate
        self.user_config = user_config or create_user_config(
            cli_config_path=config_file
        )
        self._mount_table: MountTableIndex | None = None

    @property
    def settings(self) -> UserConfigData:
        return self.user_config.data

    @property
    def icon_mode(self) -> str:
        """CLI --no-emoji flag takes precedence over config file setting."""
        if self.no_emoji:
            return "text"
        return self.settings.icon_mode

    @property
    def mount_table(self) -> MountTableIndex:
        if self._mount_table is None:
            self._mount_table = MountTableIndex.build(self.settings.mount_info_path)
        return self._mount_table

    def discover_devices(self) -> list[PartitionDevice]:
        """Classify all block devices against the live mount table."""
        return DeviceClassifier(self.mount_table).enumerate()

    def create_orchestrator(self) -> MountOrchestrator:
        identity_provider = create_identity_provider()
        allocator = MountPathAllocator(
            identity_provider, marker_name=self.settings.marker_name
        )
        return MountOrchestrator(
            mounter=create_mounter(),
            allocator=allocator,
            identity_provider=identity_provider,
            settings=self.settings,
        )


app = typer.Typer(
    name="usbmount",
    help=f"""usbmount v{__version__}

External storage devices mounting tool.

Finds USB partitions (also behind LUKS/LVM device-mapper layers), shows where
they are mounted and mounts or unmounts them under
<auto-mount-dir>/<user>/<label>.

Common workflows:
  • List devices:   usbmount info
  • Mount:          usbmount mount [/dev/sdb1] [/mnt/stick]
  • Unmount:        usbmount umount [/dev/sdb1]""",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    skip_escalate: Annotated[
        bool,
        typer.Option(
            "-s",
            "--skip-escalate",
            help="Do not re-run mount/umount through sudo when not root",
        ),
    ] = False,
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity (-v=INFO, -vv=DEBUG)",
        ),
    ] = 0,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging (equivalent to -vv)"),
    ] = False,
    log_file: Annotated[
        str | None, typer.Option("--log-file", help="Log to file")
    ] = None,
    config_file: Annotated[
        str | None,
        typer.Option("-c", "--config", help="Path to configuration file"),
    ] = None,
    no_emoji: Annotated[
        bool,
        typer.Option("--no-emoji", help="Disable emoji icons in output"),
    ] = False,
    version: Annotated[
        bool, typer.Option("--version", help="Show version and exit")
    ] = False,
) -> None:
    """External storage devices mounting tool."""
    if version:
        print(f"usbmount v{__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        print(ctx.get_help())
        raise typer.Exit()

    try:
        app_context = AppContext(
            verbose=verbose,
            log_file=log_file,
            config_file=config_file,
            no_emoji=no_emoji,
            skip_escalate=skip_escalate,
        )
    except ConfigError as e:
        get_themed_console("text" if no_emoji else "emoji").print_error(str(e))
        raise typer.Exit(1) from e
    ctx.obj = app_context

    if debug or verbose >= 2:
        log_level = logging.DEBUG
    elif verbose == 1:
        log_level = logging.INFO
    else:
        log_level = app_context.user_config.get_log_level_int()

    setup_logging(level=log_level, log_file=log_file)

    if needs_escalation(ctx.invoked_subcommand, skip_escalate):
        try:
            exit_code = escalate(
                app_context.settings.escalation_command,
                config_path=app_context.user_config.loaded_from,
                env_names=forwarded_env_names(),
            )
        except FileNotFoundError as e:
            get_themed_console(app_context.icon_mode).print_error(str(e))
            raise typer.Exit(1) from e
        raise typer.Exit(exit_code)


def main() -> int:
    """Main CLI entry point."""
    from usbmount.cli.commands import register_all_commands

    register_all_commands(app)

    try:
        app()
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        print_stack_trace_if_verbose()
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
