"""Privilege escalation by re-running usbmount through sudo."""

import os
import shutil
import signal
import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path

from usbmount.config.user_config import ENV_PREFIX
from usbmount.core.structlog_logger import get_struct_logger


logger = get_struct_logger(__name__)

# Commands that touch the mount namespace
PRIVILEGED_COMMANDS = frozenset({"mount", "m", "umount", "u"})

CONFIG_OPTIONS = ("-c", "--config")


def needs_escalation(command: str | None, skip_escalate: bool) -> bool:
    """Whether ``command`` has to be re-run as root."""
    if skip_escalate or command not in PRIVILEGED_COMMANDS:
        return False
    return os.geteuid() != 0


def forwarded_env_names() -> list[str]:
    """``USBMOUNT_*`` variables set for this process."""
    return sorted(name for name in os.environ if name.startswith(ENV_PREFIX))


def _has_config_option(args: Sequence[str]) -> bool:
    return any(arg in CONFIG_OPTIONS or arg.startswith("--config=") for arg in args)


def escalation_argv(
    escalation_command: str,
    argv: Sequence[str] | None = None,
    config_path: Path | str | None = None,
    env_names: Sequence[str] = (),
) -> list[str]:
    """Command line that re-runs this invocation under ``escalation_command``.

    sudo resets the environment and HOME, so the child would not find the
    caller's config. ``config_path`` is passed on with ``-c`` unless the
    caller already gave one, and ``env_names`` are kept with
    ``--preserve-env`` when the command is sudo.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    if config_path is not None and not _has_config_option(args):
        args = ["-c", str(config_path), *args]

    command = [escalation_command]
    if env_names:
        if Path(escalation_command).name == "sudo":
            command.append(f"--preserve-env={','.join(env_names)}")
        else:
            logger.warning(
                "environment_not_forwarded",
                escalation_command=escalation_command,
                names=list(env_names),
            )
    return [*command, sys.executable, "-m", "usbmount", *args]


def escalate(
    escalation_command: str = "sudo",
    argv: Sequence[str] | None = None,
    config_path: Path | str | None = None,
    env_names: Sequence[str] = (),
) -> int:
    """Run this invocation again as root and return its exit status.

    SIGINT is ignored while the escalated child runs so that Ctrl+C reaches
    the password prompt instead of killing the parent under it.
    """
    if shutil.which(escalation_command) is None:
        raise FileNotFoundError(
            f"escalation command `{escalation_command}` not found, "
            "run as root or pass --skip-escalate"
        )

    command = escalation_argv(escalation_command, argv, config_path, env_names)
    logger.debug("escalating", command=command)

    previous = signal.signal(signal.SIGINT, signal.SIG_IGN)
    try:
        completed = subprocess.run(command, check=False)
    finally:
        signal.signal(signal.SIGINT, previous)
    return completed.returncode
