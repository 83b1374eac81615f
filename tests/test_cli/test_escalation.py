"""Tests for privilege escalation."""

import signal
import sys
from unittest.mock import Mock, patch

import pytest

from usbmount.cli.helpers.escalation import (
    escalate,
    escalation_argv,
    forwarded_env_names,
    needs_escalation,
)


class TestNeedsEscalation:
    """Test when a command is re-run as root."""

    @pytest.mark.parametrize("command", ["mount", "m", "umount", "u"])
    def test_privileged_commands(self, command):
        """Test mount and umount need root."""
        with patch("usbmount.cli.helpers.escalation.os.geteuid", return_value=1000):
            assert needs_escalation(command, skip_escalate=False)

    @pytest.mark.parametrize("command", ["info", "i", None])
    def test_unprivileged_commands(self, command):
        """Test info never escalates."""
        with patch("usbmount.cli.helpers.escalation.os.geteuid", return_value=1000):
            assert not needs_escalation(command, skip_escalate=False)

    def test_already_root(self):
        """Test root does not escalate."""
        with patch("usbmount.cli.helpers.escalation.os.geteuid", return_value=0):
            assert not needs_escalation("mount", skip_escalate=False)

    def test_skip_escalate(self):
        """Test the skip flag disables escalation."""
        with patch("usbmount.cli.helpers.escalation.os.geteuid", return_value=1000):
            assert not needs_escalation("mount", skip_escalate=True)


class TestEscalate:
    """Test re-running through sudo."""

    def test_escalation_argv(self):
        """Test the command line re-runs the module with the same arguments."""
        assert escalation_argv("sudo", ["-v", "mount", "/dev/sdb1"]) == [
            "sudo",
            sys.executable,
            "-m",
            "usbmount",
            "-v",
            "mount",
            "/dev/sdb1",
        ]

    def test_escalation_argv_defaults_to_sys_argv(self):
        """Test sys.argv is used without explicit arguments."""
        with patch.object(sys, "argv", ["usbmount", "umount"]):
            assert escalation_argv("doas")[-1] == "umount"

    def test_escalation_argv_passes_config_file(self, tmp_path):
        """Test the loaded config file is handed to the child before the command."""
        config_file = tmp_path / "config.yaml"

        argv = escalation_argv("sudo", ["mount", "/dev/sdb1"], config_path=config_file)

        assert argv[4:] == ["-c", str(config_file), "mount", "/dev/sdb1"]

    @pytest.mark.parametrize(
        "args",
        [
            ["-c", "mine.yaml", "mount"],
            ["--config", "mine.yaml", "mount"],
            ["--config=mine.yaml", "mount"],
        ],
    )
    def test_escalation_argv_keeps_explicit_config(self, tmp_path, args):
        """Test a config file given on the command line is not overridden."""
        argv = escalation_argv("sudo", args, config_path=tmp_path / "config.yaml")

        assert argv[4:] == args

    def test_escalation_argv_preserves_env_for_sudo(self):
        """Test USBMOUNT_* names are kept through sudo's environment reset."""
        argv = escalation_argv(
            "/usr/bin/sudo",
            ["mount"],
            env_names=["USBMOUNT_AUTO_MOUNT_DIR", "USBMOUNT_LOG_LEVEL"],
        )

        assert argv[:2] == [
            "/usr/bin/sudo",
            "--preserve-env=USBMOUNT_AUTO_MOUNT_DIR,USBMOUNT_LOG_LEVEL",
        ]
        assert argv[2:] == [sys.executable, "-m", "usbmount", "mount"]

    def test_escalation_argv_other_command_gets_no_sudo_flag(self):
        """Test --preserve-env is only added for sudo."""
        argv = escalation_argv("doas", ["mount"], env_names=["USBMOUNT_LOG_LEVEL"])

        assert argv == ["doas", sys.executable, "-m", "usbmount", "mount"]

    def test_forwarded_env_names(self, monkeypatch):
        """Test only USBMOUNT_* variables are forwarded."""
        monkeypatch.setenv("USBMOUNT_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("USBMOUNT_AUTO_MOUNT_DIR", "/srv/media")
        monkeypatch.setenv("OTHER_VARIABLE", "x")

        assert forwarded_env_names() == [
            "USBMOUNT_AUTO_MOUNT_DIR",
            "USBMOUNT_LOG_LEVEL",
        ]

    def test_escalate_forwards_config(self, tmp_path):
        """Test escalate builds the command with config and environment."""
        config_file = tmp_path / "config.yaml"
        with (
            patch(
                "usbmount.cli.helpers.escalation.shutil.which",
                return_value="/usr/bin/sudo",
            ),
            patch(
                "usbmount.cli.helpers.escalation.subprocess.run",
                return_value=Mock(returncode=0),
            ) as mock_run,
        ):
            escalate(
                "sudo",
                ["umount"],
                config_path=config_file,
                env_names=["USBMOUNT_LOCK_DIR"],
            )

        command = mock_run.call_args.args[0]
        assert command[1] == "--preserve-env=USBMOUNT_LOCK_DIR"
        assert command[-3:] == ["-c", str(config_file), "umount"]

    def test_escalate_returns_child_status(self):
        """Test the child's exit status is returned."""
        with (
            patch(
                "usbmount.cli.helpers.escalation.shutil.which",
                return_value="/usr/bin/sudo",
            ),
            patch(
                "usbmount.cli.helpers.escalation.subprocess.run",
                return_value=Mock(returncode=3),
            ) as mock_run,
        ):
            assert escalate("sudo", ["mount"]) == 3

        command = mock_run.call_args.args[0]
        assert command[0] == "sudo"
        assert command[-1] == "mount"

    def test_sigint_ignored_while_child_runs(self):
        """Test SIGINT is ignored during the child and restored after."""
        before = signal.getsignal(signal.SIGINT)
        seen = []

        def fake_run(command, check):
            seen.append(signal.getsignal(signal.SIGINT))
            return Mock(returncode=0)

        with (
            patch(
                "usbmount.cli.helpers.escalation.shutil.which",
                return_value="/usr/bin/sudo",
            ),
            patch(
                "usbmount.cli.helpers.escalation.subprocess.run",
                side_effect=fake_run,
            ),
        ):
            escalate("sudo", ["mount"])

        assert seen == [signal.SIG_IGN]
        assert signal.getsignal(signal.SIGINT) == before

    def test_handler_restored_on_error(self):
        """Test the SIGINT handler is restored when the child cannot start."""
        before = signal.getsignal(signal.SIGINT)

        with (
            patch(
                "usbmount.cli.helpers.escalation.shutil.which",
                return_value="/usr/bin/sudo",
            ),
            patch(
                "usbmount.cli.helpers.escalation.subprocess.run",
                side_effect=OSError("exec failed"),
            ),
            pytest.raises(OSError),
        ):
            escalate("sudo", ["mount"])

        assert signal.getsignal(signal.SIGINT) == before

    def test_missing_escalation_command(self):
        """Test a missing sudo is reported."""
        with (
            patch("usbmount.cli.helpers.escalation.shutil.which", return_value=None),
            pytest.raises(FileNotFoundError, match="doas"),
        ):
            escalate("doas", ["mount"])
