"""Test fixtures for CLI tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from usbmount.cli.app import AppContext, app
from usbmount.cli.commands import register_all_commands


register_all_commands(app)


@pytest.fixture
def cli_app():
    """The usbmount Typer app with all commands registered."""
    return app


@pytest.fixture
def mock_orchestrator() -> Mock:
    orchestrator = Mock()
    orchestrator.mount.return_value = Path("/var/run/media/alice/BOOT")
    return orchestrator


@pytest.fixture
def patched_context(mock_orchestrator) -> Generator[Mock, None, None]:
    """Patch device discovery and the orchestrator on AppContext.

    Set ``patched_context.devices`` to the inventory the command should see.
    """
    state = Mock()
    state.devices = []
    with (
        patch.object(
            AppContext,
            "discover_devices",
            autospec=True,
            side_effect=lambda self: list(state.devices),
        ) as discover,
        patch.object(
            AppContext,
            "create_orchestrator",
            autospec=True,
            return_value=mock_orchestrator,
        ),
    ):
        state.discover = discover
        state.orchestrator = mock_orchestrator
        yield state
