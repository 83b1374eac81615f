"""Unified theme for consistent Rich styling across CLI commands."""

from rich.console import Console
from rich.table import Table
from rich.theme import Theme


class Colors:
    """Standardized color palette for CLI output."""

    SUCCESS = "bold green"
    ERROR = "bold red"
    WARNING = "bold yellow"
    INFO = "bold blue"

    PRIMARY = "cyan"
    SECONDARY = "blue"
    ACCENT = "magenta"
    MUTED = "dim"

    HEADER = "bold cyan"


class Icons:
    """Standardized icons for different message types."""

    SUCCESS = "✅"
    ERROR = "❌"
    WARNING = "⚠️"
    INFO = "ℹ️"
    DEVICE = "🔌"

    _TEXT_FALLBACKS = {
        "SUCCESS": "✓",
        "ERROR": "✗",
        "WARNING": "!",
        "INFO": "i",
        "DEVICE": "",
    }

    @classmethod
    def get_icon(cls, icon_name: str, icon_mode: str = "emoji") -> str:
        """Get icon based on the specified mode ("emoji" or "text")."""
        if icon_mode == "emoji":
            return str(getattr(cls, icon_name, ""))
        return cls._TEXT_FALLBACKS.get(icon_name, f"[{icon_name}]")

    @classmethod
    def format_with_icon(
        cls, icon_name: str, text: str, icon_mode: str = "emoji"
    ) -> str:
        """Format text with icon, handling empty icons gracefully."""
        icon = cls.get_icon(icon_name, icon_mode)
        if icon:
            return f"{icon} {text}"
        return text


USBMOUNT_THEME = Theme(
    {
        "success": Colors.SUCCESS,
        "error": Colors.ERROR,
        "warning": Colors.WARNING,
        "info": Colors.INFO,
        "primary": Colors.PRIMARY,
        "secondary": Colors.SECONDARY,
        "accent": Colors.ACCENT,
        "muted": Colors.MUTED,
        "header": Colors.HEADER,
    }
)


class ThemedConsole:
    """Console wrapper with the usbmount theme applied.

    Messages go to stderr: stdout only carries command results.
    """

    def __init__(self, icon_mode: str = "emoji") -> None:
        self.console = Console(theme=USBMOUNT_THEME, stderr=True)
        self.icon_mode = icon_mode

    def print_error(self, message: str) -> None:
        self.console.print(
            Icons.format_with_icon("ERROR", message, self.icon_mode),
            style="error",
            markup=False,
        )

    def print_warning(self, message: str) -> None:
        self.console.print(
            Icons.format_with_icon("WARNING", message, self.icon_mode),
            style="warning",
            markup=False,
        )


class TableStyles:
    """Predefined table styling templates."""

    @staticmethod
    def create_device_table(
        icon_mode: str = "emoji", show_mount_points: bool = True
    ) -> Table:
        """Create table for partition listings."""
        title = Icons.format_with_icon("DEVICE", "USB Partitions", icon_mode)
        table = Table(
            title=title,
            show_header=True,
            header_style=Colors.HEADER,
            border_style=Colors.SECONDARY,
        )
        table.add_column("#", style=Colors.MUTED, justify="right")
        table.add_column("Device", style=Colors.PRIMARY, no_wrap=True)
        if show_mount_points:
            table.add_column("Mount Points", style="bold")
        table.add_column("Filesystem")
        table.add_column("Size", justify="right")
        table.add_column("Label", style=Colors.ACCENT)
        table.add_column("Model", style=Colors.MUTED)
        return table


def get_themed_console(icon_mode: str = "emoji") -> ThemedConsole:
    """Get a themed console instance."""
    return ThemedConsole(icon_mode=icon_mode)
