"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

import sys

from rich.color import ColorSystem
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dotctl.core.theme import get_theme


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import). Rich honors NO_COLOR.
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def apply_color_mode(mode: str) -> None:
    """Apply the ``ui.color`` setting to the shared consoles.

    Args:
        mode: "auto", "always" or "never".
    """
    for target in (console, err_console):
        if mode == "never":
            target.no_color = True
        elif mode == "always":
            target.no_color = False
            # Console has no public setter for these after construction.
            target._force_terminal = True
            if target._color_system is None:
                target._color_system = ColorSystem.TRUECOLOR


def create_table(title: str, *columns: str) -> Table:
    """Create a pre-configured table with the given column headers.

    Args:
        title: Table title.
        *columns: Column headers, in order.

    Returns:
        Rich Table with dotctl styling.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    for column in columns:
        table.add_column(column)
    return table


def format_link_status(status: str) -> str:
    """Format a dotfile link status with color markup."""
    return f"[status.{status.replace('-file', '')}]{status}[/]"


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{escape(message)}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {escape(message)}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{escape(message)}[/]")
