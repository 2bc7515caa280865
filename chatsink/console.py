"""Rich console abstraction layer for chatsink CLI output.

This module provides a centralized interface for all CLI output operations.
Handles NO_COLOR environment variable and CI/CD compatibility.
"""

from __future__ import annotations

import os
from typing import Any, List, Optional

from rich.console import Console
from rich.table import Table

# Singleton console instance
_console: Optional[Console] = None


def get_console() -> Console:
    """Get or create the singleton Rich Console instance.

    Respects NO_COLOR environment variable and detects CI environments.

    Returns:
        Console: Rich Console instance
    """
    global _console
    if _console is None:
        no_color = os.getenv("NO_COLOR", "").lower() in ("1", "true", "yes")
        is_ci = os.getenv("CI", "").lower() in ("1", "true", "yes")
        force_terminal = not (no_color or is_ci)

        _console = Console(
            force_terminal=force_terminal,
            no_color=no_color,
            highlight=False,
        )
    return _console


# ============================================================================
# STATUS MESSAGES
# ============================================================================


def success(message: str, emoji: bool = True) -> None:
    """Display success message in green with checkmark."""
    console = get_console()
    prefix = "✓ " if emoji else ""
    console.print(f"[green]{prefix}{message}[/green]")


def error(message: str, emoji: bool = True) -> None:
    """Display error message in red with cross."""
    console = get_console()
    prefix = "✗ " if emoji else ""
    console.print(f"[red]{prefix}{message}[/red]")


def warning(message: str, emoji: bool = True) -> None:
    """Display warning message in yellow with warning symbol."""
    console = get_console()
    prefix = "⚠ " if emoji else ""
    console.print(f"[yellow]{prefix}{message}[/yellow]")


def newline() -> None:
    """Print a blank line."""
    console = get_console()
    console.print()


# ============================================================================
# TABLES
# ============================================================================


def table(
    data: List[List[Any]],
    headers: List[str],
    title: Optional[str] = None,
    show_lines: bool = False,
) -> None:
    """Display data in a formatted Rich table with borders.

    Args:
        data: List of rows (each row is a list of values)
        headers: Column headers
        title: Optional table title
        show_lines: Show lines between rows (default: False)
    """
    console = get_console()

    rich_table = Table(
        title=title,
        show_header=True,
        header_style="bold cyan",
        show_lines=show_lines,
        border_style="dim",
    )

    for header in headers:
        rich_table.add_column(header, justify="left")

    for row in data:
        rich_table.add_row(*[str(cell) for cell in row])

    console.print(rich_table)


# ============================================================================
# USER INTERACTION
# ============================================================================


def confirm(message: str, default: bool = False, abort: bool = True) -> bool:
    """Prompt user for confirmation (wraps click.confirm).

    Args:
        message: Confirmation prompt
        default: Default value if user just hits enter
        abort: Abort on 'no' response

    Returns:
        User's response
    """
    import click

    return click.confirm(message, default=default, abort=abort)
