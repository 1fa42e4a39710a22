"""Shared Rich console for user-facing diagnostics.

Field values go to stdout as plain bytes; errors and warnings are
rendered on stderr through this console.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

# Global console instance (replaced in tests)
_console: Console | None = None


def get_console() -> Console:
    """Get the global stderr console, creating it on first use."""
    global _console
    if _console is None:
        _console = Console(stderr=True, highlight=False, soft_wrap=True)
    return _console


def set_console(console: Console) -> None:
    """Set the global Rich console instance."""
    global _console
    _console = console


def print_error(message: str) -> None:
    """Print an error message in red."""
    get_console().print(f"[red]{escape(message)}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message in yellow."""
    get_console().print(f"[yellow]Warning: {escape(message)}[/yellow]")
