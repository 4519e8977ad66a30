"""Rich-based output utilities for the bunson CLI."""

from typing import Any

from rich.console import Console

# Shared consoles: JSON results on stdout, diagnostics on stderr
console = Console()
err_console = Console(stderr=True)


def print_json(data: Any) -> None:
    """Print data as highlighted, indented JSON to stdout."""
    console.print_json(data=data)


def print_error(message: str) -> None:
    """Print an error message in red to stderr."""
    err_console.print(f"[bold red]Error:[/bold red] {message}", highlight=False)


def print_info(message: str) -> None:
    """Print an informational message to stderr."""
    err_console.print(f"[dim]{message}[/dim]", highlight=False)
