"""
CLI utility helpers: consoles and error reporting.
"""

from __future__ import annotations

from typing import NoReturn

import typer
from rich.console import Console

from assembly.core.errors import AssemblyError, categorize_error

console = Console()
err_console = Console(stderr=True)


def fail(error: Exception | str) -> NoReturn:
    """Print an error to stderr and exit with status 1."""
    if isinstance(error, AssemblyError):
        err_console.print(f"[red]{error.category.value} error:[/red] {error.message}")
        context = error.context.to_dict()
        if context:
            err_console.print(f"  context: {context}")
    elif isinstance(error, Exception):
        err_console.print(f"[red]{categorize_error(error).value} error:[/red] {error}")
    else:
        err_console.print(f"[red]Error:[/red] {error}")
    raise typer.Exit(1)
