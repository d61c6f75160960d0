"""
CLI: ``assembly config``: configuration inspection.
"""

from __future__ import annotations

import json
from typing import Any

import typer

from assembly.cli.utils import console, fail
from assembly.core.errors import ConfigError

app = typer.Typer(no_args_is_help=True)

FORMATS = ("table", "json", "env")


def _env_line(key: str, value: Any) -> str:
    """One ``.env`` line that pydantic-settings reads back to the same value."""
    name = f"ASSEMBLY_{key.upper()}"
    if value is None:
        return f"# {name} is unset"
    if isinstance(value, (list, dict, bool)):
        return f"{name}={json.dumps(value)}"
    return f"{name}={value}"


@app.command("show")
def show_config(
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json, env"),
) -> None:
    """Show the effective configuration."""
    from assembly.core.settings import load_settings

    if format not in FORMATS:
        fail(f"Unknown format {format!r}. Choose one of: {', '.join(FORMATS)}")

    try:
        settings = load_settings()
    except ConfigError as e:
        fail(e)

    if format == "json":
        console.print_json(settings.model_dump_json())
        return

    if format == "env":
        for key, value in sorted(settings.model_dump(mode="json").items()):
            console.print(_env_line(key, value), highlight=False, markup=False, soft_wrap=True)
        return

    from rich.table import Table

    table = Table()
    table.add_column("Setting")
    table.add_column("Value")
    for key, value in sorted(settings.model_dump().items()):
        table.add_row(key, str(value))
    console.print(table)
