"""
Root Typer application for the ``assembly`` CLI.

    assembly build --keys keys.json --private-key key.pem
    assembly keys generate --out key.pem
    assembly keys verify out/diagnosis-keys/.../hour/03 --public-key key.pub.pem
    assembly config show
"""

from __future__ import annotations

from pathlib import Path

import typer
from typer import Typer

from assembly.cli.utils import console, fail
from assembly.core.errors import AssemblyError

app = Typer(
    name="assembly",
    help="assembly: build the signed, hour-bucketed diagnosis keys distribution.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from assembly import __version__

        typer.echo(f"assembly {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """assembly CLI: build, sign and verify the distribution tree."""


# ── build ────────────────────────────────────────────────────────────────


@app.command("build")
def build(
    keys: Path = typer.Option(..., "--keys", "-k", help="JSON file with diagnosis keys"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output directory"),
    private_key: Path | None = typer.Option(None, "--private-key", help="PEM private key"),
    algorithm: str | None = typer.Option(None, "--algorithm", help="ed25519 or ecdsa-p256"),
    country: list[str] | None = typer.Option(None, "--country", "-c", help="Country code (repeatable)"),
    workers: int | None = typer.Option(None, "--workers", "-w", help="Dates built in parallel"),
    no_date_archives: bool = typer.Option(False, "--no-date-archives", help="Skip per-day archives"),
    json_logs: bool | None = typer.Option(None, "--json-logs/--console-logs", help="Log format"),
) -> None:
    """Build the distribution tree for KEYS and write it to the output directory."""
    from assembly.core.logging import configure_logging
    from assembly.core.settings import load_settings
    from assembly.diagnosiskeys.assembler import Assembler
    from assembly.diagnosiskeys.model import load_diagnosis_keys

    overrides = {
        "output_dir": output,
        "private_key_path": private_key,
        "signature_algorithm": algorithm,
        "supported_countries": country or None,
        "max_workers": workers,
        "json_logs": json_logs,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if no_date_archives:
        overrides["include_date_archives"] = False

    try:
        settings = load_settings(**overrides)
        configure_logging(settings.log_level, json_format=settings.json_logs)
        result = Assembler(settings).assemble(load_diagnosis_keys(keys))
    except AssemblyError as e:
        fail(e)

    console.print(f"[green]✓[/green] Wrote {result.root}")
    console.print(
        f"  keys: {result.key_count}  dates: {result.dates}  "
        f"hour buckets: {result.hour_buckets}  day buckets: {result.day_buckets}"
    )


# ── Sub-command registration ─────────────────────────────────────────────

from assembly.cli.config import app as config_app  # noqa: E402
from assembly.cli.keys import app as keys_app  # noqa: E402

app.add_typer(keys_app, name="keys", help="Signing key generation and signature verification.")
app.add_typer(config_app, name="config", help="Configuration inspection.")


if __name__ == "__main__":
    app()
