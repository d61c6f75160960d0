"""
CLI: ``assembly keys``: key generation and signature verification.
"""

from __future__ import annotations

from pathlib import Path

import typer

from assembly.cli.utils import console, fail
from assembly.core.errors import AssemblyError

app = typer.Typer(no_args_is_help=True)


@app.command("generate")
def generate(
    out: Path = typer.Option(..., "--out", "-o", help="Private key PEM to write"),
    public_out: Path | None = typer.Option(
        None, "--public-out", help="Public key PEM (default: <out>.pub)"
    ),
    algorithm: str = typer.Option("ed25519", "--algorithm", help="ed25519 or ecdsa-p256"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing files"),
) -> None:
    """Generate a signing key pair."""
    from assembly.crypto.provider import generate_key_pair

    public_out = public_out or out.with_name(out.name + ".pub")
    for target in (out, public_out):
        if target.exists() and not force:
            fail(f"{target} already exists. Use --force to overwrite.")

    try:
        private_pem, public_pem = generate_key_pair(algorithm)
    except AssemblyError as e:
        fail(e)

    try:
        out.write_bytes(private_pem)
        out.chmod(0o600)
        public_out.write_bytes(public_pem)
    except OSError as e:
        fail(e)
    console.print(f"[green]✓[/green] Private key: {out}")
    console.print(f"[green]✓[/green] Public key:  {public_out}")


@app.command("verify")
def verify(
    bucket: Path = typer.Argument(..., help="Directory holding an archive and its signature"),
    public_key: Path = typer.Option(..., "--public-key", "-p", help="Public key PEM"),
    archive_name: str = typer.Option("index", "--archive", help="Archive file name"),
    signature_name: str = typer.Option("export.sig", "--signature", help="Signature file name"),
) -> None:
    """Verify the detached signature of a bucket archive."""
    from assembly.crypto.provider import verify_signature
    from assembly.diagnosiskeys.export import parse_export
    from assembly.structure.archive import read_archive

    archive_path = bucket / archive_name
    signature_path = bucket / signature_name
    try:
        archive_bytes = archive_path.read_bytes()
        signature = signature_path.read_bytes()
        public_pem = public_key.read_bytes()
    except OSError as e:
        fail(e)

    try:
        valid = verify_signature(public_pem, archive_bytes, signature)
    except AssemblyError as e:
        fail(e)

    if not valid:
        fail(f"Signature does not match {archive_path}")

    console.print(f"[green]✓[/green] Signature valid: {archive_path}")
    for entry, data in read_archive(archive_bytes).items():
        try:
            export = parse_export(data)
        except AssemblyError:
            console.print(f"  {entry}: {len(data)} bytes")
            continue
        console.print(
            f"  {entry}: region={export['region']} keys={len(export['keys'])} "
            f"window=[{export['start_timestamp']}, {export['end_timestamp']})"
        )
