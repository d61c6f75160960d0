"""
Assembler - one distribution run from keys to a signed tree on disk.

Manifesto:
    The run has two phases. The build phase materializes the whole tree in
    memory from an immutable key collection; it can run sibling dates in
    parallel and has no side effects. The write phase replaces the previous
    output and persists every writable, signing archives as they are written.
    Any failure aborts the run and is raised to the caller.

Examples:
    >>> assembler = Assembler(load_settings(private_key_path=Path("key.pem")))
    >>> result = assembler.assemble(load_diagnosis_keys(Path("keys.json")))
    >>> result.hour_buckets
    2

Tags:
    assembler, distribution, run, assembly
"""

from __future__ import annotations

import shutil
import time
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from assembly.core.errors import AssemblyError, BuildCancelledError, StorageError
from assembly.core.logging import LogContext, get_logger
from assembly.core.settings import AssemblySettings
from assembly.crypto.provider import CryptoProvider
from assembly.diagnosiskeys.model import DiagnosisKey
from assembly.diagnosiskeys.structure import DiagnosisKeysStructure
from assembly.diagnosiskeys.timeutil import get_dates
from assembly.structure.index import CancellationToken
from assembly.structure.writable import Directory

logger = get_logger(__name__)


@dataclass(frozen=True)
class AssemblyResult:
    """Summary of a finished run."""

    run_id: str
    root: Path
    key_count: int
    countries: int
    dates: int
    hour_buckets: int
    day_buckets: int
    duration_ms: float


class Assembler:
    """Builds and writes the diagnosis keys distribution tree."""

    def __init__(
        self,
        settings: AssemblySettings,
        crypto: CryptoProvider | None = None,
        cancellation: CancellationToken | None = None,
    ):
        self._settings = settings
        self._crypto = crypto or CryptoProvider.from_settings(settings)
        self._cancellation = cancellation or CancellationToken()

    @property
    def cancellation(self) -> CancellationToken:
        return self._cancellation

    def cancel(self) -> None:
        """Stop starting new subtrees. In-flight ones complete."""
        self._cancellation.cancel()

    def build(self, keys: Iterable[DiagnosisKey]) -> tuple[Directory, DiagnosisKeysStructure]:
        structure = DiagnosisKeysStructure(keys, self._crypto, self._settings, self._cancellation)
        return structure.build(), structure

    def assemble(
        self, keys: Iterable[DiagnosisKey], output_dir: Path | None = None
    ) -> AssemblyResult:
        """Build the tree for ``keys`` and write it below ``output_dir``."""
        output_dir = Path(output_dir or self._settings.output_dir)
        keys = tuple(keys)
        run_id = uuid.uuid4().hex[:12]
        started = time.perf_counter()

        with LogContext(run_id=run_id):
            logger.info(
                "assembly.started",
                keys=len(keys),
                output_dir=str(output_dir),
                countries=self._settings.supported_countries,
            )
            try:
                root, structure = self.build(keys)
                if self._cancellation.cancelled:
                    raise BuildCancelledError("Assembly cancelled before writing")
                self._clear(output_dir / root.name)
                path = root.write(output_dir)
            except AssemblyError as e:
                logger.error("assembly.failed", **e.to_dict())
                raise

            result = AssemblyResult(
                run_id=run_id,
                root=path,
                key_count=len(keys),
                countries=len(self._settings.supported_countries),
                dates=len(get_dates(keys)),
                hour_buckets=len(structure.stats.hours),
                day_buckets=len(structure.stats.days),
                duration_ms=(time.perf_counter() - started) * 1000,
            )
            logger.info(
                "assembly.finished",
                root=str(result.root),
                hour_buckets=result.hour_buckets,
                day_buckets=result.day_buckets,
                duration_ms=round(result.duration_ms, 1),
            )
        return result

    def _clear(self, path: Path) -> None:
        """Remove the previous run's tree."""
        if not path.exists():
            return
        try:
            shutil.rmtree(path)
        except OSError as e:
            raise StorageError(f"Failed to clear previous output {path}", cause=e).with_context(
                path=str(path)
            )
        logger.debug("assembly.output.cleared", path=str(path))


__all__ = ["Assembler", "AssemblyResult"]
