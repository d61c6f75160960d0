"""Signing decorator - emits a detached signature next to an archive.

The wrapped archive knows nothing about signing. On ``write`` the decorator
realizes the archive's canonical bytes, signs them, writes the archive as
usual and then writes the signature under a fixed name in the same directory.
"""

from __future__ import annotations

from pathlib import Path

from assembly.core.errors import AssemblyError
from assembly.core.logging import get_logger
from assembly.crypto.provider import CryptoProvider
from assembly.structure.archive import Archive
from assembly.structure.decorators import WritableDecorator
from assembly.structure.writable import File

logger = get_logger(__name__)

SIGNATURE_FILE_NAME = "export.sig"


class SigningDecorator(WritableDecorator):
    """Wraps an ``Archive`` so that persisting it also persists its signature."""

    def __init__(
        self,
        archive: Archive,
        crypto: CryptoProvider,
        signature_file_name: str = SIGNATURE_FILE_NAME,
    ):
        super().__init__(archive)
        if signature_file_name == archive.name:
            raise ValueError("Signature file name must differ from the archive name")
        self._crypto = crypto
        self._signature_file_name = signature_file_name

    @property
    def signature_file_name(self) -> str:
        return self._signature_file_name

    def signature(self) -> bytes:
        """Sign the wrapped archive's canonical bytes."""
        return self._crypto.sign(self._wrapped.get_bytes())

    def write(self, parent: Path) -> Path:
        try:
            signature = self.signature()
        except AssemblyError as e:
            raise e.with_context(path=str(Path(parent) / self.name))
        path = super().write(parent)
        File(self._signature_file_name, signature).write(Path(parent))
        logger.debug(
            "assembly.archive.signed",
            archive=str(path),
            algorithm=self._crypto.algorithm,
        )
        return path


__all__ = ["SigningDecorator", "SIGNATURE_FILE_NAME"]
