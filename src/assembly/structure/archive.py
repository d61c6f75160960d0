"""Archive - ordered named files packed into one zip on disk.

The archive's byte representation is canonical: entries keep insertion order
and every entry gets the same timestamp and permissions, so identical content
always yields identical bytes. Signatures are computed over exactly these
bytes, and ``write`` persists exactly these bytes.
"""

from __future__ import annotations

import io
import zipfile
from pathlib import Path

from assembly.core.errors import NameCollisionError, StorageError
from assembly.structure.writable import File, Writable

# Earliest timestamp the zip format can represent
_FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)
_ENTRY_MODE = 0o644 << 16


class Archive(Writable):
    """A named collection of files persisted as a single zip."""

    def __init__(self, name: str):
        super().__init__(name)
        self._entries: list[File] = []
        self._bytes: bytes | None = None

    @property
    def entries(self) -> list[File]:
        return list(self._entries)

    def add(self, file: File) -> File:
        if any(entry.name == file.name for entry in self._entries):
            raise NameCollisionError(file.name)
        self._entries.append(file)
        self._bytes = None
        return file

    def get_bytes(self) -> bytes:
        """Return the canonical zip bytes of this archive."""
        if self._bytes is None:
            buffer = io.BytesIO()
            with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for entry in self._entries:
                    info = zipfile.ZipInfo(entry.name, date_time=_FIXED_DATE_TIME)
                    info.compress_type = zipfile.ZIP_DEFLATED
                    info.external_attr = _ENTRY_MODE
                    zf.writestr(info, entry.get_bytes())
            self._bytes = buffer.getvalue()
        return self._bytes

    def write(self, parent: Path) -> Path:
        path = Path(parent) / self.name
        data = self.get_bytes()
        try:
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to write archive {path}", cause=e).with_context(
                path=str(path)
            )
        return path


def read_archive(data: bytes) -> dict[str, bytes]:
    """Unpack archive bytes into ``{entry name: bytes}`` in entry order."""
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {name: zf.read(name) for name in zf.namelist()}


__all__ = ["Archive", "read_archive"]
