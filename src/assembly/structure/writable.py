"""
On-disk writables: the persistence primitives the distribution tree is made of.

Manifesto:
    Building the tree and writing it are separate phases. ``prepare(trail)``
    computes content from the immutable dataset and the ancestry trail; no
    bytes touch the disk until ``write(parent_dir)``. This keeps the build
    side-effect free and lets sibling branches be prepared concurrently.

Architecture:
    ::

        Writable (ABC)
          ├── File        name + bytes          write → parent/name
          ├── Archive     name + File entries   write → parent/name (zip)
          └── Directory   name + children       write → parent/name/…
                └── IndexNode  (children computed from the trail)

Guardrails:
    - ``OSError`` raised while writing is re-raised as ``StorageError``
    - ``prepare`` of a Directory passes the SAME trail to every child

Tags:
    writable, file, directory, persistence, assembly
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

from assembly.core.errors import StorageError
from assembly.structure.trail import AncestryTrail


class Writable(ABC):
    """Something with a name that can be persisted under a parent directory."""

    def __init__(self, name: str):
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def prepare(self, trail: AncestryTrail) -> None:
        """Compute content for this position in the tree. No-op by default."""

    @abstractmethod
    def write(self, parent: Path) -> Path:
        """Persist under ``parent`` and return the written path."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class File(Writable):
    """A named byte blob.

    Bytes may be given directly or produced lazily by a supplier, which is
    called at most once.
    """

    def __init__(self, name: str, data: bytes | None = None, supplier: Callable[[], bytes] | None = None):
        super().__init__(name)
        if data is None and supplier is None:
            raise ValueError("File needs either data or a supplier")
        self._data = data
        self._supplier = supplier

    def get_bytes(self) -> bytes:
        if self._data is None:
            self._data = self._supplier()
        return self._data

    def write(self, parent: Path) -> Path:
        path = Path(parent) / self.name
        data = self.get_bytes()
        try:
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to write {path}", cause=e).with_context(path=str(path))
        return path


class Directory(Writable):
    """A named, ordered collection of child writables."""

    def __init__(self, name: str):
        super().__init__(name)
        self._children: list[Writable] = []

    @property
    def children(self) -> list[Writable]:
        return list(self._children)

    def add(self, writable: Writable) -> Writable:
        self._children.append(writable)
        return writable

    def get(self, name: str) -> Writable | None:
        for child in self._children:
            if child.name == name:
                return child
        return None

    def prepare(self, trail: AncestryTrail) -> None:
        for child in self._children:
            child.prepare(trail)

    def write(self, parent: Path) -> Path:
        path = Path(parent) / self.name
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create directory {path}", cause=e).with_context(
                path=str(path)
            )
        for child in self._children:
            child.write(path)
        return path


__all__ = ["Writable", "File", "Directory"]
