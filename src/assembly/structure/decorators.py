"""Decorators - add behaviour to a writable without touching its class.

A decorator exposes the same ``name``/``prepare``/``write`` capability as the
writable it wraps, so callers holding a ``Writable`` cannot tell the
difference. Unknown attributes are forwarded to the wrapped object.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from assembly.core.errors import NameCollisionError
from assembly.structure.index import IndexNode
from assembly.structure.trail import AncestryTrail
from assembly.structure.writable import File, Writable


class WritableDecorator(Writable):
    """Transparent wrapper delegating everything to ``wrapped``."""

    def __init__(self, wrapped: Writable):
        super().__init__(wrapped.name)
        self._wrapped = wrapped

    @property
    def wrapped(self) -> Writable:
        return self._wrapped

    @property
    def name(self) -> str:
        return self._wrapped.name

    def prepare(self, trail: AncestryTrail) -> None:
        self._wrapped.prepare(trail)

    def write(self, parent: Path) -> Path:
        return self._wrapped.write(parent)

    def __getattr__(self, attr: str) -> Any:
        # Only reached when normal lookup fails
        if attr == "_wrapped":
            raise AttributeError(attr)
        return getattr(self._wrapped, attr)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._wrapped!r})"


class IndexingDecorator(WritableDecorator):
    """Writes a JSON listing of an index node's children next to them.

    After ``prepare``, the node's directory gets an extra file (``index`` by
    default) containing the sorted child names, e.g. ``["03", "09"]``.
    """

    def __init__(self, node: IndexNode, index_file_name: str = "index"):
        super().__init__(node)
        self._index_file_name = index_file_name

    def prepare(self, trail: AncestryTrail) -> None:
        super().prepare(trail)
        if self._index_file_name in self._wrapped.child_names:
            raise NameCollisionError(self._index_file_name).with_context(node=self.name)

    def index_listing(self) -> list[str]:
        return sorted(self._wrapped.child_names)

    def write(self, parent: Path) -> Path:
        path = super().write(parent)
        listing = json.dumps(self.index_listing(), separators=(",", ":")).encode("utf-8")
        File(self._index_file_name, listing).write(path)
        return path


__all__ = ["WritableDecorator", "IndexingDecorator"]
