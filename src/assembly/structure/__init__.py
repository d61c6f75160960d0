"""Generic on-disk tree primitives: trail, writables, archives, index nodes."""

from assembly.structure.archive import Archive, read_archive
from assembly.structure.decorators import IndexingDecorator, WritableDecorator
from assembly.structure.index import CancellationToken, IndexNode
from assembly.structure.trail import EMPTY_TRAIL, AncestryTrail
from assembly.structure.writable import Directory, File, Writable

__all__ = [
    "AncestryTrail",
    "EMPTY_TRAIL",
    "Archive",
    "read_archive",
    "CancellationToken",
    "Directory",
    "File",
    "IndexNode",
    "IndexingDecorator",
    "Writable",
    "WritableDecorator",
]
