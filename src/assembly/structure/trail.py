"""
Ancestry trail - immutable stack of index values collected while descending.

A node deep in the distribution tree often needs context chosen by an
ancestor: the hour level needs the country picked two levels up. Rather than
holding a reference to the ancestor node, every node receives the trail of
index values on the path from the root to itself.

Manifesto:
    - **Immutable:** ``push``/``pop`` return new trails; nothing mutates
    - **Shared tails:** ``push`` is O(1), siblings share their parent's trail
    - **Loud contracts:** ``peek``/``pop`` on an empty trail, or a typed
      ``peek`` that finds the wrong type, raise instead of coercing

Examples:
    >>> trail = AncestryTrail.of("DE", date(2021, 1, 5))
    >>> trail.peek(date)
    datetime.date(2021, 1, 5)
    >>> trail.pop().peek(str)
    'DE'

Tags:
    trail, immutable, persistent-list, tree, assembly
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, TypeVar, overload

from assembly.core.errors import EmptyTrailError, TrailTypeError

T = TypeVar("T")


class AncestryTrail:
    """Persistent singly linked stack. The top is the most recently pushed value."""

    __slots__ = ("_top", "_rest", "_size")

    def __init__(self, top: Any = None, rest: AncestryTrail | None = None, size: int = 0):
        self._top = top
        self._rest = rest
        self._size = size

    @classmethod
    def empty(cls) -> AncestryTrail:
        return EMPTY_TRAIL

    @classmethod
    def of(cls, *values: Any) -> AncestryTrail:
        """Build a trail root-first: ``of(a, b)`` has ``b`` on top."""
        trail = EMPTY_TRAIL
        for value in values:
            trail = trail.push(value)
        return trail

    def push(self, value: Any) -> AncestryTrail:
        return AncestryTrail(value, self, self._size + 1)

    @overload
    def peek(self) -> Any: ...

    @overload
    def peek(self, expected: type[T]) -> T: ...

    def peek(self, expected: type | tuple[type, ...] | None = None) -> Any:
        """Return the top value, optionally asserting its exact type.

        Subclasses do not match: ``peek(date)`` rejects a ``datetime``.
        """
        if self._size == 0:
            raise EmptyTrailError("peek")
        if expected is not None:
            allowed = expected if isinstance(expected, tuple) else (expected,)
            if type(self._top) not in allowed:
                raise TrailTypeError(expected, self._top)
        return self._top

    def pop(self) -> AncestryTrail:
        """Return the trail without its top value."""
        if self._size == 0:
            raise EmptyTrailError("pop")
        return self._rest

    def is_empty(self) -> bool:
        return self._size == 0

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Any]:
        """Iterate root-first."""
        return iter(self.to_list())

    def to_list(self) -> list[Any]:
        values = []
        node = self
        while node._size:
            values.append(node._top)
            node = node._rest
        values.reverse()
        return values

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AncestryTrail):
            return NotImplemented
        return self.to_list() == other.to_list()

    def __hash__(self) -> int:
        return hash(tuple(self.to_list()))

    def __repr__(self) -> str:
        return f"AncestryTrail({', '.join(repr(v) for v in self.to_list())})"


EMPTY_TRAIL = AncestryTrail()

__all__ = ["AncestryTrail", "EMPTY_TRAIL"]
