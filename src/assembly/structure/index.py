"""
Index nodes - directory levels whose children are computed on demand.

An ``IndexNode`` is one level of the distribution namespace (country, date,
hour). It is configured, not subclassed: a *child-index supplier* answers
"which children exist here, given this trail?" and a *name formatter* turns
each index value into the on-disk child name. Factories registered with
``add_to_all`` produce the content of every child; a factory may return
another ``IndexNode``, which is how levels nest.

Manifesto:
    - **Configuration over inheritance:** Every level is the same class
    - **Trail, not back-references:** Children learn their ancestry from
      the trail pushed for them
    - **Fail fast on wiring errors:** Duplicate index values and name
      collisions are detected before any child is built
    - **Independent siblings:** Sibling branches may be built concurrently

Architecture:
    ::

        materialize(trail)
          │
          ├── children(trail)            → {v₁, v₂, …}
          ├── formatter(vᵢ)              → "name_i"   (must be injective)
          │
          └── for each vᵢ  (optionally on a thread pool)
                child_trail = trail.push(vᵢ)
                Directory("name_i")
                  ├── factory₁(child_trail)
                  ├── factory₂(child_trail)
                  └── prepare(child_trail)   ← nested IndexNodes recurse here

Examples:
    >>> hours = IndexNode("hour", lambda trail: {3, 9}, lambda h: f"{h:02d}")
    >>> hours.add_to_all(lambda trail: File("value", str(trail.peek()).encode()))
    >>> hours.materialize(AncestryTrail.empty()).child_names
    ['03', '09']

Guardrails:
    - A supplier that raises aborts the whole level; nothing is attached
    - The first failing sibling cancels pending siblings and propagates
    - Cancellation stops new children from starting; in-flight ones finish,
      then ``BuildCancelledError`` is raised

Tags:
    index, tree, recursion, directory, concurrency, assembly
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Any, Generic, TypeVar

from assembly.core.errors import (
    AssemblyError,
    BuildCancelledError,
    DuplicateIndexError,
    NameCollisionError,
)
from assembly.core.logging import get_logger
from assembly.structure.trail import AncestryTrail
from assembly.structure.writable import Directory, Writable

logger = get_logger(__name__)

T = TypeVar("T")

ChildSupplier = Callable[[AncestryTrail], Iterable[T]]
NameFormatter = Callable[[T], str]
WritableFactory = Callable[[AncestryTrail], Writable]


class CancellationToken:
    """Best-effort cancellation shared by every node of one build."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class IndexNode(Directory, Generic[T]):
    """A directory level whose children are computed from the ancestry trail."""

    def __init__(
        self,
        name: str,
        children: ChildSupplier,
        formatter: NameFormatter,
        *,
        max_workers: int = 1,
        cancellation: CancellationToken | None = None,
    ):
        super().__init__(name)
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self._supplier = children
        self._formatter = formatter
        self._max_workers = max_workers
        self._cancellation = cancellation
        self._factories: list[WritableFactory] = []
        self._index: dict[str, T] = {}

    def add_to_all(self, factory: WritableFactory) -> None:
        """Register a factory whose writable is added to every child."""
        self._factories.append(factory)

    @property
    def child_names(self) -> list[str]:
        return [child.name for child in self._children]

    @property
    def index(self) -> dict[str, T]:
        """Child name → index value, as of the last ``materialize``."""
        return dict(self._index)

    def prepare(self, trail: AncestryTrail) -> None:
        self.materialize(trail)

    def materialize(self, trail: AncestryTrail) -> IndexNode[T]:
        """Compute this level's children for ``trail`` and build each of them."""
        try:
            named = self._name_children(self._index_values(trail))
        except AssemblyError as e:
            raise e.with_context(node=self.name)

        if self._max_workers == 1 or len(named) <= 1:
            built = self._build_sequential(named, trail)
        else:
            built = self._build_parallel(named, trail)

        if len(built) < len(named):
            raise BuildCancelledError(
                f"Build of {self.name!r} cancelled after {len(built)} of {len(named)} children"
            ).with_context(node=self.name)

        self._index = dict(named)
        self._children = [built[name] for name, _ in named]
        logger.debug(
            "assembly.node.materialized",
            node=self.name,
            depth=len(trail),
            children=len(self._children),
        )
        return self

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _index_values(self, trail: AncestryTrail) -> list[T]:
        values: list[T] = []
        seen: set[Any] = set()
        for value in self._supplier(trail):
            if value in seen:
                raise DuplicateIndexError(value)
            seen.add(value)
            values.append(value)
        return values

    def _name_children(self, values: list[T]) -> list[tuple[str, T]]:
        """Format every value; the result is sorted by name."""
        named: dict[str, T] = {}
        for value in values:
            child_name = self._formatter(value)
            if child_name in named:
                raise NameCollisionError(child_name, [named[child_name], value])
            named[child_name] = value
        return sorted(named.items(), key=lambda item: item[0])

    def _is_cancelled(self) -> bool:
        return self._cancellation is not None and self._cancellation.cancelled

    def _build_child(self, child_name: str, value: T, trail: AncestryTrail) -> Directory | None:
        if self._is_cancelled():
            return None
        child_trail = trail.push(value)
        child = Directory(child_name)
        try:
            for factory in self._factories:
                child.add(factory(child_trail))
            child.prepare(child_trail)
        except AssemblyError as e:
            raise e.with_context(node=self.name, index=child_name)
        return child

    def _build_sequential(
        self, named: list[tuple[str, T]], trail: AncestryTrail
    ) -> dict[str, Directory]:
        built: dict[str, Directory] = {}
        for child_name, value in named:
            child = self._build_child(child_name, value, trail)
            if child is None:
                break
            built[child_name] = child
        return built

    def _build_parallel(
        self, named: list[tuple[str, T]], trail: AncestryTrail
    ) -> dict[str, Directory]:
        built: dict[str, Directory] = {}
        workers = min(self._max_workers, len(named))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"assembly-{self.name}") as pool:
            futures: dict[Future, str] = {
                pool.submit(self._build_child, child_name, value, trail): child_name
                for child_name, value in named
            }
            try:
                for future in as_completed(futures):
                    child = future.result()
                    if child is not None:
                        built[futures[future]] = child
            except BaseException:
                for future in futures:
                    future.cancel()
                logger.warning("assembly.node.sibling_failed", node=self.name)
                raise
        return built


__all__ = ["IndexNode", "CancellationToken", "ChildSupplier", "NameFormatter", "WritableFactory"]
