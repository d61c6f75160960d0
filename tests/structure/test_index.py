"""
Tests for assembly.structure.index.

Tests cover:
- Children computed from the trail, named by the formatter, built by factories
- Recursion through nested index nodes with the pushed trail
- Fail-fast duplicate/collision detection
- Failure propagation (supplier, factory) with node/index context
- Parallel sibling construction and cancellation
"""

import threading

import pytest

from assembly.core.errors import (
    BuildCancelledError,
    DuplicateIndexError,
    ExportError,
    NameCollisionError,
)
from assembly.structure.index import CancellationToken, IndexNode
from assembly.structure.trail import EMPTY_TRAIL, AncestryTrail
from assembly.structure.writable import Directory, File


def value_file(trail):
    return File("value", repr(trail.to_list()).encode())


class TestMaterialize:
    def test_children_named_and_sorted(self):
        node = IndexNode("n", lambda trail: {9, 3, 12}, lambda v: f"{v:02d}")
        node.materialize(EMPTY_TRAIL)
        assert node.child_names == ["03", "09", "12"]
        assert node.index == {"03": 3, "09": 9, "12": 12}

    def test_factory_receives_pushed_trail(self):
        node = IndexNode("n", lambda trail: ["a", "b"], str)
        node.add_to_all(value_file)
        node.materialize(AncestryTrail.of("root"))
        child = node.get("a")
        assert isinstance(child, Directory)
        assert child.get("value").get_bytes() == b"['root', 'a']"

    def test_supplier_sees_parent_trail(self):
        seen = []
        node = IndexNode("n", lambda trail: seen.append(trail) or [], str)
        trail = AncestryTrail.of("DE")
        node.materialize(trail)
        assert seen == [trail]

    def test_empty_children(self):
        node = IndexNode("n", lambda trail: [], str)
        node.add_to_all(value_file)
        assert node.materialize(EMPTY_TRAIL).child_names == []

    def test_every_factory_applied(self):
        node = IndexNode("n", lambda trail: [1], str)
        node.add_to_all(lambda trail: File("a", b"a"))
        node.add_to_all(lambda trail: File("b", b"b"))
        node.materialize(EMPTY_TRAIL)
        assert [c.name for c in node.get("1").children] == ["a", "b"]

    def test_prepare_materializes(self):
        node = IndexNode("n", lambda trail: [1], str)
        node.prepare(EMPTY_TRAIL)
        assert node.child_names == ["1"]

    def test_rematerialize_replaces_children(self):
        values = [[1, 2], [3]]
        node = IndexNode("n", lambda trail: values.pop(0), str)
        node.materialize(EMPTY_TRAIL)
        node.materialize(EMPTY_TRAIL)
        assert node.child_names == ["3"]

    def test_write(self, tmp_path):
        node = IndexNode("hour", lambda trail: [3, 9], lambda v: f"{v:02d}")
        node.add_to_all(value_file)
        node.materialize(AncestryTrail.of("DE"))
        node.write(tmp_path)
        assert (tmp_path / "hour" / "03" / "value").read_bytes() == b"['DE', 3]"
        assert (tmp_path / "hour" / "09" / "value").exists()

    def test_invalid_workers(self):
        with pytest.raises(ValueError):
            IndexNode("n", lambda trail: [], str, max_workers=0)


class TestRecursion:
    def test_nested_levels_see_full_trail(self):
        inner_trails = []

        def inner(trail):
            node = IndexNode("inner", lambda t: inner_trails.append(t) or [t.peek() * 10], str)
            node.add_to_all(value_file)
            return node

        outer = IndexNode("outer", lambda trail: [1, 2], str)
        outer.add_to_all(inner)
        outer.materialize(AncestryTrail.of("root"))

        assert sorted(t.to_list() for t in inner_trails) == [["root", 1], ["root", 2]]
        leaf = outer.get("2").get("inner").get("20").get("value")
        assert leaf.get_bytes() == b"['root', 2, 20]"


class TestContracts:
    def test_duplicate_index_rejected(self):
        node = IndexNode("n", lambda trail: [1, 1], str)
        with pytest.raises(DuplicateIndexError) as exc_info:
            node.materialize(EMPTY_TRAIL)
        assert exc_info.value.context.node == "n"

    def test_name_collision_rejected_before_building(self):
        built = []
        node = IndexNode("n", lambda trail: [1, "1"], str)
        node.add_to_all(lambda trail: built.append(trail) or File("f", b""))
        with pytest.raises(NameCollisionError) as exc_info:
            node.materialize(EMPTY_TRAIL)
        assert exc_info.value.name == "1"
        assert built == []


class TestFailurePropagation:
    def test_supplier_failure_aborts_level(self):
        def broken(trail):
            raise RuntimeError("dataset unavailable")

        node = IndexNode("n", broken, str)
        with pytest.raises(RuntimeError, match="dataset unavailable"):
            node.materialize(EMPTY_TRAIL)
        assert node.child_names == []

    def test_factory_failure_carries_context(self):
        def factory(trail):
            if trail.peek() == 2:
                raise ExportError("cannot serialize")
            return File("f", b"")

        node = IndexNode("hour", lambda trail: [1, 2, 3], lambda v: f"{v:02d}")
        node.add_to_all(factory)
        with pytest.raises(ExportError) as exc_info:
            node.materialize(EMPTY_TRAIL)
        assert exc_info.value.context.node == "hour"
        assert exc_info.value.context.index == "02"
        assert node.child_names == []

    def test_parallel_failure_propagates(self):
        def factory(trail):
            if trail.peek() == 5:
                raise ExportError("bad bucket")
            return File("f", b"")

        node = IndexNode("n", lambda trail: range(10), str, max_workers=4)
        node.add_to_all(factory)
        with pytest.raises(ExportError, match="bad bucket"):
            node.materialize(EMPTY_TRAIL)


class TestParallel:
    def test_parallel_matches_sequential(self):
        def build(workers):
            node = IndexNode("n", lambda trail: range(20), lambda v: f"{v:02d}", max_workers=workers)
            node.add_to_all(value_file)
            node.materialize(AncestryTrail.of("DE"))
            return [
                (child.name, child.get("value").get_bytes()) for child in node.children
            ]

        assert build(1) == build(8)

    def test_siblings_run_concurrently(self):
        barrier = threading.Barrier(2, timeout=5)

        def factory(trail):
            barrier.wait()
            return File("f", b"")

        node = IndexNode("n", lambda trail: [1, 2], str, max_workers=2)
        node.add_to_all(factory)
        node.materialize(EMPTY_TRAIL)
        assert node.child_names == ["1", "2"]


class TestCancellation:
    def test_cancelled_before_start(self):
        token = CancellationToken()
        token.cancel()
        node = IndexNode("n", lambda trail: [1, 2], str, cancellation=token)
        with pytest.raises(BuildCancelledError):
            node.materialize(EMPTY_TRAIL)

    def test_cancel_stops_new_children(self):
        token = CancellationToken()
        built = []

        def factory(trail):
            built.append(trail.peek())
            if trail.peek() == 2:
                token.cancel()
            return File("f", b"")

        node = IndexNode("n", lambda trail: [1, 2, 3, 4], str, cancellation=token)
        node.add_to_all(factory)
        with pytest.raises(BuildCancelledError):
            node.materialize(EMPTY_TRAIL)
        assert built == [1, 2]

    def test_in_flight_children_complete(self):
        token = CancellationToken()
        both_started = threading.Barrier(2, timeout=5)
        cancelled = threading.Event()
        finished = []

        def factory(trail):
            value = trail.peek()
            if value < 2:
                both_started.wait()
            if value == 0:
                token.cancel()
                cancelled.set()
            elif value == 1:
                cancelled.wait(timeout=5)
            finished.append(value)
            return File("f", b"")

        node = IndexNode("n", lambda trail: range(3), str, max_workers=2, cancellation=token)
        node.add_to_all(factory)
        with pytest.raises(BuildCancelledError):
            node.materialize(EMPTY_TRAIL)
        assert sorted(finished) == [0, 1]

    def test_token_state(self):
        token = CancellationToken()
        assert not token.cancelled
        token.cancel()
        assert token.cancelled
