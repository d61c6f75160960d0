"""Tests for assembly.structure.decorators."""

import json

import pytest

from assembly.core.errors import NameCollisionError
from assembly.structure.decorators import IndexingDecorator, WritableDecorator
from assembly.structure.index import IndexNode
from assembly.structure.trail import EMPTY_TRAIL
from assembly.structure.writable import Directory, File


class TestWritableDecorator:
    def test_delegates_name_and_write(self, tmp_path):
        decorated = WritableDecorator(File("a.txt", b"data"))
        assert decorated.name == "a.txt"
        path = decorated.write(tmp_path)
        assert path.read_bytes() == b"data"

    def test_forwards_unknown_attributes(self):
        decorated = WritableDecorator(File("a.txt", b"data"))
        assert decorated.get_bytes() == b"data"

    def test_missing_attribute(self):
        decorated = WritableDecorator(File("a.txt", b"data"))
        with pytest.raises(AttributeError):
            decorated.does_not_exist

    def test_usable_as_directory_child(self, tmp_path):
        root = Directory("root")
        root.add(WritableDecorator(File("a", b"1")))
        root.write(tmp_path)
        assert (tmp_path / "root" / "a").read_bytes() == b"1"


class TestIndexingDecorator:
    def test_writes_sorted_listing(self, tmp_path):
        node = IndexNode("hour", lambda trail: [9, 3], lambda v: f"{v:02d}")
        decorated = IndexingDecorator(node)
        decorated.prepare(EMPTY_TRAIL)
        decorated.write(tmp_path)

        listing = (tmp_path / "hour" / "index").read_bytes()
        assert json.loads(listing) == ["03", "09"]
        assert listing == b'["03","09"]'
        assert (tmp_path / "hour" / "03").is_dir()

    def test_empty_listing(self, tmp_path):
        decorated = IndexingDecorator(IndexNode("date", lambda trail: [], str))
        decorated.prepare(EMPTY_TRAIL)
        decorated.write(tmp_path)
        assert json.loads((tmp_path / "date" / "index").read_text()) == []

    def test_custom_file_name(self, tmp_path):
        decorated = IndexingDecorator(IndexNode("c", lambda trail: ["DE"], str), "listing.json")
        decorated.prepare(EMPTY_TRAIL)
        decorated.write(tmp_path)
        assert json.loads((tmp_path / "c" / "listing.json").read_text()) == ["DE"]

    def test_child_named_like_listing_rejected(self):
        decorated = IndexingDecorator(IndexNode("c", lambda trail: ["index"], str))
        with pytest.raises(NameCollisionError) as exc_info:
            decorated.prepare(EMPTY_TRAIL)
        assert exc_info.value.context.node == "c"

    def test_exposes_node(self):
        node = IndexNode("c", lambda trail: ["DE", "AT"], str)
        decorated = IndexingDecorator(node)
        decorated.prepare(EMPTY_TRAIL)
        assert decorated.child_names == ["AT", "DE"]
        assert decorated.index_listing() == ["AT", "DE"]
        assert decorated.wrapped is node
