from __future__ import annotations

import pytest

from piosync.domain.model.primitives import CodeValue, StringValue
from piosync.domain.tree import (
    InvalidPathError,
    ResourceNode,
    entity_id_from_path,
    parse_segment,
    split_path,
)

ROOT = "id-1.KBV_PR_MIO_ULB_Device"


def test_set_value_creates_intermediate_nodes() -> None:
    node = ResourceNode(ROOT)

    node.set_value("type.coding.code", CodeValue("123"))

    coding = node.get_subtree_by_path("type.coding")
    assert coding.absolute_path == f"{ROOT}.type.coding"
    assert node.get_subtree_by_path("type.coding.code").get_value_as_string() == "123"
    assert coding.last_path_element == "coding"


def test_missing_path_yields_detached_empty_node() -> None:
    node = ResourceNode(ROOT)

    missing = node.get_subtree_by_path("note.text")

    assert missing.is_empty
    assert missing.get_value_as_string() is None
    assert missing.absolute_path == f"{ROOT}.note.text"
    assert node.children == []


def test_indexed_segments_are_distinct_children() -> None:
    node = ResourceNode(ROOT)
    node.set_value("address[0].city", StringValue("Berlin"))
    node.set_value("address[1].city", StringValue("Hamburg"))

    assert [child.last_path_element for child in node.children] == ["address[0]", "address[1]"]
    assert node.get_subtree_by_path("address[1].city").get_value_as_string() == "Hamburg"


def test_delete_value_prunes_empty_ancestors() -> None:
    node = ResourceNode(ROOT)
    node.set_value("note.text", StringValue("x"))
    node.set_value("serialNumber", StringValue("42"))

    node.delete_value("note.text")

    assert [child.last_path_element for child in node.children] == ["serialNumber"]


def test_delete_subtree_with_empty_path_clears_node() -> None:
    node = ResourceNode(ROOT, StringValue("root"))
    node.set_value("a.b", StringValue("x"))

    node.delete_subtree_by_path("")

    assert node.is_empty
    assert node.absolute_path == ROOT


def test_delete_subtree_removes_branch() -> None:
    node = ResourceNode(ROOT)
    node.set_value("a.b", StringValue("x"))
    node.set_value("a.c", StringValue("y"))

    node.delete_subtree_by_path("a.b")

    assert node.get_subtree_by_path("a.b").is_empty
    assert node.get_subtree_by_path("a.c").get_value_as_string() == "y"


def test_walk_yields_document_order() -> None:
    node = ResourceNode(ROOT)
    node.set_value("b", StringValue("2"))
    node.set_value("a.x", StringValue("1"))

    assert [(path, str(value)) for path, value in node.walk()] == [("b", "2"), ("a.x", "1")]


def test_entity_id_is_first_segment() -> None:
    node = ResourceNode(f"{ROOT}.type")

    assert node.entity_id == "id-1"
    assert entity_id_from_path(ROOT) == "id-1"


@pytest.mark.parametrize("path", ["a..b", "a[x]", "[0]", "a.b[-1]"])
def test_invalid_paths_raise(path: str) -> None:
    with pytest.raises(InvalidPathError):
        split_path(path)


def test_parse_segment_reads_index() -> None:
    assert parse_segment("extension[3]") == ("extension", 3)
    assert parse_segment("family") == ("family", None)
