from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from piosync.domain.model.primitives import StringValue
from piosync.domain.reconciliation import build_plan
from tests.helpers.findings import NoteFinding, write_note
from tests.helpers.trees import make_node

if TYPE_CHECKING:
    from piosync.domain.tree import ResourceNode

TAG = "KBV_PR_MIO_ULB_Device_Implant"


def _snapshot(*ids: str) -> dict[str, ResourceNode]:
    return {i: make_node(i, TAG, {"note.text": StringValue(f"old {i}")}) for i in ids}


def test_scenario_delete_keep_and_create() -> None:
    snapshot = _snapshot("A", "B")
    findings = [NoteFinding(id="B", note="kept"), NoteFinding(id="C", note="new")]

    plan = build_plan(snapshot, findings, write_note, TAG)

    assert [node.entity_id for node in plan.to_delete] == ["A"]
    assert plan.to_delete[0] is snapshot["A"]
    assert [node.entity_id for node in plan.to_save] == ["B", "C"]
    assert plan.to_save[0] is snapshot["B"]
    assert plan.to_save[1].absolute_path == f"C.{TAG}"
    assert set(plan.new_snapshot) == {"B", "C"}
    assert plan.created_ids == ["C"]
    assert plan.new_snapshot["B"].get_subtree_by_path("note.text").get_value_as_string() == "kept"


@pytest.mark.parametrize(
    ("known", "submitted"),
    [
        ((), ()),
        (("A",), ()),
        ((), ("A", "B")),
        (("A", "B", "C"), ("C", "A")),
        (("A", "B"), ("C", "D", "A")),
    ],
)
def test_partition_is_exhaustive_and_disjoint(
    known: tuple[str, ...], submitted: tuple[str, ...]
) -> None:
    snapshot = _snapshot(*known)

    plan = build_plan(snapshot, [NoteFinding(id=i) for i in submitted], write_note, TAG)

    saved = {node.entity_id for node in plan.to_save}
    deleted = set(plan.deleted_ids)
    assert saved == set(submitted)
    assert saved.isdisjoint(deleted)
    assert saved | deleted == set(known) | set(submitted)
    assert set(plan.new_snapshot) == saved


def test_empty_submission_deletes_everything() -> None:
    plan = build_plan(_snapshot("A", "B"), [], write_note, TAG)

    assert plan.to_save == []
    assert plan.deleted_ids == ["A", "B"]
    assert plan.new_snapshot == {}


def test_untouched_empty_node_is_still_saved() -> None:
    plan = build_plan({}, [NoteFinding(id="A")], write_note, TAG)

    assert len(plan.to_save) == 1
    assert plan.to_save[0].is_empty
    assert not plan.is_noop


def test_save_order_follows_input_order() -> None:
    snapshot = _snapshot("A", "B", "C")
    findings = [NoteFinding(id=i) for i in ("C", "A", "B")]

    plan = build_plan(snapshot, findings, write_note, TAG)

    assert [node.entity_id for node in plan.to_save] == ["C", "A", "B"]


def test_repeated_ids_are_saved_once(caplog: pytest.LogCaptureFixture) -> None:
    findings = [NoteFinding(id="A", note="first"), NoteFinding(id="A", note="second")]

    plan = build_plan({}, findings, write_note, TAG)

    assert len(plan.to_save) == 1
    assert plan.to_save[0].get_subtree_by_path("note.text").get_value_as_string() == "first"
    assert "repeated" in caplog.text


def test_numeric_ids_are_normalised_to_strings() -> None:
    finding = NoteFinding.model_validate({"id": 7})

    plan = build_plan({"7": make_node("7", TAG)}, [finding], write_note, TAG)

    assert plan.to_delete == []
    assert plan.created_ids == []
