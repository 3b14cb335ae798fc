"""Minimal finding record and transform for reconciliation tests."""

from __future__ import annotations

from piosync.domain.model.forms import FindingRecord
from piosync.domain.model.primitives import StringValue
from piosync.domain.tree import ResourceNode


class NoteFinding(FindingRecord):
    note: str | None = None


def write_note(node: ResourceNode, finding: NoteFinding) -> ResourceNode:
    node.delete_subtree_by_path("")
    if finding.note:
        node.set_value("note.text", StringValue(finding.note))
    return node
