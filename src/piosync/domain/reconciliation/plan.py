"""Planning half of multi-entity reconciliation.

A multi-entity form (implants, devices, ...) submits its full list of entities
on every change. Planning diffs that list against the last-known snapshot of
persisted sub-trees and decides which sub-trees to save and which to delete.
It performs no I/O.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from piosync.domain.model.forms import FindingRecord
from piosync.domain.tree import ResourceNode, entity_id_from_path, resource_path

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from piosync.domain.model.primitives import EntityId, ResourceTypeTag

log = getLogger(__name__)

type EntitySnapshotMap = dict[EntityId, ResourceNode]
type EntityTransform[F: FindingRecord] = Callable[[ResourceNode, F], ResourceNode]


@dataclass(slots=True, kw_only=True)
class ReconciliationPlan:
    """Partition of one submission into saves and deletes."""

    tag: ResourceTypeTag
    to_save: list[ResourceNode] = field(default_factory=list[ResourceNode])
    to_delete: list[ResourceNode] = field(default_factory=list[ResourceNode])
    new_snapshot: EntitySnapshotMap = field(default_factory=dict["EntityId", ResourceNode])
    created_ids: list[EntityId] = field(default_factory=list["EntityId"])

    @property
    def deleted_ids(self) -> list[EntityId]:
        return [node.entity_id for node in self.to_delete]

    @property
    def is_noop(self) -> bool:
        return not self.to_save and not self.to_delete


def build_plan[F: FindingRecord](
    snapshot: Mapping[EntityId, ResourceNode],
    findings: Sequence[F],
    transform: EntityTransform[F],
    tag: ResourceTypeTag,
) -> ReconciliationPlan:
    """Diff ``findings`` against ``snapshot``.

    Every finding is transformed onto its snapshot node (or a fresh node at
    ``{id}.{tag}``) and saved; snapshot entries without a finding are deleted.
    The new snapshot is keyed by the saved nodes' own entity ids and replaces
    the old one entirely.
    """

    plan = ReconciliationPlan(tag=tag)
    remaining = dict(snapshot)
    seen: set[EntityId] = set()

    for finding in findings:
        entity_id = finding.id
        if entity_id in seen:
            log.warning(f"Ignoring repeated {tag} entity {entity_id} in submission")
            continue
        seen.add(entity_id)

        node = remaining.pop(entity_id, None)
        if node is None:
            node = ResourceNode(resource_path(entity_id, tag))
            plan.created_ids.append(entity_id)
        plan.to_save.append(transform(node, finding))

    plan.to_delete.extend(remaining.values())
    plan.new_snapshot = {
        entity_id_from_path(node.absolute_path): node for node in plan.to_save
    }
    log.debug(
        "Planned %s: save=%s delete=%s new=%s",
        tag,
        len(plan.to_save),
        len(plan.to_delete),
        len(plan.created_ids),
    )
    return plan
