"""Reconciliation of multi-entity form submissions against persisted sub-trees.

Flow:
1) plan: diff submitted findings against the last-known snapshot
2) publish the optimistic snapshot to the caller
3) delete removed sub-trees, then save the transformed ones
"""

from __future__ import annotations

from .engine import MultiEntityReconciler, ReconciliationOutcome
from .plan import EntitySnapshotMap, EntityTransform, ReconciliationPlan, build_plan

__all__ = [
    "EntitySnapshotMap",
    "EntityTransform",
    "MultiEntityReconciler",
    "ReconciliationOutcome",
    "ReconciliationPlan",
    "build_plan",
]
