"""Reconciler driving planned saves and deletes against the backend.

Callers get the optimistic snapshot right away; the backend requests run
afterwards and their failures are logged rather than raised.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from piosync.domain.ports.backend import BackendError

from .plan import ReconciliationPlan, build_plan

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping, Sequence

    from piosync.domain.identity import IdentityRegistry
    from piosync.domain.model.forms import FindingRecord
    from piosync.domain.model.primitives import EntityId, ResourceTypeTag
    from piosync.domain.ports.backend import Backend, BackendResponse
    from piosync.domain.tree import ResourceNode

    from .plan import EntitySnapshotMap, EntityTransform

    type SnapshotCallback = Callable[[EntitySnapshotMap], None]

log = getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class ReconciliationOutcome:
    """What happened to one reconciliation pass at the backend."""

    plan: ReconciliationPlan
    deleted_ok: bool = True
    saved_ok: bool = True

    @property
    def ok(self) -> bool:
        return self.deleted_ok and self.saved_ok


@dataclass(slots=True)
class MultiEntityReconciler:
    """Reconcile multi-entity form submissions for one editor session."""

    registry: IdentityRegistry
    backend: Backend
    _pending: set[asyncio.Task[ReconciliationOutcome]] = field(
        default_factory=set["asyncio.Task[ReconciliationOutcome]"], init=False, repr=False
    )

    def plan[F: FindingRecord](
        self,
        snapshot: Mapping[EntityId, ResourceNode],
        findings: Sequence[F],
        transform: EntityTransform[F],
        tag: ResourceTypeTag,
    ) -> ReconciliationPlan:
        """Build the plan and register ids of entities that are new to the snapshot."""

        plan = build_plan(snapshot, findings, transform, tag)
        for entity_id in plan.created_ids:
            self.registry.register(entity_id, tag)
        return plan

    async def reconcile[F: FindingRecord](
        self,
        snapshot: Mapping[EntityId, ResourceNode],
        findings: Sequence[F],
        transform: EntityTransform[F],
        tag: ResourceTypeTag,
        on_snapshot: SnapshotCallback | None = None,
    ) -> ReconciliationOutcome:
        plan = self.plan(snapshot, findings, transform, tag)
        if on_snapshot is not None:
            on_snapshot(plan.new_snapshot)
        return await self.execute(plan)

    async def execute(self, plan: ReconciliationPlan) -> ReconciliationOutcome:
        """Send the plan's delete batch, then its save batch."""

        outcome = ReconciliationOutcome(plan=plan)
        if plan.to_delete:
            # the save must not overtake the delete at the backend
            outcome.deleted_ok = await self._send(
                f"Deleting {len(plan.to_delete)} {plan.tag} sub-trees",
                self.backend.delete_sub_trees(plan.to_delete),
            )
            self._forget(plan.deleted_ids)
        outcome.saved_ok = await self._send(
            f"Saving {len(plan.to_save)} {plan.tag} sub-trees",
            self.backend.save_sub_trees(plan.to_save),
        )
        return outcome

    def schedule[F: FindingRecord](
        self,
        snapshot: Mapping[EntityId, ResourceNode],
        findings: Sequence[F],
        transform: EntityTransform[F],
        tag: ResourceTypeTag,
        on_snapshot: SnapshotCallback | None = None,
    ) -> asyncio.Task[ReconciliationOutcome]:
        """Plan now and send the requests in a background task on the running loop.

        ``on_snapshot`` has been called by the time this returns.
        """

        plan = self.plan(snapshot, findings, transform, tag)
        if on_snapshot is not None:
            on_snapshot(plan.new_snapshot)
        task = asyncio.create_task(self.execute(plan))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> list[ReconciliationOutcome]:
        """Wait for every scheduled reconciliation to finish."""

        if not self._pending:
            return []
        return list(await asyncio.gather(*self._pending))

    async def _send(self, action: str, request: Awaitable[BackendResponse]) -> bool:
        try:
            response = await request
        except BackendError:
            log.exception(f"{action} failed")
            return False
        if not response.success:
            log.error("%s was rejected by the backend: %s", action, response.message)
            return False
        log.debug("%s succeeded", action)
        return True

    def _forget(self, entity_ids: list[EntityId]) -> None:
        if self.registry.unregister(entity_ids):
            log.debug("Unregistered ids %s", entity_ids)
        else:
            log.error(f"Some of the ids {entity_ids} were not registered")
