"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from piosync.adapters.pio import PioBackend
from piosync.domain.dispatch import FindingDispatchTable, default_dispatch_table
from piosync.domain.identity import IdentityRegistry
from piosync.domain.model.enums import ResourceTag
from piosync.domain.ports.backend import BackendError
from piosync.domain.reconciliation import MultiEntityReconciler
from piosync.domain.tree import resource_path

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from piosync.config.backend import BackendConfig
    from piosync.domain.model.forms import FindingRecord
    from piosync.domain.model.primitives import ResourceTypeTag
    from piosync.domain.ports.backend import Backend
    from piosync.domain.reconciliation import EntitySnapshotMap, ReconciliationOutcome
    from piosync.domain.tree import ResourceNode

log = getLogger(__name__)


@dataclass(slots=True)
class LoadedFindings:
    """Sub-trees of one resource tag together with their form records."""

    tag: ResourceTypeTag
    snapshot: EntitySnapshotMap
    findings: list[FindingRecord]


@dataclass(slots=True)
class EditorSession:
    """Everything one editing session of a PIO needs.

    Holds the session's identity registry, the last-known snapshot per
    multi-entity tag and the reconciler that keeps the backend in step.
    """

    backend: Backend
    registry: IdentityRegistry = field(default_factory=IdentityRegistry)
    dispatch: FindingDispatchTable | None = None
    snapshots: dict[ResourceTypeTag, EntitySnapshotMap] = field(
        default_factory=dict["ResourceTypeTag", "EntitySnapshotMap"]
    )
    reconciler: MultiEntityReconciler = field(init=False)

    def __post_init__(self) -> None:
        self.reconciler = MultiEntityReconciler(registry=self.registry, backend=self.backend)

    @property
    def handlers(self) -> FindingDispatchTable:
        if self.dispatch is None:
            patient_id = self.registry.get_or_create(ResourceTag.PATIENT)
            self.dispatch = default_dispatch_table(patient_id)
        return self.dispatch

    async def fetch_sub_trees(self, tag: ResourceTypeTag) -> list[ResourceNode]:
        """Fetch every sub-tree registered under ``tag``; failures yield an empty list."""

        ids = self.registry.get_all(tag)
        if not ids:
            return []
        try:
            response = await self.backend.get_sub_trees([resource_path(i, tag) for i in ids])
        except BackendError:
            log.exception(f"Could not load {tag} sub-trees")
            return []
        if not response.success:
            log.error("Loading %s sub-trees was rejected: %s", tag, response.message)
            return []
        return response.sub_trees

    async def load(self, tag: ResourceTypeTag) -> LoadedFindings:
        """Load ``tag``'s sub-trees, remember them as snapshot and decode them."""

        nodes = await self.fetch_sub_trees(tag)
        snapshot = {node.entity_id: node for node in nodes}
        self.snapshots[tag] = snapshot
        findings = self.handlers.read(tag, nodes)
        log.info("Loaded %s %s entities", len(findings), tag)
        return LoadedFindings(tag=tag, snapshot=snapshot, findings=findings)

    async def submit(
        self, tag: ResourceTypeTag, raw_findings: Sequence[Mapping[str, Any] | FindingRecord]
    ) -> ReconciliationOutcome:
        """Reconcile a full multi-entity form submission for ``tag``."""

        def remember(snapshot: EntitySnapshotMap) -> None:
            self.snapshots[tag] = snapshot

        outcome = await self.handlers.reconcile(
            self.reconciler,
            tag,
            self.snapshots.get(tag, {}),
            raw_findings,
            on_snapshot=remember,
        )
        if not outcome.ok:
            log.warning(
                f"{tag}: backend out of step with the editor "
                f"(deleted_ok={outcome.deleted_ok}, saved_ok={outcome.saved_ok})"
            )
        return outcome

    async def close(self) -> None:
        await self.reconciler.drain()
        self.registry.clear()
        self.snapshots.clear()


async def open_session(
    *, backend: Backend | None = None, config: BackendConfig | None = None
) -> EditorSession:
    """Create a session and rehydrate its registry from the backend."""

    effective_backend = backend or (PioBackend(config) if config else PioBackend())
    session = EditorSession(backend=effective_backend)
    if not await session.registry.rehydrate(effective_backend):
        log.warning("Starting with an empty identity table")
    return session
