"""Session-scoped identity table mapping entity ids to resource type tags.

One ``IdentityRegistry`` is created per editor session, rehydrated from the
backend's authoritative id table and discarded when the session ends.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING
from uuid import uuid4

from piosync.domain.ports.backend import BackendError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from piosync.domain.model.primitives import EntityId, ResourceTypeTag
    from piosync.domain.ports.backend import Backend

log = getLogger(__name__)


def new_entity_id() -> EntityId:
    return str(uuid4())


class IdentityError(LookupError):
    """Base class for identity table misuse."""


class AmbiguousIdentityError(IdentityError):
    """Raised when a singleton tag has accumulated more than one id."""

    def __init__(self, tag: ResourceTypeTag, ids: list[EntityId]) -> None:
        super().__init__(f"Singleton resource {tag!r} is registered under {len(ids)} ids")
        self.tag = tag
        self.ids = ids


class IdentityRegistry:
    """Bidirectional ``EntityId <-> ResourceTypeTag`` table."""

    def __init__(self, entries: dict[EntityId, ResourceTypeTag] | None = None) -> None:
        self._tags_by_id: dict[EntityId, ResourceTypeTag] = dict(entries or {})

    def __len__(self) -> int:
        return len(self._tags_by_id)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._tags_by_id

    def __iter__(self) -> Iterator[EntityId]:
        return iter(self._tags_by_id)

    def get_or_create(self, tag: ResourceTypeTag) -> EntityId:
        """Return the id of a singleton resource, minting one on first use."""

        ids = self.get_all(tag)
        if ids is None:
            entity_id = new_entity_id()
            self._tags_by_id[entity_id] = tag
            log.debug("Minted id %s for %s", entity_id, tag)
            return entity_id
        if len(ids) > 1:
            raise AmbiguousIdentityError(tag, ids)
        return ids[0]

    def get_all(self, tag: ResourceTypeTag) -> list[EntityId] | None:
        ids = [entity_id for entity_id, value in self._tags_by_id.items() if value == tag]
        return ids or None

    def register(self, entity_id: EntityId, tag: ResourceTypeTag) -> None:
        self._tags_by_id[entity_id] = tag

    def unregister(self, ids: Iterable[EntityId]) -> bool:
        """Remove every listed id; ``True`` only if all of them were registered."""

        all_removed = True
        for entity_id in ids:
            if self._tags_by_id.pop(entity_id, None) is None:
                all_removed = False
        return all_removed

    def resolve(self, entity_id: EntityId | None) -> ResourceTypeTag | None:
        if not entity_id:
            return None
        return self._tags_by_id.get(entity_id)

    def snapshot(self) -> dict[EntityId, ResourceTypeTag]:
        return dict(self._tags_by_id)

    def clear(self) -> None:
        self._tags_by_id.clear()

    async def rehydrate(self, backend: Backend) -> bool:
        """Replace the table with the backend's id list."""

        self.clear()
        try:
            response = await backend.get_all_uuids()
        except BackendError:
            log.exception("Backend unreachable while loading resource ids")
            return False
        if not response.success:
            log.error(f"Could not load resource ids from backend: {response.message}")
            return False
        self._tags_by_id.update(response.uuids)
        log.info("Loaded %s resource ids from backend", len(self._tags_by_id))
        return True
