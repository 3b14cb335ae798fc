"""Port for the remote service that persists the resource tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from piosync.domain.model.primitives import EntityId, ResourceTypeTag
    from piosync.domain.tree import ResourceNode


class BackendError(RuntimeError):
    """Raised by adapters when the backend cannot be reached or answers garbage."""


@dataclass(slots=True)
class BackendResponse:
    """Outcome of one backend call."""

    success: bool
    message: str | None = None


@dataclass(slots=True)
class SubTreesResponse(BackendResponse):
    sub_trees: list[ResourceNode] = field(default_factory=list["ResourceNode"])


@dataclass(slots=True)
class UuidsResponse(BackendResponse):
    uuids: dict[EntityId, ResourceTypeTag] = field(
        default_factory=dict["EntityId", "ResourceTypeTag"]
    )


@runtime_checkable
class Backend(Protocol):
    """Async contract for reading and writing resource sub-trees."""

    async def get_sub_trees(self, paths: Sequence[str]) -> SubTreesResponse: ...

    async def save_sub_trees(self, nodes: Sequence[ResourceNode]) -> BackendResponse: ...

    async def delete_sub_trees(self, nodes: Sequence[ResourceNode]) -> BackendResponse: ...

    async def get_all_uuids(self) -> UuidsResponse: ...


__all__ = ["Backend", "BackendError", "BackendResponse", "SubTreesResponse", "UuidsResponse"]
