"""In-memory backend fake recording every call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from piosync.domain.ports.backend import (
    Backend,
    BackendError,
    BackendResponse,
    SubTreesResponse,
    UuidsResponse,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from piosync.domain.tree import ResourceNode


@dataclass
class FakeBackend:
    """Stores sub-trees by absolute path and logs calls as ``(name, payload)``."""

    uuids: dict[str, str] = field(default_factory=dict[str, str])
    sub_trees: dict[str, ResourceNode] = field(default_factory=dict["str", "ResourceNode"])
    calls: list[tuple[str, list[str]]] = field(default_factory=list[tuple[str, list[str]]])
    fail: set[str] = field(default_factory=set[str])
    reject: set[str] = field(default_factory=set[str])

    def _outcome(self, name: str) -> BackendResponse | None:
        if name in self.fail:
            raise BackendError(f"{name} unreachable")
        if name in self.reject:
            return BackendResponse(success=False, message=f"{name} rejected")
        return None

    async def get_sub_trees(self, paths: Sequence[str]) -> SubTreesResponse:
        self.calls.append(("get", list(paths)))
        rejected = self._outcome("get")
        if rejected is not None:
            return SubTreesResponse(success=False, message=rejected.message)
        found = [self.sub_trees[path] for path in paths if path in self.sub_trees]
        return SubTreesResponse(success=True, sub_trees=found)

    async def save_sub_trees(self, nodes: Sequence[ResourceNode]) -> BackendResponse:
        self.calls.append(("save", [node.absolute_path for node in nodes]))
        rejected = self._outcome("save")
        if rejected is not None:
            return rejected
        for node in nodes:
            self.sub_trees[node.absolute_path] = node
        return BackendResponse(success=True)

    async def delete_sub_trees(self, nodes: Sequence[ResourceNode]) -> BackendResponse:
        self.calls.append(("delete", [node.absolute_path for node in nodes]))
        rejected = self._outcome("delete")
        if rejected is not None:
            return rejected
        for node in nodes:
            self.sub_trees.pop(node.absolute_path, None)
        return BackendResponse(success=True)

    async def get_all_uuids(self) -> UuidsResponse:
        self.calls.append(("uuids", []))
        rejected = self._outcome("uuids")
        if rejected is not None:
            return UuidsResponse(success=False, message=rejected.message)
        return UuidsResponse(success=True, uuids=dict(self.uuids))

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


if TYPE_CHECKING:
    _backend_check: Backend = FakeBackend()
