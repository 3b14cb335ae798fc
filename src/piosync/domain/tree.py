"""Path-addressable resource tree.

A ``ResourceNode`` is one node of a PIO resource: it may hold a typed primitive
(``data``) and an ordered list of children. Nodes are addressed by dotted paths
whose segments may carry an array index, e.g. ``name[0].family.extension[1]``.
The root of a resource sits at ``<EntityId>.<ResourceTypeTag>``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterator

    from piosync.domain.model.primitives import EntityId, PrimitiveValue

_SEGMENT_RE: Final = re.compile(r"^(?P<name>[A-Za-z_][\w\-]*)(?:\[(?P<index>\d+)\])?$")


class InvalidPathError(ValueError):
    """Raised when a relative tree path does not follow the path grammar."""


def split_path(path: str) -> list[str]:
    """Split a relative path into validated segments (``""`` means the node itself)."""

    if path == "":
        return []
    segments = path.split(".")
    for segment in segments:
        if not _SEGMENT_RE.match(segment):
            raise InvalidPathError(f"Invalid path segment {segment!r} in {path!r}")
    return segments


def parse_segment(segment: str) -> tuple[str, int | None]:
    """Return ``(name, index)`` for a segment like ``address[2]``."""

    match = _SEGMENT_RE.match(segment)
    if match is None:
        raise InvalidPathError(f"Invalid path segment {segment!r}")
    index = match.group("index")
    return match.group("name"), int(index) if index is not None else None


def entity_id_from_path(absolute_path: str) -> EntityId:
    """Return the leading ``EntityId`` segment of an absolute path."""

    return absolute_path.split(".", 1)[0]


def resource_path(entity_id: EntityId, tag: str) -> str:
    return f"{entity_id}.{tag}"


@dataclass(eq=False)
class ResourceNode:
    absolute_path: str
    data: PrimitiveValue | None = None
    children: list[ResourceNode] = field(default_factory=list["ResourceNode"])

    @property
    def last_path_element(self) -> str:
        return self.absolute_path.rsplit(".", 1)[-1]

    @property
    def entity_id(self) -> EntityId:
        return entity_id_from_path(self.absolute_path)

    @property
    def is_empty(self) -> bool:
        return self.data is None and not self.children

    def get_value_as_string(self) -> str | None:
        return str(self.data) if self.data is not None else None

    def child(self, segment: str) -> ResourceNode | None:
        for candidate in self.children:
            if candidate.last_path_element == segment:
                return candidate
        return None

    def get_subtree_by_path(self, path: str) -> ResourceNode:
        """Return the node at ``path``.

        Missing paths yield a detached empty node so callers can read optional
        values without checking for existence first.
        """

        node: ResourceNode | None = self
        for segment in split_path(path):
            node = node.child(segment) if node is not None else None
            if node is None:
                break
        if node is None:
            return ResourceNode(self._join(path))
        return node

    def set_value(self, path: str, value: PrimitiveValue) -> None:
        node = self
        for segment in split_path(path):
            existing = node.child(segment)
            if existing is None:
                existing = ResourceNode(node._join(segment))
                node.children.append(existing)
            node = existing
        node.data = value

    def delete_value(self, path: str) -> None:
        """Drop the primitive stored at ``path``; the node is pruned once empty."""

        trail = self._trail(path)
        if trail is None:
            return
        trail[-1].data = None
        self._prune(trail)

    def delete_subtree_by_path(self, path: str) -> None:
        if path == "":
            self.clear()
            return
        trail = self._trail(path)
        if trail is None:
            return
        parent, target = trail[-2], trail[-1]
        parent.children.remove(target)
        self._prune(trail[:-1])

    def clear(self) -> None:
        self.data = None
        self.children = []

    def walk(self, prefix: str = "") -> Iterator[tuple[str, PrimitiveValue]]:
        """Yield ``(relative_path, value)`` for every populated node in document order."""

        if self.data is not None:
            yield prefix, self.data
        for node in self.children:
            child_path = (
                node.last_path_element if prefix == "" else f"{prefix}.{node.last_path_element}"
            )
            yield from node.walk(child_path)

    def _join(self, path: str) -> str:
        return self.absolute_path if path == "" else f"{self.absolute_path}.{path}"

    def _trail(self, path: str) -> list[ResourceNode] | None:
        trail = [self]
        for segment in split_path(path):
            node = trail[-1].child(segment)
            if node is None:
                return None
            trail.append(node)
        return trail

    @staticmethod
    def _prune(trail: list[ResourceNode]) -> None:
        # never prune the node the operation was invoked on
        for depth in range(len(trail) - 1, 0, -1):
            node = trail[depth]
            if not node.is_empty:
                break
            trail[depth - 1].children.remove(node)
