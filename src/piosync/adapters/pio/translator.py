"""Translate between ``ResourceNode`` trees and backend sub-tree payloads."""

from __future__ import annotations

from typing import TYPE_CHECKING

from piosync.domain.model.primitives import primitive_for
from piosync.domain.tree import ResourceNode

from .schema import SubTreePayload, SubTreesRequest

if TYPE_CHECKING:
    from collections.abc import Iterable


def node_to_payload(node: ResourceNode) -> SubTreePayload:
    return SubTreePayload(
        absolute_path=node.absolute_path,
        data=str(node.data) if node.data is not None else None,
        data_type=node.data.data_type if node.data is not None else None,
        children=[node_to_payload(child) for child in node.children],
    )


def payload_to_node(payload: SubTreePayload) -> ResourceNode:
    data = (
        primitive_for(payload.data_type, payload.data) if payload.data is not None else None
    )
    return ResourceNode(
        payload.absolute_path,
        data,
        [payload_to_node(child) for child in payload.children],
    )


def serialize_sub_trees(nodes: Iterable[ResourceNode]) -> dict[str, object]:
    """Request body for ``saveSubTree``/``deleteSubTree``."""

    request = SubTreesRequest(sub_trees=[node_to_payload(node) for node in nodes])
    return request.model_dump(by_alias=True, mode="json")
