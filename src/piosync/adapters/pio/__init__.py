"""Public interface for the PIO backend adapter."""

from __future__ import annotations

from piosync.domain.ports.backend import BackendError

from .client import PioBackend
from .schema import ResponseEnvelope, SubTreePayload
from .translator import node_to_payload, payload_to_node, serialize_sub_trees

__all__ = [
    "BackendError",
    "PioBackend",
    "ResponseEnvelope",
    "SubTreePayload",
    "node_to_payload",
    "payload_to_node",
    "serialize_sub_trees",
]
