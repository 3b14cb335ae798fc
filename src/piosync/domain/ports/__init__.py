"""Domain port definitions for adapters."""

from __future__ import annotations

from .backend import Backend, BackendError, BackendResponse, SubTreesResponse, UuidsResponse

__all__ = ["Backend", "BackendError", "BackendResponse", "SubTreesResponse", "UuidsResponse"]
