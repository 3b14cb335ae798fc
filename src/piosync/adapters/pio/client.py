"""HTTP client for the PIO backend service."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

import httpx
from pydantic import ValidationError

from piosync.adapters.http_resilience import ResilientClient
from piosync.config.backend import BackendConfig, get_backend_config
from piosync.domain.ports.backend import (
    Backend,
    BackendError,
    BackendResponse,
    SubTreesResponse,
    UuidsResponse,
)

from .schema import ResponseEnvelope, SubTreesData, UuidsData
from .translator import payload_to_node, serialize_sub_trees

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from piosync.config.http_resilience import ResilienceConfig
    from piosync.domain.tree import ResourceNode

log = getLogger(__name__)

GET_SUB_TREE: Final[str] = "getSubTree"
SAVE_SUB_TREE: Final[str] = "saveSubTree"
DELETE_SUB_TREE: Final[str] = "deleteSubTree"
GET_ALL_UUIDS: Final[str] = "getAllUuids"


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class PioBackend:
    """``Backend`` implementation talking JSON over HTTP.

    Transport failures, non-2xx answers that survive the retries and
    malformed payloads are raised as ``BackendError``. A well-formed answer
    with ``success: false`` is returned as-is.
    """

    config: BackendConfig = field(default_factory=get_backend_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    async def __aenter__(self) -> PioBackend:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_sub_trees(self, paths: Sequence[str]) -> SubTreesResponse:
        if not paths:
            return SubTreesResponse(success=True)
        envelope = await self._request("GET", GET_SUB_TREE, params={"paths": list(paths)})
        if not envelope.success:
            return SubTreesResponse(success=False, message=envelope.message)
        data = self._parse(SubTreesData, envelope, GET_SUB_TREE)
        return SubTreesResponse(
            success=True,
            message=envelope.message,
            sub_trees=[payload_to_node(payload) for payload in data.sub_trees],
        )

    async def save_sub_trees(self, nodes: Sequence[ResourceNode]) -> BackendResponse:
        envelope = await self._request("POST", SAVE_SUB_TREE, json=serialize_sub_trees(nodes))
        return BackendResponse(success=envelope.success, message=envelope.message)

    async def delete_sub_trees(self, nodes: Sequence[ResourceNode]) -> BackendResponse:
        envelope = await self._request("POST", DELETE_SUB_TREE, json=serialize_sub_trees(nodes))
        return BackendResponse(success=envelope.success, message=envelope.message)

    async def get_all_uuids(self) -> UuidsResponse:
        envelope = await self._request("GET", GET_ALL_UUIDS)
        if not envelope.success:
            return UuidsResponse(success=False, message=envelope.message)
        data = self._parse(UuidsData, envelope, GET_ALL_UUIDS)
        return UuidsResponse(success=True, message=envelope.message, uuids=dict(data.uuids))

    def _get_client(self) -> ResilientClient:
        if self._client is None:
            self._client = self.client_factory(self.config.resilience)
        return self._client

    async def _request(self, method: str, endpoint: str, **kwargs: Any) -> ResponseEnvelope:
        client = self._get_client()
        url = self.config.base_url + endpoint
        try:
            if method == "GET":
                response = await client.get(url, **kwargs)
            else:
                response = await client.post(url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            log.error(f"{method} {endpoint} failed: {exc}")
            raise BackendError(f"{method} {endpoint} failed: {exc}") from exc

        try:
            envelope = ResponseEnvelope.model_validate_json(response.content)
        except ValidationError as exc:
            raise BackendError(f"Unexpected payload from {endpoint}") from exc
        if not envelope.success:
            log.warning(f"Backend rejected {endpoint}: {envelope.message}")
        return envelope

    @staticmethod
    def _parse[M: SubTreesData | UuidsData](
        model: type[M], envelope: ResponseEnvelope, endpoint: str
    ) -> M:
        try:
            return model.model_validate(envelope.data or {})
        except ValidationError as exc:
            raise BackendError(f"Unexpected payload from {endpoint}") from exc


if TYPE_CHECKING:
    _backend_check: Backend = PioBackend()
