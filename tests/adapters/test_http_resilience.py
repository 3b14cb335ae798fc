from __future__ import annotations

import asyncio

import httpx

from piosync.adapters.http_resilience import RateLimit, ResilienceConfig, ResilientClient
from piosync.config import RetryPolicy


def test_retry_policy_builds_retry() -> None:
    retry = RetryPolicy(total=2, backoff_factor=0.1).build()

    assert retry.total == 2
    assert retry.backoff_factor == 0.1


def test_client_applies_config_and_hooks() -> None:
    seen: list[int] = []

    async def hook(response: httpx.Response) -> None:
        seen.append(response.status_code)

    config = ResilienceConfig(
        name="test",
        base_url="https://pio.test/",
        timeout_seconds=5.0,
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        response_hooks=(hook,),
        default_headers={"X-Client": "piosync"},
    )

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["X-Client"] == "piosync"
        assert str(request.url).startswith("https://pio.test/")
        return httpx.Response(201 if request.method == "POST" else 200)

    async def run() -> list[int]:
        async with ResilientClient(config) as client:
            inner = client._client  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            assert inner.timeout.read == 5.0
            inner._transport = httpx.MockTransport(handler)  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            first = await client.get("getAllUuids")
            second = await client.post("saveSubTree", json={"subTrees": []})
        assert inner.is_closed
        return [first.status_code, second.status_code]

    assert asyncio.run(run()) == [200, 201]
    assert seen == [200, 201]
