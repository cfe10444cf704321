from __future__ import annotations

import asyncio

import httpx
import pytest

from dutysync.adapters.http_resilience import ResilientClient, build_retry
from dutysync.config.http_resilience import (
    NO_RETRY,
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)
from dutysync.domain.errors import TransportError
from tests.helpers.providers import make_client_factory


def test_default_retry_policy_only_retries_idempotent_gateway_errors() -> None:
    retry = build_retry(RetryPolicy())

    assert retry.total == 3
    assert set(retry.status_forcelist) == {502, 503, 504}
    assert 429 not in retry.status_forcelist
    assert "POST" not in {str(method).upper() for method in retry.allowed_methods}
    assert build_retry(NO_RETRY).total == 0


def test_timeout_surfaces_as_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    factory = make_client_factory(handler)
    config = ResilienceConfig(name="pagerduty", timeout_seconds=1.0)

    async def call() -> None:
        async with factory(config) as client:
            await client.get("https://api.pagerduty.com/services")

    with pytest.raises(TransportError, match="timed out after 1.0s"):
        asyncio.run(call())


def test_rate_limited_client_passes_responses_through() -> None:
    factory = make_client_factory(lambda _request: httpx.Response(200, json={"ok": True}))
    config = ResilienceConfig(name="backstage", ratelimit=RateLimit(max_calls=2, per_seconds=1.0))

    async def call() -> list[int]:
        async with factory(config) as client:
            responses = [await client.get("https://backstage.example.com/x") for _ in range(3)]
        return [response.status_code for response in responses]

    assert asyncio.run(call()) == [200, 200, 200]


def test_unsupported_cache_backend_is_rejected() -> None:
    config = ResilienceConfig(
        name="backstage",
        cache=CacheConfig(backend="redis"),  # type: ignore[arg-type]
    )

    with pytest.raises(ValueError, match="Unsupported cache backend"):
        ResilientClient(config)
