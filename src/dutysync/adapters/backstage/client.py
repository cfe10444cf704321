"""HTTP client for the Backstage catalog API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

from pydantic import TypeAdapter, ValidationError

from dutysync.adapters.http_resilience import ResilientClient, default_client_factory
from dutysync.domain.errors import ParseError, error_for_status
from dutysync.domain.model import parse_entity_ref

from .schema import EntityPayload
from .translator import translate_entity

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Mapping
    from types import TracebackType

    import httpx

    from dutysync.config.backstage import BackstageConfig
    from dutysync.config.http_resilience import ResilienceConfig
    from dutysync.domain.model import CatalogEntity

log = getLogger(__name__)

_ENTITY_LIST = TypeAdapter(list[EntityPayload])


def build_filter(entity_filter: Mapping[str, str]) -> str:
    """Render a catalog filter; an empty value only requires the key to exist."""

    return ",".join(key if not value else f"{key}={value}" for key, value in entity_filter.items())


class BackstageCatalogClient:
    """Backstage catalog client; inside ``async with`` every call shares one HTTP session."""

    def __init__(
        self,
        config: BackstageConfig,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = default_client_factory,
    ) -> None:
        self._config = config
        self._client_factory = client_factory
        self._client: ResilientClient | None = None
        self._depth = 0

    async def __aenter__(self) -> BackstageCatalogClient:
        if self._client is None:
            self._client = self._client_factory(self._config.resilience)
        self._depth += 1
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._depth -= 1
        if self._depth <= 0:
            await self.aclose()

    async def aclose(self) -> None:
        client, self._client = self._client, None
        self._depth = 0
        if client is not None:
            await client.aclose()

    async def list_entities(
        self,
        entity_filter: Mapping[str, str] | None = None,
    ) -> list[CatalogEntity]:
        params = {"filter": build_filter(entity_filter)} if entity_filter else None
        response = await self._request("GET", "/api/catalog/entities", params=params)
        try:
            payloads = _ENTITY_LIST.validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            raise ParseError(f"Failed to parse Backstage entity list: {exc}") from exc
        entities = [translate_entity(payload) for payload in payloads]
        log.debug("Fetched %d catalog entities", len(entities))
        return entities

    async def get_entity_by_ref(self, entity_ref: str) -> CatalogEntity | None:
        kind, namespace, name = parse_entity_ref(entity_ref)
        path = "/api/catalog/entities/by-name/" + "/".join(
            quote(part, safe="") for part in (kind, namespace, name)
        )
        response = await self._request("GET", path, allow_not_found=True)
        if response.status_code == 404:
            return None
        try:
            payload = EntityPayload.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ParseError(f"Failed to parse Backstage entity {entity_ref}: {exc}") from exc
        return translate_entity(payload)

    async def refresh_entity(self, entity_ref: str) -> None:
        await self._request("POST", "/api/catalog/refresh", json={"entityRef": entity_ref})
        log.info("Requested catalog refresh for %s", entity_ref)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: object = None,
        allow_not_found: bool = False,
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self._config.token}"} if self._config.token else {}
        async with self._session() as client:
            response = await client.request(
                method,
                f"{self._config.base_url}{path}",
                params=params,
                headers=headers,
                json=json,
            )

        if allow_not_found and response.status_code == 404:
            return response
        error = error_for_status(
            response.status_code,
            f"Backstage {method} {path} failed with status {response.status_code}",
        )
        if error is not None:
            raise error
        return response

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[ResilientClient]:
        if self._client is not None:
            yield self._client
            return
        async with self._client_factory(self._config.resilience) as client:
            yield client


if TYPE_CHECKING:
    from dutysync.domain.ports.catalog import CatalogReader

    def _catalog_check(config: BackstageConfig) -> CatalogReader:
        return BackstageCatalogClient(config)
