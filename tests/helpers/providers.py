from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import httpx

from dutysync.adapters.http_resilience import ResilientClient
from dutysync.config.http_resilience import ResilienceConfig
from dutysync.domain.errors import NotFoundError, ProviderError
from dutysync.domain.model import (
    CatalogEntity,
    EscalationPolicyOption,
    RemoteService,
    ServiceIntegration,
)
from dutysync.domain.ports.identity import AcquiredToken

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(async_handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        return client

    return factory


@dataclass
class MutableClock:
    now: datetime = T0

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@dataclass
class FakeAcquirer:
    """Hands out numbered tokens; ``failures`` maps a sub domain to the error to raise."""

    clock: Callable[[], datetime] = lambda: T0
    lifetime: timedelta = timedelta(hours=1)
    failures: dict[str, Exception] = field(default_factory=dict)
    calls: list[tuple[str, str, str, str]] = field(default_factory=list)

    async def acquire(
        self,
        client_id: str,
        client_secret: str,
        sub_domain: str,
        region: str = "us",
    ) -> AcquiredToken:
        self.calls.append((client_id, client_secret, sub_domain, region))
        failure = self.failures.get(sub_domain)
        if failure is not None:
            raise failure
        return AcquiredToken(
            token=f"Bearer {sub_domain}-{len(self.calls)}",
            expires_at=self.clock() + self.lifetime,
        )


@dataclass
class FakeServiceDirectory:
    services: dict[str | None, list[RemoteService]] = field(default_factory=dict)
    by_integration_key: dict[str, RemoteService | ProviderError] = field(default_factory=dict)
    policies: dict[str | None, list[EscalationPolicyOption]] = field(default_factory=dict)
    lookups: list[tuple[str, str | None]] = field(default_factory=list)

    async def get_service_by_integration_key(
        self,
        integration_key: str,
        account: str | None = None,
    ) -> RemoteService:
        self.lookups.append((integration_key, account))
        result = self.by_integration_key.get(integration_key)
        if result is None:
            raise NotFoundError("no such integration key")
        if isinstance(result, ProviderError):
            raise result
        return result

    async def list_services(self, account: str | None = None) -> list[RemoteService]:
        return list(self.services.get(account, []))

    async def get_service(self, service_id: str, account: str | None = None) -> RemoteService:
        for service in self.services.get(account, []):
            if service.id == service_id:
                return service
        raise NotFoundError(f"service {service_id} not found")

    async def list_escalation_policies(
        self,
        account: str | None = None,
    ) -> list[EscalationPolicyOption]:
        return list(self.policies.get(account, []))


@dataclass
class FakeCatalog:
    entities: list[CatalogEntity] = field(default_factory=list)
    refreshed: list[str] = field(default_factory=list)
    filters: list[Mapping[str, str] | None] = field(default_factory=list)
    refresh_error: ProviderError | None = None

    async def list_entities(
        self,
        entity_filter: Mapping[str, str] | None = None,
    ) -> list[CatalogEntity]:
        self.filters.append(entity_filter)
        if not entity_filter:
            return list(self.entities)
        wanted = [key.removeprefix("metadata.annotations.") for key in entity_filter]
        return [
            entity
            for entity in self.entities
            if all(entity.annotation(key) for key in wanted)
        ]

    async def get_entity_by_ref(self, entity_ref: str) -> CatalogEntity | None:
        for entity in self.entities:
            if entity.ref == entity_ref.lower():
                return entity
        return None

    async def refresh_entity(self, entity_ref: str) -> None:
        if self.refresh_error is not None:
            raise self.refresh_error
        self.refreshed.append(entity_ref)


def component(
    name: str,
    *,
    namespace: str = "default",
    annotations: Mapping[str, str] | None = None,
) -> CatalogEntity:
    return CatalogEntity(
        kind="Component",
        name=name,
        namespace=namespace,
        annotations=dict(annotations or {}),
    )


def service(
    service_id: str,
    name: str,
    *,
    account: str = "",
    integrations: Sequence[tuple[str, str]] = (),
) -> RemoteService:
    return RemoteService(
        id=service_id,
        name=name,
        html_url=f"https://acme.pagerduty.com/service-directory/{service_id}",
        escalation_policy_name="Primary",
        team_name="Payments",
        integrations=tuple(ServiceIntegration(vendor, key) for vendor, key in integrations),
        account=account,
    )
