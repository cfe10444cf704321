"""HTTP client for the PagerDuty REST API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel, ValidationError

from dutysync.adapters.http_resilience import ResilientClient, default_client_factory
from dutysync.config.pagerduty import PAGERDUTY_API_BASE_URL, default_api_resilience
from dutysync.domain.auth.resolver import utcnow
from dutysync.domain.errors import (
    AuthError,
    InvalidArgumentsError,
    NotFoundError,
    ParseError,
    error_for_status,
)
from dutysync.domain.model import BACKSTAGE_VENDOR_ID

from .schema import (
    ChangeEventListResponse,
    EscalationPolicyListResponse,
    IncidentListResponse,
    IntegrationResponse,
    OnCallListResponse,
    ServiceDependencyResponse,
    ServiceListResponse,
    ServiceMetricsResponse,
    ServicePayload,
    ServiceResponse,
    ServiceStandardsResponse,
)
from .translator import (
    translate_change_event,
    translate_created_service,
    translate_dependency,
    translate_escalation_policy,
    translate_incident,
    translate_metrics,
    translate_oncall_users,
    translate_service,
    translate_standards,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Sequence
    from types import TracebackType

    import httpx

    from dutysync.config.http_resilience import ResilienceConfig
    from dutysync.domain.auth.resolver import Clock, TokenResolver
    from dutysync.domain.model import (
        ChangeEvent,
        CreatedService,
        EscalationPolicyOption,
        Incident,
        OnCallUser,
        RemoteService,
        ServiceDependency,
        ServiceMetrics,
        ServiceStandards,
    )

log = getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
SERVICE_INCLUDES = ("integrations", "teams", "escalation_policies")
OPEN_INCIDENT_STATUSES = ("triggered", "acknowledged")
CHANGE_EVENT_LIMIT = 30
METRICS_WINDOW = timedelta(days=30)
BACKSTAGE_INTEGRATION_NAME = "Backstage"

type QueryParams = dict[str, str | list[str]]
type PageModel = (
    ServiceListResponse
    | EscalationPolicyListResponse
    | OnCallListResponse
    | ChangeEventListResponse
    | IncidentListResponse
)


class PagerDutyClient:
    """Account-aware PagerDuty API client.

    Every request resolves a token for the target account first. An empty token
    fails fast with :class:`AuthError` instead of sending an unauthenticated call.

    Used as an async context manager the client keeps one HTTP session, and with
    it one rate limiter, for every call made inside the block. Outside a block each
    operation opens its own session, shared by all pages it fetches.
    """

    def __init__(
        self,
        *,
        resolver: TokenResolver,
        resilience: ResilienceConfig | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = default_client_factory,
        page_size: int = DEFAULT_PAGE_SIZE,
        clock: Clock = utcnow,
    ) -> None:
        self._resolver = resolver
        self._resilience = resilience or default_api_resilience()
        self._client_factory = client_factory
        self._page_size = page_size
        self._clock = clock
        self._client: ResilientClient | None = None
        self._depth = 0

    async def __aenter__(self) -> PagerDutyClient:
        if self._client is None:
            self._client = self._client_factory(self._resilience)
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

    def base_url_for(self, account: str | None) -> str:
        account_id = self._resolver.effective_account_id(account)
        account_config = self._resolver.config.account(account_id)
        if account_config is None:
            return PAGERDUTY_API_BASE_URL
        return account_config.resolve_api_base_url()

    async def list_services(self, account: str | None = None) -> list[RemoteService]:
        pages = await self._paginate(
            "/services",
            ServiceListResponse,
            account=account,
            params={"include[]": list(SERVICE_INCLUDES)},
        )
        account_label = self._account_label(account)
        services = [
            translate_service(service, account=account_label)
            for page in pages
            for service in page.services
        ]
        log.debug("Fetched %d services for account '%s'", len(services), account_label)
        return services

    async def get_service(self, service_id: str, account: str | None = None) -> RemoteService:
        _require(service_id=service_id)
        response = await self._request(
            "GET",
            f"/services/{service_id}",
            account=account,
            params={"include[]": list(SERVICE_INCLUDES)},
        )
        payload = _parse(response, ServiceResponse, context=f"service {service_id}")
        return translate_service(payload.service, account=self._account_label(account))

    async def get_service_by_integration_key(
        self,
        integration_key: str,
        account: str | None = None,
    ) -> RemoteService:
        response = await self._request(
            "GET",
            "/services",
            account=account,
            params={"query": integration_key, "include[]": list(SERVICE_INCLUDES)},
        )
        payload = _parse(response, ServiceListResponse, context="service lookup")
        service = _match_integration_key(payload.services, integration_key)
        if service is None:
            raise NotFoundError("No PagerDuty service found for integration key", status=404)
        return translate_service(service, account=self._account_label(account))

    async def list_escalation_policies(
        self,
        account: str | None = None,
    ) -> list[EscalationPolicyOption]:
        pages = await self._paginate(
            "/escalation_policies",
            EscalationPolicyListResponse,
            account=account,
        )
        account_label = self._account_label(account)
        return [
            translate_escalation_policy(policy, account=account_label)
            for page in pages
            for policy in page.escalation_policies
        ]

    async def create_service(
        self,
        name: str,
        description: str,
        escalation_policy_id: str,
        account: str | None = None,
    ) -> CreatedService:
        _require(name=name, description=description, escalation_policy_id=escalation_policy_id)
        body = {
            "service": {
                "type": "service",
                "name": name,
                "description": description,
                "escalation_policy": {
                    "id": escalation_policy_id,
                    "type": "escalation_policy_reference",
                },
            }
        }
        response = await self._request("POST", "/services", account=account, json=body)
        payload = _parse(response, ServiceResponse, context="created service")
        log.info("Created PagerDuty service %s (%s)", payload.service.id, name)
        return translate_created_service(payload.service)

    async def create_service_integration(
        self,
        service_id: str,
        vendor_id: str = BACKSTAGE_VENDOR_ID,
        account: str | None = None,
    ) -> str:
        """Attach a vendor integration to ``service_id`` and return its integration key."""

        _require(service_id=service_id, vendor_id=vendor_id)
        body = {
            "integration": {
                "name": BACKSTAGE_INTEGRATION_NAME,
                "service": {"id": service_id, "type": "service_reference"},
                "vendor": {"id": vendor_id, "type": "vendor_reference"},
            }
        }
        response = await self._request(
            "POST",
            f"/services/{service_id}/integrations",
            account=account,
            json=body,
        )
        payload = _parse(response, IntegrationResponse, context="created integration")
        log.info("Created %s integration for PagerDuty service %s", vendor_id, service_id)
        return payload.integration.integration_key or ""

    async def list_oncall_users(
        self,
        escalation_policy_id: str,
        account: str | None = None,
    ) -> list[OnCallUser]:
        _require(escalation_policy_id=escalation_policy_id)
        pages = await self._paginate(
            "/oncalls",
            OnCallListResponse,
            account=account,
            params={
                "time_zone": "UTC",
                "include[]": ["users"],
                "escalation_policy_ids[]": [escalation_policy_id],
            },
        )
        return translate_oncall_users(oncall for page in pages for oncall in page.oncalls)

    async def list_change_events(
        self,
        service_id: str,
        account: str | None = None,
    ) -> list[ChangeEvent]:
        _require(service_id=service_id)
        response = await self._request(
            "GET",
            f"/services/{service_id}/change_events",
            account=account,
            params={"limit": str(CHANGE_EVENT_LIMIT)},
        )
        payload = _parse(response, ChangeEventListResponse, context="change events")
        return [translate_change_event(event) for event in payload.change_events]

    async def list_incidents(self, service_id: str, account: str | None = None) -> list[Incident]:
        _require(service_id=service_id)
        pages = await self._paginate(
            "/incidents",
            IncidentListResponse,
            account=account,
            params={
                "time_zone": "UTC",
                "sort_by": "created_at",
                "service_ids[]": [service_id],
                "statuses[]": list(OPEN_INCIDENT_STATUSES),
            },
        )
        return [translate_incident(incident) for page in pages for incident in page.incidents]

    async def get_service_standards(
        self,
        service_id: str,
        account: str | None = None,
    ) -> ServiceStandards:
        _require(service_id=service_id)
        response = await self._request(
            "GET",
            f"/standards/scores/technical_services/{service_id}",
            account=account,
        )
        return translate_standards(
            _parse(response, ServiceStandardsResponse, context="service standards")
        )

    async def get_service_metrics(
        self,
        service_id: str,
        account: str | None = None,
    ) -> list[ServiceMetrics]:
        _require(service_id=service_id)
        end = self._clock()
        body = {
            "filters": {
                "created_at_start": (end - METRICS_WINDOW).isoformat(),
                "created_at_end": end.isoformat(),
                "service_ids": [service_id],
            }
        }
        response = await self._request(
            "POST",
            "/analytics/metrics/incidents/services",
            account=account,
            json=body,
        )
        payload = _parse(response, ServiceMetricsResponse, context="service metrics")
        return [translate_metrics(metrics) for metrics in payload.data]

    async def list_service_dependencies(
        self,
        service_id: str,
        account: str | None = None,
    ) -> list[ServiceDependency]:
        _require(service_id=service_id)
        response = await self._request(
            "GET",
            f"/service_dependencies/technical_services/{service_id}",
            account=account,
        )
        payload = _parse(response, ServiceDependencyResponse, context="service dependencies")
        return [translate_dependency(relationship) for relationship in payload.relationships]

    async def add_service_dependencies(
        self,
        service_id: str,
        dependency_ids: Sequence[str],
        account: str | None = None,
    ) -> list[ServiceDependency]:
        """Record that ``service_id`` depends on every service in ``dependency_ids``."""

        return await self._change_dependencies("associate", service_id, dependency_ids, account)

    async def remove_service_dependencies(
        self,
        service_id: str,
        dependency_ids: Sequence[str],
        account: str | None = None,
    ) -> list[ServiceDependency]:
        return await self._change_dependencies("disassociate", service_id, dependency_ids, account)

    async def _change_dependencies(
        self,
        action: str,
        service_id: str,
        dependency_ids: Sequence[str],
        account: str | None,
    ) -> list[ServiceDependency]:
        _require(service_id=service_id)
        if not dependency_ids:
            raise InvalidArgumentsError("At least one dependency must be provided")
        body = {
            "relationships": [
                {
                    "supporting_service": {"id": dependency_id, "type": "service"},
                    "dependent_service": {"id": service_id, "type": "service"},
                }
                for dependency_id in dependency_ids
            ]
        }
        response = await self._request(
            "POST",
            f"/service_dependencies/{action}",
            account=account,
            json=body,
        )
        payload = _parse(response, ServiceDependencyResponse, context="service dependencies")
        log.info(
            "%s %d dependencies for PagerDuty service %s",
            action.capitalize(),
            len(dependency_ids),
            service_id,
        )
        return [translate_dependency(relationship) for relationship in payload.relationships]

    async def _paginate[TPage: PageModel](
        self,
        path: str,
        model: type[TPage],
        *,
        account: str | None,
        params: QueryParams | None = None,
    ) -> list[TPage]:
        pages: list[TPage] = []
        offset = 0
        async with self._session() as client:
            while True:
                page_params: QueryParams = {
                    **(params or {}),
                    "limit": str(self._page_size),
                    "offset": str(offset),
                    "total": "true",
                }
                response = await self._request(
                    "GET",
                    path,
                    account=account,
                    params=page_params,
                    client=client,
                )
                page = _parse(response, model, context=path)
                pages.append(page)
                item_count = _page_item_count(page)
                if not page.more or item_count == 0:
                    return pages
                offset += item_count

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[ResilientClient]:
        if self._client is not None:
            yield self._client
            return
        async with self._client_factory(self._resilience) as client:
            yield client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        account: str | None,
        params: QueryParams | None = None,
        json: object = None,
        client: ResilientClient | None = None,
    ) -> httpx.Response:
        token = await self._resolver.resolve_token(account)
        if not token:
            raise AuthError(
                f"No PagerDuty credential available for account '{self._account_label(account)}'",
                status=401,
            )

        url = f"{self.base_url_for(account)}{path}"
        headers = {"Authorization": token}
        if client is not None:
            response = await client.request(
                method, url, params=params, headers=headers, json=json
            )
        else:
            async with self._session() as session:
                response = await session.request(
                    method, url, params=params, headers=headers, json=json
                )

        error = error_for_status(
            response.status_code,
            f"PagerDuty {method} {path} failed with status {response.status_code}",
        )
        if error is not None:
            raise error
        return response

    def _account_label(self, account: str | None) -> str:
        # legacy configurations label rows with the implicit "default" account
        return self._resolver.effective_account_id(account)


def _require(**values: str) -> None:
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise InvalidArgumentsError(f"Missing required argument(s): {', '.join(missing)}")


def _page_item_count(page: PageModel) -> int:
    match page:
        case ServiceListResponse():
            return len(page.services)
        case EscalationPolicyListResponse():
            return len(page.escalation_policies)
        case OnCallListResponse():
            return len(page.oncalls)
        case ChangeEventListResponse():
            return len(page.change_events)
        case IncidentListResponse():
            return len(page.incidents)


def _parse[TModel: BaseModel](
    response: httpx.Response,
    model: type[TModel],
    *,
    context: str,
) -> TModel:
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise ParseError(f"Failed to parse PagerDuty {context}: {exc}") from exc


def _match_integration_key(
    services: list[ServicePayload],
    integration_key: str,
) -> ServicePayload | None:
    for service in services:
        if any(item.integration_key == integration_key for item in service.integrations):
            return service
    return services[0] if services else None


if TYPE_CHECKING:
    from dutysync.domain.ports.provider import (
        ServiceDirectory,
        ServiceInsights,
        ServiceProvisioner,
    )

    def _directory_check(client: PagerDutyClient) -> ServiceDirectory:
        return client

    def _provisioner_check(client: PagerDutyClient) -> ServiceProvisioner:
        return client

    def _insights_check(client: PagerDutyClient) -> ServiceInsights:
        return client
