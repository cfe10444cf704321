"""Ports for reading and changing PagerDuty service data."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

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


@runtime_checkable
class IntegrationKeyLookup(Protocol):
    """Resolve an integration key to the service that owns it."""

    async def get_service_by_integration_key(
        self,
        integration_key: str,
        account: str | None = None,
    ) -> RemoteService: ...


@runtime_checkable
class ServiceDirectory(IntegrationKeyLookup, Protocol):
    async def list_services(self, account: str | None = None) -> list[RemoteService]: ...

    async def get_service(self, service_id: str, account: str | None = None) -> RemoteService: ...

    async def list_escalation_policies(
        self,
        account: str | None = None,
    ) -> list[EscalationPolicyOption]: ...


class ServiceProvisioner(Protocol):
    async def create_service(
        self,
        name: str,
        description: str,
        escalation_policy_id: str,
        account: str | None = None,
    ) -> CreatedService: ...

    async def create_service_integration(
        self,
        service_id: str,
        vendor_id: str = ...,
        account: str | None = None,
    ) -> str: ...


class ServiceInsights(Protocol):
    """Operational data about a single service."""

    async def list_oncall_users(
        self,
        escalation_policy_id: str,
        account: str | None = None,
    ) -> list[OnCallUser]: ...

    async def list_change_events(
        self,
        service_id: str,
        account: str | None = None,
    ) -> list[ChangeEvent]: ...

    async def list_incidents(
        self,
        service_id: str,
        account: str | None = None,
    ) -> list[Incident]: ...

    async def get_service_standards(
        self,
        service_id: str,
        account: str | None = None,
    ) -> ServiceStandards: ...

    async def get_service_metrics(
        self,
        service_id: str,
        account: str | None = None,
    ) -> list[ServiceMetrics]: ...

    async def list_service_dependencies(
        self,
        service_id: str,
        account: str | None = None,
    ) -> list[ServiceDependency]: ...

    async def add_service_dependencies(
        self,
        service_id: str,
        dependency_ids: Sequence[str],
        account: str | None = None,
    ) -> list[ServiceDependency]: ...

    async def remove_service_dependencies(
        self,
        service_id: str,
        dependency_ids: Sequence[str],
        account: str | None = None,
    ) -> list[ServiceDependency]: ...
