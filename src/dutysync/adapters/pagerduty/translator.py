"""Translate PagerDuty payloads into domain projections."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dutysync.domain.model import (
    ChangeEvent,
    ChangeEventLink,
    CreatedService,
    EscalationPolicyOption,
    Incident,
    OnCallUser,
    RemoteService,
    ServiceDependency,
    ServiceIntegration,
    ServiceMetrics,
    ServiceStandard,
    ServiceStandards,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .schema import (
        ChangeEventPayload,
        EscalationPolicyPayload,
        IncidentPayload,
        OnCallPayload,
        ServiceDependencyPayload,
        ServiceMetricsPayload,
        ServicePayload,
        ServiceStandardsResponse,
    )


def translate_service(payload: ServicePayload, *, account: str = "") -> RemoteService:
    integrations = tuple(
        ServiceIntegration(
            vendor_id=integration.vendor.id if integration.vendor else "",
            integration_key=integration.integration_key or "",
        )
        for integration in payload.integrations
    )
    team_name = payload.teams[0].display_name if payload.teams else ""
    escalation_policy = payload.escalation_policy
    return RemoteService(
        id=payload.id,
        name=payload.name,
        html_url=payload.html_url,
        escalation_policy_name=escalation_policy.display_name if escalation_policy else "",
        team_name=team_name,
        integrations=integrations,
        account=account,
    )


def translate_created_service(payload: ServicePayload) -> CreatedService:
    return CreatedService(id=payload.id, html_url=payload.html_url)


def translate_escalation_policy(
    payload: EscalationPolicyPayload,
    *,
    account: str = "",
) -> EscalationPolicyOption:
    return EscalationPolicyOption(label=payload.name, value=payload.id, account=account)


def translate_oncall_users(oncalls: Iterable[OnCallPayload]) -> list[OnCallUser]:
    """Users on call at the first escalation level present, one entry per user, by name."""

    with_users = [oncall for oncall in oncalls if oncall.user is not None]
    if not with_users:
        return []
    first_level = min(oncall.escalation_level for oncall in with_users)

    users: dict[str, OnCallUser] = {}
    for oncall in with_users:
        user = oncall.user
        if user is None or oncall.escalation_level != first_level or user.id in users:
            continue
        users[user.id] = OnCallUser(
            id=user.id,
            name=user.name or user.summary,
            email=user.email,
            summary=user.summary,
            html_url=user.html_url,
            avatar_url=user.avatar_url,
        )
    return sorted(users.values(), key=lambda user: user.name.lower())


def translate_change_event(payload: ChangeEventPayload) -> ChangeEvent:
    return ChangeEvent(
        id=payload.id,
        summary=payload.summary,
        source=payload.source or "",
        timestamp=payload.timestamp,
        links=tuple(ChangeEventLink(href=link.href, text=link.text) for link in payload.links),
        integration_names=tuple(
            integration.display_name for integration in payload.integration
        ),
    )


def translate_incident(payload: IncidentPayload) -> Incident:
    service = payload.service
    return Incident(
        id=payload.id,
        title=payload.title,
        status=payload.status,
        urgency=payload.urgency,
        created_at=payload.created_at,
        html_url=payload.html_url,
        service_id=service.id if service else "",
        service_name=service.display_name if service else "",
        assignees=tuple(
            assignment.assignee.display_name
            for assignment in payload.assignments
            if assignment.assignee is not None
        ),
    )


def translate_standards(payload: ServiceStandardsResponse) -> ServiceStandards:
    return ServiceStandards(
        resource_id=payload.resource_id,
        resource_type=payload.resource_type,
        passing=payload.score.passing,
        total=payload.score.total,
        standards=tuple(
            ServiceStandard(
                id=standard.id,
                name=standard.name,
                description=standard.description,
                active=standard.active,
                passed=standard.passed,
            )
            for standard in payload.standards
        ),
    )


def translate_metrics(payload: ServiceMetricsPayload) -> ServiceMetrics:
    return ServiceMetrics(
        service_id=payload.service_id,
        service_name=payload.service_name or "",
        total_incident_count=payload.total_incident_count,
        total_high_urgency_incidents=payload.total_high_urgency_incidents,
        total_interruptions=payload.total_interruptions,
        mean_seconds_to_resolve=payload.mean_seconds_to_resolve,
    )


def translate_dependency(payload: ServiceDependencyPayload) -> ServiceDependency:
    return ServiceDependency(
        id=payload.id,
        dependent_service_id=payload.dependent_service.id,
        supporting_service_id=payload.supporting_service.id,
    )
