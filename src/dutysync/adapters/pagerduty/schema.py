"""Pydantic models describing the PagerDuty REST and identity payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PagerDutyBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ReferencePayload(PagerDutyBaseModel):
    id: str = ""
    type: str | None = None
    summary: str | None = None
    name: str | None = None
    html_url: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.summary or ""


class IntegrationPayload(PagerDutyBaseModel):
    id: str = ""
    name: str | None = None
    vendor: ReferencePayload | None = None
    integration_key: str | None = None


class ServicePayload(PagerDutyBaseModel):
    id: str
    name: str = ""
    description: str | None = None
    html_url: str = ""
    status: str | None = None
    escalation_policy: ReferencePayload | None = None
    teams: list[ReferencePayload] = Field(default_factory=list)
    integrations: list[IntegrationPayload] = Field(default_factory=list)


class ServiceResponse(PagerDutyBaseModel):
    service: ServicePayload


class PaginatedResponse(PagerDutyBaseModel):
    limit: int | None = None
    offset: int | None = None
    more: bool = False
    total: int | None = None


class ServiceListResponse(PaginatedResponse):
    services: list[ServicePayload] = Field(default_factory=list)


class EscalationPolicyPayload(PagerDutyBaseModel):
    id: str
    name: str = ""


class EscalationPolicyListResponse(PaginatedResponse):
    escalation_policies: list[EscalationPolicyPayload] = Field(default_factory=list)


class IntegrationResponse(PagerDutyBaseModel):
    integration: IntegrationPayload


class UserPayload(PagerDutyBaseModel):
    id: str
    name: str = ""
    email: str = ""
    summary: str = ""
    html_url: str = ""
    avatar_url: str = ""


class OnCallPayload(PagerDutyBaseModel):
    user: UserPayload | None = None
    escalation_level: int = 1


class OnCallListResponse(PaginatedResponse):
    oncalls: list[OnCallPayload] = Field(default_factory=list)


class LinkPayload(PagerDutyBaseModel):
    href: str = ""
    text: str = ""


class ChangeEventPayload(PagerDutyBaseModel):
    id: str
    summary: str = ""
    source: str | None = None
    timestamp: datetime | None = None
    links: list[LinkPayload] = Field(default_factory=list)
    integration: list[ReferencePayload] = Field(default_factory=list)


class ChangeEventListResponse(PaginatedResponse):
    change_events: list[ChangeEventPayload] = Field(default_factory=list)


class AssignmentPayload(PagerDutyBaseModel):
    assignee: ReferencePayload | None = None


class IncidentPayload(PagerDutyBaseModel):
    id: str
    title: str = ""
    status: str = ""
    urgency: str | None = None
    created_at: datetime | None = None
    html_url: str = ""
    service: ReferencePayload | None = None
    assignments: list[AssignmentPayload] = Field(default_factory=list)


class IncidentListResponse(PaginatedResponse):
    incidents: list[IncidentPayload] = Field(default_factory=list)


class StandardPayload(PagerDutyBaseModel):
    id: str
    name: str = ""
    description: str = ""
    active: bool = True
    passed: bool = Field(default=False, alias="pass")


class StandardsScorePayload(PagerDutyBaseModel):
    passing: int = 0
    total: int = 0


class ServiceStandardsResponse(PagerDutyBaseModel):
    resource_id: str = ""
    resource_type: str = ""
    score: StandardsScorePayload = Field(default_factory=StandardsScorePayload)
    standards: list[StandardPayload] = Field(default_factory=list)


class ServiceMetricsPayload(PagerDutyBaseModel):
    service_id: str = ""
    service_name: str | None = None
    total_incident_count: int = 0
    total_high_urgency_incidents: int = 0
    total_interruptions: int = 0
    mean_seconds_to_resolve: float | None = None


class ServiceMetricsResponse(PagerDutyBaseModel):
    data: list[ServiceMetricsPayload] = Field(default_factory=list)


class ServiceDependencyPayload(PagerDutyBaseModel):
    id: str = ""
    dependent_service: ReferencePayload
    supporting_service: ReferencePayload


class ServiceDependencyResponse(PagerDutyBaseModel):
    relationships: list[ServiceDependencyPayload] = Field(default_factory=list)


class OAuthTokenResponse(PagerDutyBaseModel):
    access_token: str
    token_type: str | None = None
    expires_in: int
    scope: str | None = None
