"""Read-only PagerDuty views shown next to a catalog entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class OnCallUser:
    id: str
    name: str
    email: str = ""
    summary: str = ""
    html_url: str = ""
    avatar_url: str = ""


@dataclass(frozen=True, slots=True)
class ChangeEventLink:
    href: str
    text: str = ""


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    id: str
    summary: str
    source: str = ""
    timestamp: datetime | None = None
    links: tuple[ChangeEventLink, ...] = field(default_factory=tuple)
    integration_names: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class Incident:
    id: str
    title: str
    status: str
    urgency: str | None = None
    created_at: datetime | None = None
    html_url: str = ""
    service_id: str = ""
    service_name: str = ""
    assignees: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class ServiceStandard:
    id: str
    name: str
    description: str = ""
    active: bool = True
    passed: bool = False


@dataclass(frozen=True, slots=True)
class ServiceStandards:
    """Standards score of one technical service."""

    resource_id: str
    resource_type: str = ""
    passing: int = 0
    total: int = 0
    standards: tuple[ServiceStandard, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class ServiceMetrics:
    service_id: str
    service_name: str = ""
    total_incident_count: int = 0
    total_high_urgency_incidents: int = 0
    total_interruptions: int = 0
    mean_seconds_to_resolve: float | None = None


@dataclass(frozen=True, slots=True)
class ServiceDependency:
    """``dependent_service_id`` relies on ``supporting_service_id``."""

    id: str
    dependent_service_id: str
    supporting_service_id: str
