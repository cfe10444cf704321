"""Entity mapping records and their reconciled view."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .enums import MappingStatus


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(eq=False)
class EntityMapping:
    """Persisted link between a PagerDuty service and a catalog entity.

    ``service_id`` is the natural key; saving a mapping for a known service
    updates the existing row instead of adding a second one.
    """

    service_id: str
    entity_ref: str = ""
    integration_key: str = ""
    account: str = ""
    processed_date: datetime | None = None
    id: str = field(default_factory=_new_id)

    def touch(self, now: datetime | None = None) -> None:
        self.processed_date = now or datetime.now(UTC)


@dataclass(eq=False)
class Setting:
    id: str
    value: str = ""
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconciledMapping:
    service_id: str
    service_name: str
    service_url: str = ""
    team: str = ""
    escalation_policy: str = ""
    account: str = ""
    entity_ref: str = ""
    entity_name: str = ""
    integration_key: str = ""
    status: MappingStatus = MappingStatus.NOT_MAPPED
