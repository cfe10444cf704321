"""PagerDuty service projections used by reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field

BACKSTAGE_VENDOR_ID = "PRO19CT"


@dataclass(frozen=True, slots=True)
class ServiceIntegration:
    vendor_id: str
    integration_key: str


@dataclass(frozen=True, slots=True)
class RemoteService:
    id: str
    name: str
    html_url: str = ""
    escalation_policy_name: str = ""
    team_name: str = ""
    integrations: tuple[ServiceIntegration, ...] = field(default_factory=tuple)
    account: str = ""

    def integration_key_for_vendor(self, vendor_id: str = BACKSTAGE_VENDOR_ID) -> str:
        for integration in self.integrations:
            if integration.vendor_id == vendor_id:
                return integration.integration_key
        return ""


@dataclass(frozen=True, slots=True)
class EscalationPolicyOption:
    label: str
    value: str
    account: str = ""


@dataclass(frozen=True, slots=True)
class CreatedService:
    """A new service; ``integration_key`` is filled in once its Backstage integration exists."""

    id: str
    html_url: str = ""
    integration_key: str = ""
