"""Create PagerDuty services that are ready to be mapped to catalog entities."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from dutysync.domain.model import BACKSTAGE_VENDOR_ID

if TYPE_CHECKING:
    from dutysync.domain.model import CreatedService
    from dutysync.domain.ports import ServiceProvisioner

log = getLogger(__name__)


async def provision_service(
    provisioner: ServiceProvisioner,
    *,
    name: str,
    description: str,
    escalation_policy_id: str,
    account: str | None = None,
) -> CreatedService:
    """Create a service and attach the Backstage integration the reconciler reads.

    The integration key of the new integration is returned on the result.
    """

    created = await provisioner.create_service(name, description, escalation_policy_id, account)
    integration_key = await provisioner.create_service_integration(
        created.id,
        BACKSTAGE_VENDOR_ID,
        account,
    )
    log.info("Provisioned PagerDuty service %s with a Backstage integration", created.id)
    return replace(created, integration_key=integration_key)
