"""Build the service id -> catalog entity lookup used by reconciliation."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from dutysync.domain.errors import ProviderError
from dutysync.domain.model import (
    ACCOUNT_ANNOTATION,
    INTEGRATION_KEY_ANNOTATION,
    SERVICE_ID_ANNOTATION,
    CatalogReference,
)

from .contracts import ServiceLookup

if TYPE_CHECKING:
    from collections.abc import Iterable

    from dutysync.domain.model import CatalogEntity, CatalogReferenceIndex
    from dutysync.domain.ports.provider import IntegrationKeyLookup

log = getLogger(__name__)


async def lookup_service_id(
    lookup: IntegrationKeyLookup,
    integration_key: str,
    account: str | None = None,
) -> ServiceLookup:
    """Resolve ``integration_key`` without letting provider errors escape."""

    try:
        service = await lookup.get_service_by_integration_key(integration_key, account)
    except ProviderError as exc:
        log.debug("Integration key lookup failed (account=%s): %s", account, exc)
        return ServiceLookup.absent(str(exc))
    if not service.id:
        return ServiceLookup.absent("service without id")
    return ServiceLookup(service_id=service.id)


async def _index_entry(
    entity: CatalogEntity,
    lookup: IntegrationKeyLookup,
) -> tuple[str, CatalogReference] | None:
    reference = CatalogReference(entity_ref=entity.ref, entity_name=entity.name)

    service_id = entity.annotation(SERVICE_ID_ANNOTATION)
    if service_id:
        return service_id, reference

    integration_key = entity.annotation(INTEGRATION_KEY_ANNOTATION)
    if not integration_key:
        return None

    account = entity.annotation(ACCOUNT_ANNOTATION) or None
    result = await lookup_service_id(lookup, integration_key, account)
    if not result.found or result.service_id is None:
        log.info("Skipping %s: integration key does not resolve to a service", entity.ref)
        return None
    return result.service_id, reference


async def build_catalog_index(
    entities: Iterable[CatalogEntity],
    *,
    lookup: IntegrationKeyLookup,
) -> CatalogReferenceIndex:
    """Map PagerDuty service ids to the catalog entities that declare them.

    The service-id annotation wins over the integration key. Entities whose
    integration key no longer resolves are left out of the index.
    """

    entries = await asyncio.gather(*(_index_entry(entity, lookup) for entity in entities))
    index: CatalogReferenceIndex = {}
    for entry in entries:
        if entry is None:
            continue
        service_id, reference = entry
        index[service_id] = reference
    return index
