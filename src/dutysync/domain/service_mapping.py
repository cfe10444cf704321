"""Application services for reading and saving service-to-entity mappings."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from dutysync.domain.auth.resolver import utcnow
from dutysync.domain.errors import ProviderError
from dutysync.domain.model import (
    INTEGRATION_KEY_ANNOTATION,
    SERVICE_ID_ANNOTATION,
    Setting,
)
from dutysync.domain.reconciliation import build_catalog_index, reconcile_mappings

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from dutysync.domain.auth.resolver import Clock
    from dutysync.domain.model import (
        CatalogEntity,
        EntityMapping,
        EscalationPolicyOption,
        ReconciledMapping,
        RemoteService,
    )
    from dutysync.domain.ports import CatalogReader, MappingUnitOfWork, ServiceDirectory

log = getLogger(__name__)

ANNOTATED_ENTITY_FILTERS: tuple[dict[str, str], ...] = (
    {f"metadata.annotations.{SERVICE_ID_ANNOTATION}": ""},
    {f"metadata.annotations.{INTEGRATION_KEY_ANNOTATION}": ""},
)


async def build_entity_mappings(
    *,
    directory: ServiceDirectory,
    catalog: CatalogReader,
    unit_of_work_factory: Callable[[], MappingUnitOfWork],
    accounts: Sequence[str | None] = (None,),
) -> list[ReconciledMapping]:
    """Run one reconciliation pass over every service of ``accounts``."""

    services, entities = await asyncio.gather(
        _list_services(directory, accounts),
        fetch_annotated_entities(catalog),
    )
    catalog_index = await build_catalog_index(entities, lookup=directory)

    with unit_of_work_factory() as uow:
        persisted = uow.repositories.mappings.list_all()

    rows = reconcile_mappings(persisted, catalog_index, entities, services)
    log.info(
        "Reconciled %d services against %d catalog entities (%d persisted mappings)",
        len(services),
        len(entities),
        len(persisted),
    )
    return rows


async def fetch_annotated_entities(catalog: CatalogReader) -> list[CatalogEntity]:
    """Return catalog entities carrying a service-id or integration-key annotation."""

    batches = await asyncio.gather(
        *(catalog.list_entities(entity_filter) for entity_filter in ANNOTATED_ENTITY_FILTERS)
    )
    unique: dict[str, CatalogEntity] = {}
    for batch in batches:
        for entity in batch:
            unique.setdefault(entity.ref, entity)
    return list(unique.values())


async def _list_services(
    directory: ServiceDirectory,
    accounts: Sequence[str | None],
) -> list[RemoteService]:
    per_account = await asyncio.gather(*(directory.list_services(account) for account in accounts))
    return [service for services in per_account for service in services]


async def save_entity_mapping(
    mapping: EntityMapping,
    *,
    catalog: CatalogReader,
    unit_of_work_factory: Callable[[], MappingUnitOfWork],
    clock: Clock = utcnow,
) -> str:
    """Persist ``mapping`` and ask the catalog to refresh every affected entity.

    Both the newly mapped entity and the one the service was mapped to before
    are refreshed so their annotations pick up the change. Refresh failures are
    logged; the saved mapping stays committed.
    """

    with unit_of_work_factory() as uow:
        repository = uow.repositories.mappings
        previous = repository.find_by_service_id(mapping.service_id)
        previous_ref = previous.entity_ref if previous is not None else ""
        mapping.touch(clock())
        mapping_id = repository.upsert(mapping)
        uow.commit()

    log.info(
        "Saved mapping %s: service %s -> %r", mapping_id, mapping.service_id, mapping.entity_ref
    )

    for entity_ref in dict.fromkeys((mapping.entity_ref, previous_ref)):
        if not entity_ref:
            continue
        try:
            await catalog.refresh_entity(entity_ref)
        except ProviderError as exc:
            log.warning(f"Catalog refresh for {entity_ref} failed: {exc}")
    return mapping_id


async def list_escalation_policies(
    directory: ServiceDirectory,
    accounts: Sequence[str | None] = (None,),
) -> list[EscalationPolicyOption]:
    per_account = await asyncio.gather(
        *(directory.list_escalation_policies(account) for account in accounts)
    )
    options = [option for options in per_account for option in options]
    return sorted(options, key=lambda option: option.label.lower())


def get_setting(
    unit_of_work_factory: Callable[[], MappingUnitOfWork],
    setting_id: str,
) -> Setting | None:
    with unit_of_work_factory() as uow:
        return uow.repositories.settings.get(setting_id)


def list_settings(unit_of_work_factory: Callable[[], MappingUnitOfWork]) -> list[Setting]:
    with unit_of_work_factory() as uow:
        return uow.repositories.settings.list_all()


def put_setting(
    unit_of_work_factory: Callable[[], MappingUnitOfWork],
    setting_id: str,
    value: str,
    *,
    clock: Clock = utcnow,
) -> str:
    with unit_of_work_factory() as uow:
        stored_id = uow.repositories.settings.put(
            Setting(id=setting_id, value=value, updated_at=clock())
        )
        uow.commit()
    return stored_id
