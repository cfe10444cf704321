"""Merge persisted mappings, catalog annotations and live services."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dutysync.domain.model import MappingStatus, ReconciledMapping

from .contracts import MappingCase, classify_mapping

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from dutysync.domain.model import (
        CatalogEntity,
        CatalogReferenceIndex,
        EntityMapping,
        RemoteService,
    )


def reconcile_mappings(
    persisted_mappings: Iterable[EntityMapping],
    catalog_index: CatalogReferenceIndex,
    catalog_entities: Iterable[CatalogEntity],
    remote_services: Iterable[RemoteService],
) -> list[ReconciledMapping]:
    """Return one status-annotated row per remote service, sorted by service name.

    A persisted mapping is the last explicit user decision, so when it disagrees
    with the catalog the persisted entity is reported and the row is marked
    ``OutOfSync``.
    """

    persisted_by_service: dict[str, EntityMapping] = {}
    for mapping in persisted_mappings:
        persisted_by_service.setdefault(mapping.service_id, mapping)

    names_by_ref: dict[str, str] = {}
    for entity in catalog_entities:
        names_by_ref.setdefault(entity.ref, entity.name)

    rows = [
        _reconcile_service(service, persisted_by_service, catalog_index, names_by_ref)
        for service in remote_services
    ]
    return sorted(rows, key=lambda row: row.service_name)


def _reconcile_service(
    service: RemoteService,
    persisted_by_service: Mapping[str, EntityMapping],
    catalog_index: CatalogReferenceIndex,
    names_by_ref: Mapping[str, str],
) -> ReconciledMapping:
    reference = catalog_index.get(service.id)
    catalog_ref = (reference.entity_ref if reference else "") or ""
    catalog_name = (reference.entity_name if reference else "") or ""

    persisted = persisted_by_service.get(service.id)
    persisted_ref = (persisted.entity_ref if persisted else "") or ""
    persisted_key = (persisted.integration_key if persisted else "") or ""

    case = classify_mapping(
        persisted=persisted is not None,
        persisted_ref=persisted_ref,
        catalog_ref=catalog_ref,
    )
    match case:
        case MappingCase.CATALOG_ONLY:
            status = MappingStatus.IN_SYNC
            entity_ref, entity_name = catalog_ref, catalog_name
            integration_key = service.integration_key_for_vendor()
        case MappingCase.UNMAPPED:
            status = MappingStatus.NOT_MAPPED
            entity_ref, entity_name, integration_key = "", "", ""
        case MappingCase.PERSISTED_EMPTY:
            status = MappingStatus.NOT_MAPPED
            entity_ref, entity_name, integration_key = "", "", persisted_key
        case MappingCase.PERSISTED_ONLY | MappingCase.CONFLICT:
            status = MappingStatus.OUT_OF_SYNC
            entity_ref = persisted_ref
            entity_name = names_by_ref.get(persisted_ref.lower(), "")
            integration_key = persisted_key
        case MappingCase.AGREED:
            status = MappingStatus.IN_SYNC
            entity_ref, entity_name = catalog_ref, catalog_name
            integration_key = persisted_key

    return ReconciledMapping(
        service_id=service.id,
        service_name=service.name or "",
        service_url=service.html_url or "",
        team=service.team_name or "",
        escalation_policy=service.escalation_policy_name or "",
        account=service.account or "",
        entity_ref=entity_ref,
        entity_name=entity_name,
        integration_key=integration_key,
        status=status,
    )
