"""Translate Backstage entity payloads into catalog projections."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dutysync.domain.model import DEFAULT_NAMESPACE, CatalogEntity

if TYPE_CHECKING:
    from .schema import EntityPayload


def translate_entity(payload: EntityPayload) -> CatalogEntity:
    metadata = payload.metadata
    return CatalogEntity(
        kind=payload.kind,
        name=metadata.name,
        namespace=metadata.namespace or DEFAULT_NAMESPACE,
        title=metadata.title,
        annotations=dict(metadata.annotations),
    )
