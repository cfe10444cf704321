"""Port for the service catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from dutysync.domain.model import CatalogEntity


@runtime_checkable
class CatalogReader(Protocol):
    async def list_entities(
        self,
        entity_filter: Mapping[str, str] | None = None,
    ) -> list[CatalogEntity]: ...

    async def get_entity_by_ref(self, entity_ref: str) -> CatalogEntity | None: ...

    async def refresh_entity(self, entity_ref: str) -> None: ...
