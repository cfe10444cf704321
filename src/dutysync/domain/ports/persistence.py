"""Ports for persisting mappings and settings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from dutysync.domain.model import EntityMapping, Setting


@runtime_checkable
class EntityMappingRepository(Protocol):
    def list_all(self) -> list[EntityMapping]: ...

    def find_by_service_id(self, service_id: str) -> EntityMapping | None: ...

    def find_by_entity_ref(self, entity_ref: str) -> EntityMapping | None: ...

    def upsert(self, mapping: EntityMapping) -> str:
        """Insert or update by ``service_id`` and return the stored row id."""
        ...


@runtime_checkable
class SettingRepository(Protocol):
    def get(self, setting_id: str) -> Setting | None: ...

    def list_all(self) -> list[Setting]: ...

    def put(self, setting: Setting) -> str: ...
