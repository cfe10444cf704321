"""Shared reconciliation contract components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


@dataclass(frozen=True, slots=True)
class ServiceLookup:
    """Outcome of resolving an integration key: a service id or nothing."""

    service_id: str | None = None
    reason: str | None = None

    @property
    def found(self) -> bool:
        return bool(self.service_id)

    @classmethod
    def absent(cls, reason: str) -> ServiceLookup:
        return cls(service_id=None, reason=reason)


class MappingCase(StrEnum):
    """Which sources know about a service's entity mapping."""

    CATALOG_ONLY = "catalog_only"
    UNMAPPED = "unmapped"
    PERSISTED_EMPTY = "persisted_empty"
    PERSISTED_ONLY = "persisted_only"
    CONFLICT = "conflict"
    AGREED = "agreed"


def classify_mapping(*, persisted: bool, persisted_ref: str, catalog_ref: str) -> MappingCase:
    """Decision table over (persisted exists, catalog ref defined, refs equal)."""

    match (persisted, bool(catalog_ref), persisted_ref == catalog_ref):
        case (False, True, _):
            return MappingCase.CATALOG_ONLY
        case (False, False, _):
            return MappingCase.UNMAPPED
        case (True, False, _) if not persisted_ref:
            return MappingCase.PERSISTED_EMPTY
        case (True, False, _):
            return MappingCase.PERSISTED_ONLY
        case (True, True, False):
            return MappingCase.CONFLICT
        case _:
            return MappingCase.AGREED
