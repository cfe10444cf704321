"""Ports consumed by the domain services."""

from __future__ import annotations

from .catalog import CatalogReader
from .identity import AcquiredToken, TokenAcquirer
from .persistence import EntityMappingRepository, SettingRepository
from .provider import (
    IntegrationKeyLookup,
    ServiceDirectory,
    ServiceInsights,
    ServiceProvisioner,
)
from .unit_of_work import MappingRepositories, MappingUnitOfWork, UnitOfWork

__all__ = [
    "AcquiredToken",
    "CatalogReader",
    "EntityMappingRepository",
    "IntegrationKeyLookup",
    "MappingRepositories",
    "MappingUnitOfWork",
    "ServiceDirectory",
    "ServiceInsights",
    "ServiceProvisioner",
    "SettingRepository",
    "TokenAcquirer",
    "UnitOfWork",
]
