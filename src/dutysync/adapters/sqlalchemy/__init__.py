"""SQLAlchemy adapter package for dutysync."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import SqlAlchemyEntityMappingRepository, SqlAlchemySettingRepository
from .unit_of_work import SqlAlchemyMappingUnitOfWork, shutdown, startup

__all__ = [
    "SqlAlchemyEntityMappingRepository",
    "SqlAlchemyMappingUnitOfWork",
    "SqlAlchemySettingRepository",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
