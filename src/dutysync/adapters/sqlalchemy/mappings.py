"""SQLAlchemy mapping metadata for entity mappings and settings."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    orm,
)
from sqlalchemy.orm import configure_mappers

from dutysync.domain.model import EntityMapping, Setting

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

entity_mapping_table = Table(
    "pagerduty_entity_mapping",
    mapper_registry.metadata,
    Column("id", String(36), primary_key=True),
    Column("service_id", String, nullable=False),
    Column("entity_ref", String, nullable=False, server_default=""),
    Column("integration_key", String, nullable=False, server_default=""),
    Column("account", String, nullable=False, server_default=""),
    Column("processed_date", UTCDateTime(), nullable=True),
    UniqueConstraint("service_id"),
)

setting_table = Table(
    "pagerduty_settings",
    mapper_registry.metadata,
    Column("id", String, primary_key=True),
    Column("value", Text, nullable=False, server_default=""),
    Column("updated_at", UTCDateTime(), nullable=True),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the persisted domain records."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(EntityMapping, entity_mapping_table)
    mapper_registry.map_imperatively(Setting, setting_table)

    configure_mappers()
    return mapper_registry
