"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import select

from dutysync.adapters.sqlalchemy.mappings import entity_mapping_table, setting_table
from dutysync.domain.model import EntityMapping, Setting

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

log = getLogger(__name__)


class SqlAlchemyEntityMappingRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_all(self) -> list[EntityMapping]:
        stmt = select(EntityMapping).order_by(entity_mapping_table.c.service_id)
        return list(self.session.execute(stmt).scalars())

    def find_by_service_id(self, service_id: str) -> EntityMapping | None:
        stmt = select(EntityMapping).where(entity_mapping_table.c.service_id == service_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def find_by_entity_ref(self, entity_ref: str) -> EntityMapping | None:
        stmt = (
            select(EntityMapping)
            .where(entity_mapping_table.c.entity_ref == entity_ref)
            .order_by(entity_mapping_table.c.service_id)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def upsert(self, mapping: EntityMapping) -> str:
        """Insert ``mapping`` or merge it into the row sharing its ``service_id``.

        The stored row keeps its original id; the returned id is always the one
        persisted in the database.
        """

        existing = self.find_by_service_id(mapping.service_id)
        if existing is None:
            self.session.add(mapping)
            self.session.flush()
            log.debug("Inserted mapping %s for service %s", mapping.id, mapping.service_id)
            return mapping.id

        if existing is not mapping:
            existing.entity_ref = mapping.entity_ref
            existing.integration_key = mapping.integration_key
            existing.account = mapping.account
            existing.processed_date = mapping.processed_date
        self.session.flush()
        log.debug("Updated mapping %s for service %s", existing.id, existing.service_id)
        return existing.id


class SqlAlchemySettingRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, setting_id: str) -> Setting | None:
        return self.session.get(Setting, setting_id)

    def list_all(self) -> list[Setting]:
        stmt = select(Setting).order_by(setting_table.c.id)
        return list(self.session.execute(stmt).scalars())

    def put(self, setting: Setting) -> str:
        existing = self.get(setting.id)
        if existing is None:
            self.session.add(setting)
        elif existing is not setting:
            existing.value = setting.value
            existing.updated_at = setting.updated_at
        self.session.flush()
        return setting.id


if TYPE_CHECKING:
    from dutysync.domain.ports.persistence import EntityMappingRepository, SettingRepository

    def _mapping_repo_check(session: Session) -> EntityMappingRepository:
        return SqlAlchemyEntityMappingRepository(session)

    def _setting_repo_check(session: Session) -> SettingRepository:
        return SqlAlchemySettingRepository(session)
