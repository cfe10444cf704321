from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from dutysync.adapters.sqlalchemy import start_mappers
from dutysync.adapters.sqlalchemy.migrations import upgrade_head
from dutysync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyMappingUnitOfWork,
    shutdown,
    startup,
)

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture(autouse=True)
def _isolated_environment(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path_factory: pytest.TempPathFactory,
) -> None:
    for name in (
        "DUTYSYNC_CONFIG_FILE",
        "PAGERDUTY_API_TOKEN",
        "PAGERDUTY_API_BASE_URL",
        "PAGERDUTY_OAUTH_CLIENT_ID",
        "PAGERDUTY_OAUTH_CLIENT_SECRET",
        "PAGERDUTY_OAUTH_SUBDOMAIN",
        "PAGERDUTY_OAUTH_REGION",
        "BACKSTAGE_BASE_URL",
        "BACKSTAGE_TOKEN",
        "BACKSTAGE_CACHE_TTL_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DUTYSYNC_DATA_DIR", str(tmp_path_factory.mktemp("data")))


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyMappingUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyMappingUnitOfWork:
        return SqlAlchemyMappingUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()
