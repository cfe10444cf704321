from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable  # noqa: TC003

import pytest

from dutysync.adapters.sqlalchemy.unit_of_work import SqlAlchemyMappingUnitOfWork  # noqa: TC001
from dutysync.domain.errors import TransportError
from dutysync.domain.model import (
    BACKSTAGE_VENDOR_ID,
    EntityMapping,
    EscalationPolicyOption,
    MappingStatus,
)
from dutysync.domain.service_mapping import (
    build_entity_mappings,
    fetch_annotated_entities,
    get_setting,
    list_escalation_policies,
    list_settings,
    put_setting,
    save_entity_mapping,
)
from tests.helpers.providers import (
    T0,
    FakeCatalog,
    FakeServiceDirectory,
    component,
    service,
)

type UnitOfWorkFactory = Callable[[], SqlAlchemyMappingUnitOfWork]


def _catalog() -> FakeCatalog:
    return FakeCatalog(
        entities=[
            component("ENTITY1", annotations={"pagerduty.com/service-id": "S1"}),
            component(
                "ENTITY2",
                annotations={
                    "pagerduty.com/service-id": "S2",
                    "pagerduty.com/integration-key": "K2",
                },
            ),
            component("ENTITY3", annotations={"pagerduty.com/integration-key": "K3"}),
            component("unannotated"),
        ]
    )


def test_fetch_annotated_entities_deduplicates() -> None:
    catalog = _catalog()

    entities = asyncio.run(fetch_annotated_entities(catalog))

    assert [entity.name for entity in entities] == ["ENTITY1", "ENTITY2", "ENTITY3"]
    assert len(catalog.filters) == 2


def test_build_entity_mappings_across_accounts(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    directory = FakeServiceDirectory(
        services={
            "us": [
                service("S1", "checkout", account="us"),
                service("S2", "billing", account="us"),
            ],
            "eu": [
                service(
                    "S3",
                    "search",
                    account="eu",
                    integrations=[(BACKSTAGE_VENDOR_ID, "K3")],
                ),
                service("S4", "alerts", account="eu"),
            ],
        },
        by_integration_key={"K3": service("S3", "search", account="eu")},
    )
    with sqlite_unit_of_work() as uow:
        uow.repositories.mappings.upsert(
            EntityMapping(service_id="S2", entity_ref="component:default/entity1", account="us")
        )
        uow.commit()

    rows = asyncio.run(
        build_entity_mappings(
            directory=directory,
            catalog=_catalog(),
            unit_of_work_factory=sqlite_unit_of_work,
            accounts=("us", "eu"),
        )
    )

    by_service = {row.service_id: row for row in rows}
    assert [row.service_name for row in rows] == ["alerts", "billing", "checkout", "search"]
    assert by_service["S1"].status is MappingStatus.IN_SYNC
    assert by_service["S2"].status is MappingStatus.OUT_OF_SYNC
    assert by_service["S2"].entity_name == "ENTITY1"
    assert by_service["S3"].status is MappingStatus.IN_SYNC
    assert by_service["S3"].entity_ref == "component:default/entity3"
    assert by_service["S3"].integration_key == "K3"
    assert by_service["S4"].status is MappingStatus.NOT_MAPPED
    assert directory.lookups == [("K3", None)]


def test_save_entity_mapping_refreshes_new_and_previous_entity(
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    catalog = FakeCatalog()
    first_id = asyncio.run(
        save_entity_mapping(
            EntityMapping(service_id="S1", entity_ref="component:default/a"),
            catalog=catalog,
            unit_of_work_factory=sqlite_unit_of_work,
            clock=lambda: T0,
        )
    )

    second_id = asyncio.run(
        save_entity_mapping(
            EntityMapping(service_id="S1", entity_ref="component:default/b", integration_key="K"),
            catalog=catalog,
            unit_of_work_factory=sqlite_unit_of_work,
            clock=lambda: T0,
        )
    )

    assert second_id == first_id
    assert catalog.refreshed == [
        "component:default/a",
        "component:default/b",
        "component:default/a",
    ]
    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.mappings.find_by_service_id("S1")
    assert stored is not None
    assert stored.entity_ref == "component:default/b"
    assert stored.processed_date == T0


def test_clearing_a_mapping_refreshes_previous_entity_only(
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    catalog = FakeCatalog()
    with sqlite_unit_of_work() as uow:
        uow.repositories.mappings.upsert(
            EntityMapping(service_id="S1", entity_ref="component:default/a")
        )
        uow.commit()

    asyncio.run(
        save_entity_mapping(
            EntityMapping(service_id="S1", entity_ref=""),
            catalog=catalog,
            unit_of_work_factory=sqlite_unit_of_work,
        )
    )

    assert catalog.refreshed == ["component:default/a"]


def test_refresh_failure_keeps_saved_mapping(
    sqlite_unit_of_work: UnitOfWorkFactory,
    caplog: pytest.LogCaptureFixture,
) -> None:
    catalog = FakeCatalog(refresh_error=TransportError("catalog down"))

    with caplog.at_level(logging.WARNING):
        asyncio.run(
            save_entity_mapping(
                EntityMapping(service_id="S1", entity_ref="component:default/a"),
                catalog=catalog,
                unit_of_work_factory=sqlite_unit_of_work,
            )
        )

    assert "catalog down" in caplog.text
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.mappings.find_by_service_id("S1") is not None


def test_escalation_policies_are_merged_and_sorted() -> None:
    directory = FakeServiceDirectory(
        policies={
            "us": [EscalationPolicyOption("Weekend", "EP2", "us")],
            "eu": [EscalationPolicyOption("after hours", "EP9", "eu")],
        }
    )

    options = asyncio.run(list_escalation_policies(directory, ("us", "eu")))

    assert [option.value for option in options] == ["EP9", "EP2"]


def test_settings_roundtrip(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    put_setting(sqlite_unit_of_work, "sync.enabled", "true", clock=lambda: T0)

    setting = get_setting(sqlite_unit_of_work, "sync.enabled")

    assert setting is not None
    assert (setting.value, setting.updated_at) == ("true", T0)
    assert [item.id for item in list_settings(sqlite_unit_of_work)] == ["sync.enabled"]
    assert get_setting(sqlite_unit_of_work, "missing") is None
