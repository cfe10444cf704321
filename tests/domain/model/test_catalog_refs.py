from __future__ import annotations

import pytest

from dutysync.domain.model import CatalogEntity, parse_entity_ref, stringify_entity_ref


def test_entity_ref_is_lowercase_and_keeps_display_name() -> None:
    entity = CatalogEntity(kind="Component", name="ENTITY1")

    assert entity.ref == "component:default/entity1"
    assert entity.name == "ENTITY1"


@pytest.mark.parametrize(
    ("ref", "expected"),
    [
        ("component:default/checkout", ("component", "default", "checkout")),
        ("api:payments/ledger", ("api", "payments", "ledger")),
        ("checkout", ("component", "default", "checkout")),
        ("team-a/checkout", ("component", "team-a", "checkout")),
    ],
)
def test_parse_entity_ref(ref: str, expected: tuple[str, str, str]) -> None:
    assert parse_entity_ref(ref) == expected


def test_parse_entity_ref_rejects_missing_name() -> None:
    with pytest.raises(ValueError, match="Invalid entity reference"):
        parse_entity_ref("component:default/")


def test_stringify_defaults_namespace() -> None:
    assert stringify_entity_ref("Component", None, "Checkout") == "component:default/checkout"


def test_annotation_is_stripped() -> None:
    entity = CatalogEntity(
        kind="Component",
        name="svc",
        annotations={"pagerduty.com/service-id": "  P123 "},
    )

    assert entity.annotation("pagerduty.com/service-id") == "P123"
    assert entity.annotation("pagerduty.com/integration-key") == ""
