"""Catalog entity projections and entity reference helpers."""

from __future__ import annotations

from dataclasses import dataclass, field

SERVICE_ID_ANNOTATION = "pagerduty.com/service-id"
INTEGRATION_KEY_ANNOTATION = "pagerduty.com/integration-key"
ACCOUNT_ANNOTATION = "pagerduty.com/account"

DEFAULT_NAMESPACE = "default"


def stringify_entity_ref(kind: str, namespace: str | None, name: str) -> str:
    """Return the canonical lowercase ``kind:namespace/name`` reference."""

    return f"{kind}:{namespace or DEFAULT_NAMESPACE}/{name}".lower()


def parse_entity_ref(ref: str, *, default_kind: str = "component") -> tuple[str, str, str]:
    """Split ``[kind:][namespace/]name`` into its three parts."""

    kind, _, rest = ref.rpartition(":") if ":" in ref else ("", "", ref)
    namespace, _, name = rest.rpartition("/") if "/" in rest else ("", "", rest)
    if not name:
        raise ValueError(f"Invalid entity reference: {ref!r}")
    return (kind or default_kind, namespace or DEFAULT_NAMESPACE, name)


@dataclass(frozen=True, slots=True)
class CatalogEntity:
    kind: str
    name: str
    namespace: str = DEFAULT_NAMESPACE
    title: str | None = None
    annotations: dict[str, str] = field(default_factory=dict)

    @property
    def ref(self) -> str:
        return stringify_entity_ref(self.kind, self.namespace, self.name)

    def annotation(self, key: str) -> str:
        return (self.annotations.get(key) or "").strip()


@dataclass(frozen=True, slots=True)
class CatalogReference:
    entity_ref: str
    entity_name: str


type CatalogReferenceIndex = dict[str, CatalogReference]
