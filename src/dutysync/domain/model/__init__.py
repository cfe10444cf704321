"""Domain model for dutysync."""

from __future__ import annotations

from .catalog import (
    ACCOUNT_ANNOTATION,
    DEFAULT_NAMESPACE,
    INTEGRATION_KEY_ANNOTATION,
    SERVICE_ID_ANNOTATION,
    CatalogEntity,
    CatalogReference,
    CatalogReferenceIndex,
    parse_entity_ref,
    stringify_entity_ref,
)
from .credentials import AccountCredential
from .enums import CredentialKind, MappingStatus
from .insights import (
    ChangeEvent,
    ChangeEventLink,
    Incident,
    OnCallUser,
    ServiceDependency,
    ServiceMetrics,
    ServiceStandard,
    ServiceStandards,
)
from .mapping import EntityMapping, ReconciledMapping, Setting
from .services import (
    BACKSTAGE_VENDOR_ID,
    CreatedService,
    EscalationPolicyOption,
    RemoteService,
    ServiceIntegration,
)

__all__ = [
    "ACCOUNT_ANNOTATION",
    "DEFAULT_NAMESPACE",
    "BACKSTAGE_VENDOR_ID",
    "INTEGRATION_KEY_ANNOTATION",
    "SERVICE_ID_ANNOTATION",
    "AccountCredential",
    "CatalogEntity",
    "CatalogReference",
    "CatalogReferenceIndex",
    "ChangeEvent",
    "ChangeEventLink",
    "CreatedService",
    "CredentialKind",
    "EntityMapping",
    "EscalationPolicyOption",
    "Incident",
    "MappingStatus",
    "OnCallUser",
    "ReconciledMapping",
    "RemoteService",
    "ServiceDependency",
    "ServiceIntegration",
    "ServiceMetrics",
    "ServiceStandard",
    "ServiceStandards",
    "Setting",
    "parse_entity_ref",
    "stringify_entity_ref",
]
