"""Reconciliation of PagerDuty services against catalog entities.

Flow of one pass:
1) index catalog entities by the PagerDuty service they declare
2) read persisted mapping rows
3) classify every live service against both sources
"""

from __future__ import annotations

from .contracts import MappingCase, ServiceLookup, classify_mapping
from .engine import reconcile_mappings
from .indexer import build_catalog_index, lookup_service_id

__all__ = [
    "MappingCase",
    "ServiceLookup",
    "build_catalog_index",
    "classify_mapping",
    "lookup_service_id",
    "reconcile_mappings",
]
