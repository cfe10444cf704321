"""Credential lifecycle for PagerDuty accounts."""

from __future__ import annotations

from .registry import AccountRegistry
from .resolver import ConfigLoader, TokenResolver

__all__ = ["AccountRegistry", "ConfigLoader", "TokenResolver"]
