"""Backstage catalog adapter."""

from __future__ import annotations

from .client import BackstageCatalogClient, build_filter

__all__ = ["BackstageCatalogClient", "build_filter"]
