"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class CredentialKind(StrEnum):
    STATIC = "static"
    OAUTH = "oauth"


class MappingStatus(StrEnum):
    IN_SYNC = "InSync"
    OUT_OF_SYNC = "OutOfSync"
    NOT_MAPPED = "NotMapped"
