"""Pydantic models for Backstage catalog entities."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class BackstageBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class EntityMetadataPayload(BackstageBaseModel):
    name: str
    namespace: str | None = None
    title: str | None = None
    uid: str | None = None
    annotations: dict[str, str] = Field(default_factory=dict)


class EntityPayload(BackstageBaseModel):
    api_version: str | None = Field(default=None, alias="apiVersion")
    kind: str
    metadata: EntityMetadataPayload
