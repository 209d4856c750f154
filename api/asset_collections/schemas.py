"""
Pydantic schemas for collection endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from core.transfer import AssetKind
from core.validators import ResourceName


class Collection(BaseModel):
    id: int | None = Field(default=None, exclude=True)
    uuid: str
    name: str
    owner: str
    creator: str | None = None
    description: str | None = None
    private: bool = False
    version: int = 1
    thumbnail_urls: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    modified_at: datetime | None = None
    location: str | None = Field(default=None, exclude=True)


class CollectionAsset(BaseModel):
    name: str
    owner: str
    type: AssetKind


class NameOwnerPair(BaseModel):
    name: ResourceName = Field(..., min_length=1)
    owner: str = Field(..., min_length=1)


class CreateCollection(BaseModel):
    name: ResourceName = Field(..., min_length=3)
    owner: str | None = None
    description: str = ""
    private: bool | None = None


class CloneCollection(BaseModel):
    name: ResourceName | None = Field(default=None, min_length=3)
    owner: str | None = None
    private: bool | None = None


class UpdateCollection(BaseModel):
    description: str | None = None
    private: bool | None = None

    def is_empty(self) -> bool:
        return self.description is None and self.private is None
