"""
Pydantic schemas for world endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from core.validators import AsciiText, ResourceName


class World(BaseModel):
    id: int | None = Field(default=None, exclude=True)
    uuid: str
    name: str
    owner: str
    creator: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    version: int = 1
    private: bool = False
    permission: int = 0
    license_id: int | None = None
    likes: int = 0
    downloads: int = 0
    filesize: int = 0
    created_at: datetime | None = None
    modified_at: datetime | None = None
    location: str | None = Field(default=None, exclude=True)


class ModelReference(BaseModel):
    """
    A model included by a world (e.g. via `<include>` in the world file).
    """

    world_id: int | None = Field(default=None, exclude=True)
    world_version: int
    model_name: str
    model_owner: str
    model_version: int | None = None


class CreateWorld(BaseModel):
    name: ResourceName = Field(..., min_length=3)
    owner: str | None = None
    license: int = Field(..., ge=1)
    permission: int = Field(default=0, ge=0, le=1)
    description: str = ""
    tags: AsciiText = ""
    private: bool | None = None


class CloneWorld(BaseModel):
    name: ResourceName | None = Field(default=None, min_length=3)
    owner: str | None = None
    private: bool | None = None


class UpdateWorld(BaseModel):
    description: str | None = None
    tags: str | None = None
    private: bool | None = None

    def is_empty(self) -> bool:
        return self.description is None and self.tags is None and self.private is None


class ReportWorld(BaseModel):
    reason: str = ""
