"""
Pydantic schemas for model endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from core.validators import AsciiText, Base64Text, ResourceName


class Metadatum(BaseModel):
    key: str
    value: str = ""


class Model(BaseModel):
    id: int | None = Field(default=None, exclude=True)
    uuid: str
    name: str
    owner: str
    creator: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    metadata: list[Metadatum] = Field(default_factory=list)
    version: int = 1
    private: bool = False
    permission: int = 0
    license_id: int | None = None
    url_name: str | None = None
    likes: int = 0
    downloads: int = 0
    filesize: int = 0
    created_at: datetime | None = None
    modified_at: datetime | None = None
    # Storage folder; never sent to clients.
    location: str | None = Field(default=None, exclude=True)


class CreateModel(BaseModel):
    name: ResourceName = Field(..., min_length=3)
    owner: str | None = None
    url_name: Base64Text | None = Field(default=None, alias="urlName")
    license: int = Field(..., ge=1)
    permission: int = Field(default=0, ge=0, le=1)
    description: str = ""
    # Comma separated
    tags: AsciiText = ""
    categories: AsciiText = ""
    private: bool | None = None


class CloneModel(BaseModel):
    name: ResourceName | None = Field(default=None, min_length=3)
    owner: str | None = None
    private: bool | None = None


class UpdateModel(BaseModel):
    description: str | None = None
    tags: str | None = None
    private: bool | None = None
    categories: str | None = None

    def is_empty(self) -> bool:
        return (
            self.description is None
            and self.tags is None
            and self.private is None
            and self.categories is None
        )


class ReportModel(BaseModel):
    reason: str = ""
