"""
Pydantic schemas for category endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Category(BaseModel):
    id: int
    name: str
    slug: str
    parent_id: int | None = None


class CreateCategory(BaseModel):
    name: str = Field(..., min_length=1)
    # Derived from the name when omitted.
    slug: str | None = None
    parent_id: int | None = Field(default=None, ge=1)


class UpdateCategory(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    slug: str | None = None
    parent_id: int | None = Field(default=None, ge=1)
