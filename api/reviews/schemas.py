"""
Pydantic schemas for model reviews.
"""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field

from core.validators import ResourceName


class ReviewStatus(IntEnum):
    OPEN = 0
    MERGED = 1
    CLOSED = 2


class ModelReview(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    id: int | None = Field(default=None, exclude=True)
    model_id: int | None = None
    title: str
    description: str | None = None
    creator: str | None = None
    owner: str | None = None
    branch: str | None = None
    status: ReviewStatus = ReviewStatus.OPEN
    reviewers: list[str] = Field(default_factory=list)
    approvals: list[str] = Field(default_factory=list)
    private: bool = False
    created_at: datetime | None = None
    modified_at: datetime | None = None


class CreateModelReview(BaseModel):
    title: ResourceName = Field(..., min_length=1)
    description: str = ""
    # Defaults to the caller.
    owner: str | None = None
    # Required, but reported as MISSING_FIELD by the handler.
    branch: str | None = None
    status: int = Field(default=ReviewStatus.OPEN, ge=0, le=2)
    reviewers: list[str] = Field(default_factory=list)
    approvals: list[str] = Field(default_factory=list)
    private: bool | None = None
