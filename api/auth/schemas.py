"""
Identity records shared by the auth resolver and the handlers.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class User(BaseModel):
    id: int
    identity: str | None = None
    username: str
    name: str | None = None
    email: str | None = None
    org_name: str | None = None
    exp_features: str | None = None
    created_at: datetime | None = None


class AccessToken(BaseModel):
    id: int
    user_id: int
    name: str | None = None
    prefix: str
    # bcrypt hash of the secret part of the token
    key: str = Field(..., repr=False)
    expires_at: datetime | None = None
    last_used_at: datetime | None = None
    created_at: datetime | None = None


class Organization(BaseModel):
    id: int
    name: str
    email: str | None = None
    description: str | None = None
    creator: str | None = None
    private: bool = False
