"""
Pydantic schemas for user accounts, owner profiles and personal access
tokens.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from core.validators import EmailAddress, Username, not_in_blacklist
from organizations.schemas import OrganizationOut

NewUsername = Annotated[Username, AfterValidator(not_in_blacklist)]


class UserOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str
    name: str | None = None
    # Private fields; only filled in for the user themself or an admin.
    id: int | None = None
    email: str | None = None
    exp_features: str | None = None
    orgs: list[str] = Field(default_factory=list)
    org_roles: dict[str, str] = Field(default_factory=dict, alias="orgRoles")
    sys_admin: bool = Field(default=False, alias="sysAdmin")


class CreateUser(BaseModel):
    username: NewUsername = Field(..., min_length=3)
    email: EmailAddress
    name: str | None = None
    org: str | None = None
    exp_features: str | None = None


class UpdateUser(BaseModel):
    name: str | None = None
    email: EmailAddress | None = None
    exp_features: str | None = None

    def is_empty(self) -> bool:
        return self.name is None and self.email is None and self.exp_features is None


class OwnerProfile(BaseModel):
    owner_type: Literal["users", "organizations"]
    user: UserOut | None = None
    org: OrganizationOut | None = None


class AccessTokenOut(BaseModel):
    name: str
    prefix: str
    created_at: datetime | None = None
    last_used_at: datetime | None = None
    expires_at: datetime | None = None


class AccessTokenCreated(AccessTokenOut):
    # The full `<prefix>.<key>` token. Returned once, never stored.
    key: str


class CreateAccessToken(BaseModel):
    name: str = Field(..., min_length=1)
    expires_at: datetime | None = None


class RevokeAccessToken(BaseModel):
    prefix: str = Field(..., min_length=1)
    name: str | None = None
