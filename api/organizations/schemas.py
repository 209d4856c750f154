"""
Pydantic schemas for organization, member and team endpoints.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from core.validators import EmailAddress, OwnerName, ParticipantName, Username


class OrganizationOut(BaseModel):
    name: str
    description: str | None = None
    # Only filled in for members of the organization.
    email: str | None = None
    private: bool = False


class CreateOrganization(BaseModel):
    name: OwnerName = Field(..., min_length=3)
    email: EmailAddress | None = None
    description: str = ""


class UpdateOrganization(BaseModel):
    email: EmailAddress | None = None
    description: str | None = None

    def is_empty(self) -> bool:
        return self.email is None and self.description is None


class Member(BaseModel):
    username: str
    name: str | None = None
    org_role: str | None = None


class AddMember(BaseModel):
    username: Username
    role: Literal["owner", "admin", "member"]


class Team(BaseModel):
    name: str
    description: str | None = None
    visible: bool = False
    usernames: list[str] = Field(default_factory=list)


class CreateTeam(BaseModel):
    name: ParticipantName = Field(..., min_length=1)
    visible: bool
    description: str | None = None


class UpdateTeam(BaseModel):
    visible: bool | None = None
    new_users: list[str] = Field(default_factory=list)
    rm_users: list[str] = Field(default_factory=list)
    description: str | None = None
