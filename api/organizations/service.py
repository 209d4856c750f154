"""
Organization collaborator interface.

Membership roles and the permission rules behind them are enforced by the
implementation; it raises `ApiError(UNAUTHORIZED)` when the caller may not
act on the organization.
"""

from __future__ import annotations

from typing import Protocol

from auth.schemas import User
from core.db import Transaction
from core.pagination import PaginationRequest, PaginationResult

from .schemas import (
    AddMember,
    CreateOrganization,
    CreateTeam,
    Member,
    OrganizationOut,
    Team,
    UpdateOrganization,
    UpdateTeam,
)


class OrganizationService(Protocol):
    async def organization_list(
        self, tx: Transaction, pagination: PaginationRequest, user: User | None
    ) -> tuple[list[OrganizationOut], PaginationResult]: ...

    async def get_organization(self, tx: Transaction, name: str, user: User | None) -> OrganizationOut: ...

    async def create_organization(
        self, tx: Transaction, payload: CreateOrganization, user: User
    ) -> OrganizationOut: ...

    async def update_organization(
        self, tx: Transaction, name: str, payload: UpdateOrganization, user: User
    ) -> OrganizationOut: ...

    async def remove_organization(self, tx: Transaction, name: str, user: User) -> OrganizationOut: ...

    async def members(
        self, tx: Transaction, pagination: PaginationRequest, name: str, user: User | None
    ) -> tuple[list[Member], PaginationResult]: ...

    async def add_member(self, tx: Transaction, name: str, member: AddMember, user: User) -> Member: ...

    async def remove_member(self, tx: Transaction, name: str, username: str, user: User) -> Member: ...

    async def teams(
        self, tx: Transaction, pagination: PaginationRequest, name: str, user: User | None
    ) -> tuple[list[Team], PaginationResult]: ...

    async def get_team(self, tx: Transaction, name: str, team: str, user: User) -> Team: ...

    async def create_team(self, tx: Transaction, name: str, payload: CreateTeam, user: User) -> Team: ...

    async def update_team(
        self, tx: Transaction, name: str, team: str, payload: UpdateTeam, user: User
    ) -> Team: ...

    async def remove_team(self, tx: Transaction, name: str, team: str, user: User) -> Team: ...
