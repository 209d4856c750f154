"""
User account collaborator interface.

Looking a caller up by identity or token is `auth.repository.UserStore`'s
job. This service owns the account lifecycle: sign-up, profile edits,
removal and the personal access tokens a user manages for themself.
"""

from __future__ import annotations

from typing import Protocol

from auth.schemas import User
from core.db import Transaction
from core.pagination import PaginationRequest, PaginationResult

from .schemas import (
    AccessTokenOut,
    CreateAccessToken,
    CreateUser,
    OwnerProfile,
    RevokeAccessToken,
    UpdateUser,
    UserOut,
)


class AccountService(Protocol):
    async def user_list(
        self, tx: Transaction, pagination: PaginationRequest, user: User
    ) -> tuple[list[UserOut], PaginationResult]: ...

    async def create_user(self, tx: Transaction, payload: CreateUser, identity: str) -> UserOut:
        """
        Create the account for `identity`. Raises `ApiError` when the
        identity already has an account or the username is taken.
        """
        ...

    async def get_user(self, tx: Transaction, username: str, user: User | None) -> UserOut:
        """
        Private fields are only filled in when `user` is the requested user
        or a system administrator. Unknown names raise `USER_UNKNOWN`.
        """
        ...

    async def update_user(self, tx: Transaction, username: str, payload: UpdateUser, user: User) -> UserOut: ...

    async def remove_user(self, tx: Transaction, username: str, user: User) -> UserOut: ...

    async def owner_profile(self, tx: Transaction, name: str, user: User | None) -> OwnerProfile: ...

    async def access_tokens(
        self, tx: Transaction, pagination: PaginationRequest, user: User
    ) -> tuple[list[AccessTokenOut], PaginationResult]: ...

    async def create_access_token(
        self,
        tx: Transaction,
        user: User,
        payload: CreateAccessToken,
        *,
        prefix: str,
        key_hash: str,
    ) -> AccessTokenOut:
        """Persist a token minted by the handler. Only the prefix and the hash are stored."""
        ...

    async def revoke_access_token(
        self, tx: Transaction, user: User, payload: RevokeAccessToken
    ) -> AccessTokenOut: ...
