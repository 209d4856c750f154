"""
Identity persistence: users, organizations, unique owner names and personal
access tokens.

Handlers only see the `UserStore` protocol; `PostgresUserStore` is the SQL
implementation used in deployments.
"""

from __future__ import annotations

from typing import Protocol

from core.db import Transaction

from .schemas import AccessToken, Organization, User

_USER_COLUMNS = "id, identity, username, name, email, org_name, exp_features, created_at"


class UserStore(Protocol):
    async def get_user_by_id(self, tx: Transaction, user_id: int) -> User | None: ...

    async def get_user_by_identity(self, tx: Transaction, identity: str) -> User | None: ...

    async def get_user_by_username(
        self, tx: Transaction, username: str, *, include_deleted: bool = False
    ) -> User | None: ...

    async def get_access_token(self, tx: Transaction, prefix: str) -> AccessToken | None: ...

    async def get_owner_name(
        self, tx: Transaction, name: str, *, include_deleted: bool = True
    ) -> str | None: ...

    async def get_organization(
        self, tx: Transaction, name: str, *, include_deleted: bool = False
    ) -> Organization | None: ...


def _deleted_clause(include_deleted: bool) -> str:
    return "" if include_deleted else " AND deleted_at IS NULL"


class PostgresUserStore:
    async def get_user_by_id(self, tx: Transaction, user_id: int) -> User | None:
        row = await tx.fetch_one(
            f"""
            SELECT {_USER_COLUMNS}
            FROM users
            WHERE id = $1
              AND deleted_at IS NULL
            """,
            user_id,
        )
        return User.model_validate(row) if row is not None else None

    async def get_user_by_identity(self, tx: Transaction, identity: str) -> User | None:
        row = await tx.fetch_one(
            f"""
            SELECT {_USER_COLUMNS}
            FROM users
            WHERE identity = $1
              AND deleted_at IS NULL
            """,
            identity,
        )
        return User.model_validate(row) if row is not None else None

    async def get_user_by_username(
        self, tx: Transaction, username: str, *, include_deleted: bool = False
    ) -> User | None:
        row = await tx.fetch_one(
            f"""
            SELECT {_USER_COLUMNS}
            FROM users
            WHERE username = $1{_deleted_clause(include_deleted)}
            """,
            username,
        )
        return User.model_validate(row) if row is not None else None

    async def get_access_token(self, tx: Transaction, prefix: str) -> AccessToken | None:
        row = await tx.fetch_one(
            """
            SELECT id, user_id, name, prefix, key, expires AS expires_at,
                   last_used AS last_used_at, created_at
            FROM access_tokens
            WHERE prefix = $1
            """,
            prefix,
        )
        return AccessToken.model_validate(row) if row is not None else None

    async def get_owner_name(
        self, tx: Transaction, name: str, *, include_deleted: bool = True
    ) -> str | None:
        row = await tx.fetch_one(
            f"""
            SELECT name
            FROM unique_owners
            WHERE name = $1{_deleted_clause(include_deleted)}
            """,
            name,
        )
        return str(row["name"]) if row is not None else None

    async def get_organization(
        self, tx: Transaction, name: str, *, include_deleted: bool = False
    ) -> Organization | None:
        row = await tx.fetch_one(
            f"""
            SELECT id, name, email, description, creator, COALESCE(private, false) AS private
            FROM organizations
            WHERE name = $1{_deleted_clause(include_deleted)}
            """,
            name,
        )
        return Organization.model_validate(row) if row is not None else None
