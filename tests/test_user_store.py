from __future__ import annotations

from datetime import datetime, timezone

import pytest

from auth.repository import PostgresUserStore
from auth.schemas import AccessToken, Organization, User

pytestmark = pytest.mark.anyio


class RecordingTransaction:
    """Answers `fetch_one` with canned rows and keeps every query it saw."""

    def __init__(self, *rows) -> None:
        self.rows = list(rows)
        self.calls: list[tuple[str, tuple]] = []

    async def fetch_one(self, sql, *args):
        self.calls.append((" ".join(sql.split()), args))
        return self.rows.pop(0) if self.rows else None


USER_ROW = {
    "id": 1,
    "identity": "auth0|alice",
    "username": "alice",
    "name": "Alice",
    "email": "alice@example.com",
    "org_name": None,
    "exp_features": "",
    "created_at": datetime(2024, 1, 2, tzinfo=timezone.utc),
}


async def test_user_by_identity_skips_deleted():
    tx = RecordingTransaction(USER_ROW)

    user = await PostgresUserStore().get_user_by_identity(tx, "auth0|alice")

    assert user == User(**USER_ROW)
    sql, args = tx.calls[0]
    assert "FROM users WHERE identity = $1 AND deleted_at IS NULL" in sql
    assert args == ("auth0|alice",)


async def test_user_by_id_missing():
    tx = RecordingTransaction()

    assert await PostgresUserStore().get_user_by_id(tx, 42) is None
    assert tx.calls[0][1] == (42,)


async def test_user_by_username_deleted_filter():
    store = PostgresUserStore()
    tx = RecordingTransaction(USER_ROW, USER_ROW)

    await store.get_user_by_username(tx, "alice")
    await store.get_user_by_username(tx, "alice", include_deleted=True)

    live, any_state = (sql for sql, _ in tx.calls)
    assert live.endswith("WHERE username = $1 AND deleted_at IS NULL")
    assert any_state.endswith("WHERE username = $1")


async def test_access_token_column_aliases():
    expires = datetime(2030, 1, 1, tzinfo=timezone.utc)
    tx = RecordingTransaction(
        {
            "id": 3,
            "user_id": 1,
            "name": "ci",
            "prefix": "abcd1234",
            "key": "$2b$04$hash",
            "expires_at": expires,
            "last_used_at": None,
            "created_at": None,
        }
    )

    token = await PostgresUserStore().get_access_token(tx, "abcd1234")

    assert isinstance(token, AccessToken)
    assert (token.prefix, token.expires_at) == ("abcd1234", expires)
    sql, args = tx.calls[0]
    assert "expires AS expires_at" in sql
    assert "last_used AS last_used_at" in sql
    assert args == ("abcd1234",)


async def test_owner_name_includes_deleted_by_default():
    tx = RecordingTransaction({"name": "acme"})

    assert await PostgresUserStore().get_owner_name(tx, "acme") == "acme"
    assert tx.calls[0][0].endswith("FROM unique_owners WHERE name = $1")


async def test_owner_name_unknown():
    tx = RecordingTransaction()

    assert await PostgresUserStore().get_owner_name(tx, "ghost", include_deleted=False) is None
    assert tx.calls[0][0].endswith("AND deleted_at IS NULL")


async def test_organization_private_defaults_false():
    tx = RecordingTransaction(
        {"id": 10, "name": "acme", "email": None, "description": None, "creator": "alice", "private": False}
    )

    org = await PostgresUserStore().get_organization(tx, "acme")

    assert org == Organization(id=10, name="acme", creator="alice")
    assert "COALESCE(private, false) AS private" in tx.calls[0][0]
