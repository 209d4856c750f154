from __future__ import annotations

import jwt
import pytest

from auth import security
from auth.service import resolve_user
from conftest import ALICE, BOB, TEST_SECRET, FakeTransaction
from core.errors import ErrorCode

pytestmark = pytest.mark.anyio


def bearer(identity: str, settings) -> str:
    return f"Bearer {security.build_identity_token(identity, settings)}"


async def resolve(users, settings, *, private_token=None, authorization=None):
    return await resolve_user(
        FakeTransaction(),
        users,
        settings,
        private_token=private_token,
        authorization=authorization,
    )


async def test_bearer_identity(users, settings):
    result = await resolve(users, settings, authorization=bearer(ALICE.identity, settings))
    assert result.found
    assert result.user == ALICE
    assert result.error is None


async def test_no_credentials_is_anonymous(users, settings):
    result = await resolve(users, settings)
    assert not result.found
    assert result.error.code is ErrorCode.AUTH_JWT_INVALID
    assert result.anonymous


async def test_bad_signature_is_anonymous(users, settings):
    forged = jwt.encode({"sub": ALICE.identity}, "another-secret", algorithm="HS256")
    result = await resolve(users, settings, authorization=f"Bearer {forged}")
    assert result.error.code is ErrorCode.AUTH_JWT_INVALID
    assert result.anonymous


async def test_unknown_identity_is_anonymous(users, settings):
    result = await resolve(users, settings, authorization=bearer("auth0|nobody", settings))
    assert not result.found
    assert result.error.code is ErrorCode.AUTH_NO_USER
    assert result.anonymous


async def test_token_without_subject(users, settings):
    token = jwt.encode({"name": "alice"}, TEST_SECRET, algorithm="HS256")
    result = await resolve(users, settings, authorization=f"Bearer {token}")
    assert result.error.code is ErrorCode.AUTH_JWT_INVALID


async def test_private_token(users, settings, alice_token):
    result = await resolve(users, settings, private_token=alice_token)
    assert result.found
    assert result.user == ALICE


async def test_private_token_resolves_same_user_twice(users, settings, alice_token):
    first = await resolve(users, settings, private_token=alice_token)
    second = await resolve(users, settings, private_token=alice_token)
    assert first.found and second.found
    assert first.user == second.user == ALICE


async def test_private_token_supersedes_bearer(users, settings, alice_token):
    result = await resolve(
        users,
        settings,
        private_token=alice_token,
        authorization=bearer(BOB.identity, settings),
    )
    assert result.user == ALICE


async def test_bad_private_token_is_fatal(users, settings, alice_token):
    prefix, _ = security.split_access_token(alice_token)
    result = await resolve(
        users,
        settings,
        private_token=f"{prefix}.wrong-key",
        authorization=bearer(ALICE.identity, settings),
    )
    assert not result.found
    assert result.error.code is ErrorCode.UNAUTHORIZED
    assert not result.anonymous


async def test_malformed_private_token(users, settings):
    result = await resolve(users, settings, private_token="no-separator")
    assert result.error.code is ErrorCode.UNAUTHORIZED


async def test_expired_private_token(users, settings, expired_token):
    result = await resolve(users, settings, private_token=expired_token)
    assert result.error.code is ErrorCode.UNAUTHORIZED


async def test_store_failure(users, settings):
    users.fail = True
    result = await resolve(users, settings, authorization=bearer(ALICE.identity, settings))
    assert result.error.code is ErrorCode.NO_DATABASE
    assert not result.anonymous


def test_access_token_roundtrip():
    token, prefix, key_hash = security.build_access_token(rounds=4)
    token_prefix, key = security.split_access_token(token)
    assert token_prefix == prefix
    assert security.verify_access_key(key, key_hash)
    assert not security.verify_access_key("other", key_hash)
