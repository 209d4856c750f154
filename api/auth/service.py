"""
Caller identity resolution.

A `Private-Token` header, when present, supersedes any bearer JWT. Failing
to validate it is always fatal. Without a private token, the identity comes
from the JWT `sub` claim and is matched against the user store; those two
failures (no usable JWT, no matching user) are "anonymous" conditions that
public routes tolerate.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import NamedTuple

from core.db import DatabaseError, Transaction
from core.errors import ApiError, ErrorCode
from core.settings import Settings

from . import security
from .repository import UserStore
from .schemas import User

logger = logging.getLogger(__name__)

ANONYMOUS_CODES = frozenset({ErrorCode.AUTH_JWT_INVALID, ErrorCode.AUTH_NO_USER})


class AuthResult(NamedTuple):
    user: User | None
    found: bool
    error: ApiError | None

    @property
    def anonymous(self) -> bool:
        return self.error is not None and self.error.code in ANONYMOUS_CODES


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _failed(code: ErrorCode, base: BaseException | None = None) -> AuthResult:
    return AuthResult(user=None, found=False, error=ApiError(code, base=base))


async def _user_from_private_token(tx: Transaction, users: UserStore, token: str) -> AuthResult:
    try:
        prefix, key = security.split_access_token(token)
    except security.AuthSecurityError as exc:
        return _failed(ErrorCode.UNAUTHORIZED, exc)

    access_token = await users.get_access_token(tx, prefix)
    if access_token is None or not security.verify_access_key(key, access_token.key):
        return _failed(ErrorCode.UNAUTHORIZED)

    expires_at = access_token.expires_at
    if expires_at is not None:
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at <= _utc_now():
            return _failed(ErrorCode.UNAUTHORIZED)

    user = await users.get_user_by_id(tx, access_token.user_id)
    if user is None:
        return _failed(ErrorCode.UNAUTHORIZED)
    return AuthResult(user=user, found=True, error=None)


async def _user_from_bearer(
    tx: Transaction,
    users: UserStore,
    settings: Settings,
    authorization: str | None,
) -> AuthResult:
    try:
        identity = security.decode_identity_token(security.extract_bearer_token(authorization), settings)
    except security.AuthSecurityError as exc:
        return _failed(ErrorCode.AUTH_JWT_INVALID, exc)

    user = await users.get_user_by_identity(tx, identity)
    if user is None:
        return _failed(ErrorCode.AUTH_NO_USER)
    return AuthResult(user=user, found=True, error=None)


async def resolve_user(
    tx: Transaction,
    users: UserStore,
    settings: Settings,
    *,
    private_token: str | None,
    authorization: str | None,
) -> AuthResult:
    """
    Determine who is calling. Never raises for credential problems; the
    outcome is described by the returned `AuthResult`.
    """
    try:
        if private_token and private_token.strip():
            return await _user_from_private_token(tx, users, private_token.strip())
        return await _user_from_bearer(tx, users, settings, authorization)
    except DatabaseError as exc:
        logger.error("User store failure while resolving caller identity: %s", exc)
        return _failed(ErrorCode.NO_DATABASE, exc)
