"""
Auth security helpers.

Two credential kinds are understood:
- bearer JWTs issued by the identity provider; the `sub` claim is the
  caller's identity.
- personal access tokens, `<prefix>.<key>`. Only the prefix is stored in
  clear; the key is stored as a bcrypt hash.
"""

from __future__ import annotations

import secrets
import time
from typing import Any

import bcrypt
import jwt

from core.settings import Settings

ACCESS_TOKEN_SEPARATOR = "."


class AuthSecurityError(RuntimeError):
    pass


def now_epoch_s() -> int:
    return int(time.time())


def extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise AuthSecurityError("Missing Authorization header.")

    parts = raw.split(" ", 1)
    if len(parts) != 2:
        raise AuthSecurityError("Invalid Authorization header format.")

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise AuthSecurityError("Authorization must be: Bearer <token>.")
    return token


def decode_identity_token(token: str, settings: Settings) -> str:
    """
    Validate a bearer JWT and return its identity (`sub`) claim.
    """
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Identity token is empty.")

    options: dict[str, Any] = {"verify_aud": settings.jwt_audience is not None}
    try:
        payload = jwt.decode(
            raw,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options=options,
        )
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid identity token.") from exc

    identity = str(payload.get("sub") or "").strip()
    if not identity:
        raise AuthSecurityError("Identity token has no subject.")
    return identity


def build_identity_token(identity: str, settings: Settings, *, ttl_seconds: int = 3600) -> str:
    issued_at = now_epoch_s()
    payload: dict[str, Any] = {
        "sub": identity,
        "iat": issued_at,
        "exp": issued_at + ttl_seconds,
    }
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def split_access_token(token: str) -> tuple[str, str]:
    prefix, sep, key = (token or "").strip().partition(ACCESS_TOKEN_SEPARATOR)
    if not sep or not prefix or not key:
        raise AuthSecurityError("Malformed access token.")
    return prefix, key


def hash_access_key(key: str, *, rounds: int = 12) -> str:
    raw = (key or "").encode("utf-8")
    if not raw:
        raise AuthSecurityError("Access token key is empty.")
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_access_key(key: str, key_hash: str) -> bool:
    raw = (key or "").encode("utf-8")
    hashed = (key_hash or "").encode("utf-8")
    if not raw or not hashed:
        return False
    try:
        return bcrypt.checkpw(raw, hashed)
    except ValueError:
        return False


def build_access_token(*, rounds: int = 12) -> tuple[str, str, str]:
    """
    Mint a new personal access token.

    Returns `(token, prefix, key_hash)`. The full token is shown to its owner
    once; only the prefix and the hash are persisted.
    """
    prefix = secrets.token_hex(4)
    key = secrets.token_urlsafe(32)
    return f"{prefix}{ACCESS_TOKEN_SEPARATOR}{key}", prefix, hash_access_key(key, rounds=rounds)
