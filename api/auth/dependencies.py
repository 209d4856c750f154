"""
Auth dependencies for FastAPI routes.

- `optional_user`: public routes. Anonymous callers get `None`; a bad
  private token is still rejected.
- `require_user`: routes that need a caller.
- `require_identity`: a valid bearer JWT, whether or not a user exists for it.
- `require_jwt_user`: like `require_user` but refuses personal access tokens.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import Depends, Header

from core.db import Transaction, get_transaction
from core.errors import ApiError, ErrorCode
from core.services import Services, get_services
from core.settings import Settings, get_settings

from . import security, service
from .schemas import User


async def get_auth_result(
    private_token: str | None = Header(default=None, alias="Private-Token"),
    authorization: str | None = Header(default=None),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    settings: Settings = Depends(get_settings),
) -> service.AuthResult:
    return await service.resolve_user(
        tx,
        services.users,
        settings,
        private_token=private_token,
        authorization=authorization,
    )


def _current_user(*, required: bool) -> Callable[..., Awaitable[User | None]]:
    async def dependency(result: service.AuthResult = Depends(get_auth_result)) -> User | None:
        if result.found:
            return result.user
        if required or not result.anonymous:
            raise result.error or ApiError(ErrorCode.UNAUTHORIZED)
        return None

    return dependency


optional_user = _current_user(required=False)
require_user = _current_user(required=True)


async def require_identity(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Identity (`sub`) of a valid bearer JWT. No user record is needed, so
    this is what account sign-up depends on.
    """
    try:
        return security.decode_identity_token(security.extract_bearer_token(authorization), settings)
    except security.AuthSecurityError as exc:
        raise ApiError(ErrorCode.AUTH_JWT_INVALID, base=exc) from exc


async def require_jwt_user(
    private_token: str | None = Header(default=None, alias="Private-Token"),
    user: User = Depends(require_user),
) -> User:
    # Access tokens may not be used to manage access tokens.
    if private_token:
        raise ApiError(ErrorCode.UNAUTHORIZED, extra=["A bearer token is required"])
    return user
