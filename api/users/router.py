"""
User account endpoints: sign-up, login check, profiles and personal access
tokens.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from auth import security
from auth.dependencies import require_identity, require_jwt_user, require_user
from auth.schemas import User
from core import db, handlers
from core.binding import Binder, get_binder
from core.db import Transaction, get_transaction
from core.errors import ApiError, ErrorCode
from core.services import Services, get_services
from core.settings import Settings, get_settings

from . import schemas

logger = logging.getLogger(__name__)

router = APIRouter()

user_reader = handlers.named("username", require_user=False)
user_writer = handlers.named("username", require_user=True)
private_page = handlers.paginated(require_user=True)


async def _check_self(tx: Transaction, services: Services, username: str, caller: User) -> User:
    """
    Load the user named in the path and make sure it is the caller.
    """
    target = await services.users.get_user_by_username(tx, username)
    if target is None:
        raise ApiError(ErrorCode.USER_UNKNOWN, extra=[username])
    if target.id != caller.id:
        raise ApiError(ErrorCode.UNAUTHORIZED)
    return target


@router.get("/login")
async def login(
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.UserOut:
    return await services.accounts.get_user(tx, user.username, user)


@router.get("/users")
async def user_list(
    ctx: handlers.PageContext = Depends(private_page),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.UserOut]:
    if not services.permissions.is_system_admin(ctx.user.username):
        raise ApiError(ErrorCode.UNAUTHORIZED)
    items, page = await services.accounts.user_list(tx, ctx.pagination, ctx.user)
    return ctx.page(items, page)


@router.post("/users")
async def user_create(
    request: Request,
    identity: str = Depends(require_identity),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.UserOut:
    payload = await binder.parse_struct(schemas.CreateUser, request, is_form=False)
    user = await services.accounts.create_user(tx, payload, identity)
    await db.commit(tx, ErrorCode.DB_SAVE)
    logger.info("User created: username=%s", user.username)
    return user


@router.get("/users/{username}")
async def user_index(
    ctx: handlers.NameContext = Depends(user_reader),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.UserOut:
    return await services.accounts.get_user(tx, ctx.name, ctx.user)


@router.patch("/users/{username}")
async def user_update(
    request: Request,
    ctx: handlers.NameContext = Depends(user_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.UserOut:
    payload = await binder.parse_struct(schemas.UpdateUser, request, is_form=False)
    if payload.is_empty():
        raise ApiError(ErrorCode.FORM_INVALID_VALUE, extra=["Nothing to update"])

    user = await services.accounts.update_user(tx, ctx.name, payload, ctx.user)
    await db.commit(tx, ErrorCode.DB_SAVE)
    return user


@router.delete("/users/{username}")
async def user_remove(
    ctx: handlers.NameContext = Depends(user_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.UserOut:
    user = await services.accounts.remove_user(tx, ctx.name, ctx.user)
    await db.commit(tx, ErrorCode.DB_DELETE)
    logger.info("User removed: username=%s by=%s", ctx.name, ctx.user.username)
    return user


@router.get("/profile/{username}")
async def owner_profile(
    ctx: handlers.NameContext = Depends(user_reader),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.OwnerProfile:
    return await services.accounts.owner_profile(tx, ctx.name, ctx.user)


# Personal access tokens


@router.get("/users/{username}/access-tokens")
async def access_token_list(
    username: str,
    ctx: handlers.PageContext = Depends(private_page),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.AccessTokenOut]:
    user = await _check_self(tx, services, username, ctx.user)
    items, page = await services.accounts.access_tokens(tx, ctx.pagination, user)
    return ctx.page(items, page)


@router.post("/users/{username}/access-tokens")
async def access_token_create(
    username: str,
    request: Request,
    caller: User = Depends(require_jwt_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
    settings: Settings = Depends(get_settings),
) -> schemas.AccessTokenCreated:
    user = await _check_self(tx, services, username, caller)
    payload = await binder.parse_struct(schemas.CreateAccessToken, request, is_form=False)

    token, prefix, key_hash = security.build_access_token(rounds=settings.access_token_rounds)
    stored = await services.accounts.create_access_token(tx, user, payload, prefix=prefix, key_hash=key_hash)
    await db.commit(tx, ErrorCode.DB_SAVE)
    logger.info("Access token created: user=%s name=%s prefix=%s", user.username, stored.name, prefix)
    return schemas.AccessTokenCreated(**stored.model_dump(), key=token)


@router.post("/users/{username}/access-tokens/revoke")
async def access_token_revoke(
    username: str,
    request: Request,
    caller: User = Depends(require_jwt_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.AccessTokenOut:
    user = await _check_self(tx, services, username, caller)
    payload = await binder.parse_struct(schemas.RevokeAccessToken, request, is_form=False)
    revoked = await services.accounts.revoke_access_token(tx, user, payload)
    await db.commit(tx, ErrorCode.DB_DELETE)
    logger.info("Access token revoked: user=%s prefix=%s", user.username, revoked.prefix)
    return revoked
