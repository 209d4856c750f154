"""
Category endpoints. Listing is public; changes are reserved to system
administrators.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from auth.dependencies import require_user
from auth.schemas import User
from core import db
from core.binding import Binder, get_binder
from core.db import Transaction, get_transaction
from core.errors import ApiError, ErrorCode
from core.services import Services, get_services
from core.validators import is_slug

from . import schemas

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_admin(services: Services, user: User) -> None:
    if not services.permissions.is_system_admin(user.username):
        raise ApiError(ErrorCode.UNAUTHORIZED)


def _check_slug(slug: str) -> str:
    if not is_slug(slug):
        raise ApiError(ErrorCode.ID_NOT_IN_REQUEST, extra=[slug])
    return slug


@router.get("/categories")
async def category_list(
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.Category]:
    return await services.categories.list_categories(tx)


@router.post("/categories")
async def category_create(
    request: Request,
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.Category:
    payload = await binder.parse_struct(schemas.CreateCategory, request, is_form=False)
    _check_admin(services, user)
    if payload.slug is not None:
        _check_slug(payload.slug)

    category = await services.categories.create(tx, payload)
    await db.commit(tx, ErrorCode.DB_SAVE)
    logger.info("Category created: %s by %s", category.slug, user.username)
    return category


@router.patch("/categories/{slug}")
async def category_update(
    slug: str,
    request: Request,
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.Category:
    _check_slug(slug)
    payload = await binder.parse_struct(schemas.UpdateCategory, request, is_form=False)
    _check_admin(services, user)
    if payload.slug is not None:
        _check_slug(payload.slug)

    category = await services.categories.update(tx, slug, payload)
    await db.commit(tx, ErrorCode.DB_SAVE)
    return category


@router.delete("/categories/{slug}")
async def category_delete(
    slug: str,
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.Category:
    _check_slug(slug)
    _check_admin(services, user)

    category = await services.categories.delete(tx, slug)
    await db.commit(tx, ErrorCode.DB_DELETE)
    logger.info("Category deleted: %s by %s", slug, user.username)
    return category
