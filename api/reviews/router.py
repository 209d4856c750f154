"""
Model review endpoints.

`POST /models/reviews` creates a model and opens a review on it from a
single multipart form. `POST /{username}/models/{model}/reviews` reviews an
existing model.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from auth.dependencies import require_user
from auth.schemas import User
from core import db, handlers, uploads
from core.binding import Binder, get_binder
from core.db import Transaction, get_transaction
from core.errors import ApiError, ErrorCode
from core.params import read_name
from core.services import Services, get_services
from core.settings import Settings, get_settings
from models.router import create_model_from_form

from . import schemas

logger = logging.getLogger(__name__)

router = APIRouter()

model_writer = handlers.owner_and_name("model", require_user=True)


def _check_branch(payload: schemas.CreateModelReview) -> None:
    if not payload.branch:
        raise ApiError(ErrorCode.MISSING_FIELD, extra=["Missing branch field"])


@router.get("/models/reviews")
async def review_list(
    ctx: handlers.SearchContext = Depends(handlers.search_context),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.ModelReview]:
    items, page = await services.reviews.review_list(
        tx,
        ctx.pagination,
        owner=ctx.owner,
        order=ctx.order,
        search=ctx.search,
        model=None,
        user=ctx.user,
    )
    return ctx.page(items, page)


@router.post("/models/reviews")
async def review_create_with_model(
    request: Request,
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
    settings: Settings = Depends(get_settings),
) -> schemas.ModelReview:
    async with uploads.read_form(request, settings) as form:
        # Checked before the model is staged so a bad review leaves nothing behind.
        payload = binder.bind_form(schemas.CreateModelReview, form)
        _check_branch(payload)
        model = await create_model_from_form(
            form, tx=tx, services=services, binder=binder, settings=settings, user=user
        )

    review = await services.reviews.create_review(tx, payload, model, user)
    await handlers.commit_created(tx, model.location)
    logger.info("Model review opened: model=%s/%s title=%s", model.owner, model.name, review.title)
    return review


@router.get("/{username}/models/{model}/reviews")
async def model_review_list(
    request: Request,
    ctx: handlers.SearchContext = Depends(handlers.search_context),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.ModelReview]:
    name = read_name(request, "model")
    try:
        model = await services.models.get_model(tx, ctx.owner, name, ctx.user)
    except ApiError as exc:
        raise ApiError(ErrorCode.NAME_NOT_FOUND, extra=[name], base=exc) from exc

    items, page = await services.reviews.review_list(
        tx,
        ctx.pagination,
        owner=ctx.owner,
        order=ctx.order,
        search=ctx.search,
        model=model,
        user=ctx.user,
    )
    return ctx.page(items, page)


@router.post("/{username}/models/{model}/reviews")
async def model_review_create(
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(model_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.ModelReview:
    payload = await binder.parse_struct(schemas.CreateModelReview, request, is_form=True)
    _check_branch(payload)
    try:
        model = await services.models.get_model(tx, ctx.owner, ctx.name, ctx.user)
    except ApiError as exc:
        raise ApiError(ErrorCode.UNEXPECTED, base=exc) from exc

    review = await services.reviews.create_review(tx, payload, model, ctx.user)
    await db.commit(tx, ErrorCode.DB_SAVE)
    logger.info("Model review opened: model=%s/%s title=%s", model.owner, model.name, review.title)
    return review
