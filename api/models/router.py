"""
Model endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse
from starlette.datastructures import FormData

from asset_collections.schemas import Collection, NameOwnerPair
from auth.dependencies import require_user
from auth.schemas import User
from core import db, files, handlers, transfer, uploads
from core.binding import Binder, get_binder
from core.db import Transaction, get_transaction
from core.errors import ApiError, ErrorCode
from core.pagination import PaginationRequest, pagination_request, write_pagination_headers
from core.params import check_owner
from core.services import Services, get_services
from core.settings import Settings, get_settings

from . import schemas

logger = logging.getLogger(__name__)

router = APIRouter()

model_reader = handlers.owner_and_name("model", require_user=False)
model_writer = handlers.owner_and_name("model", require_user=True)
likes_page = handlers.paginated(require_user=False)


@router.get("/models")
@router.get("/{username}/models")
async def model_list(
    request: Request,
    ctx: handlers.SearchContext = Depends(handlers.search_context),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.Model]:
    categories = []
    for slug in request.query_params.getlist("category"):
        category = await services.categories.get_by_slug(tx, slug)
        if category is not None:
            categories.append(category)

    items, page = await services.models.model_list(
        tx,
        ctx.pagination,
        owner=ctx.owner,
        order=ctx.order,
        search=ctx.search,
        liked_by=None,
        user=ctx.user,
        categories=categories,
    )
    return ctx.page(items, page)


@router.get("/{username}/likes/models")
async def model_like_list(
    username: str,
    ctx: handlers.PageContext = Depends(likes_page),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.Model]:
    liked_by = await services.users.get_user_by_username(tx, username)
    if liked_by is None:
        raise ApiError(ErrorCode.USER_UNKNOWN, extra=[username])

    items, page = await services.models.model_list(
        tx,
        ctx.pagination,
        owner=None,
        order="",
        search="",
        liked_by=liked_by,
        user=ctx.user,
    )
    return ctx.page(items, page)


async def create_model_from_form(
    form: FormData,
    *,
    tx: Transaction,
    services: Services,
    binder: Binder,
    settings: Settings,
    user: User,
) -> schemas.Model:
    """
    Bind `CreateModel` from a parsed multipart form, stage its files and ask
    the service to create the model. The caller commits.
    """
    payload = binder.bind_form(schemas.CreateModel, form)
    owner = user.username
    if payload.owner:
        owner = await check_owner(tx, services.users, payload.owner)

    async with uploads.staged_upload(
        form, prefix="model", flatten=True, max_bytes=settings.max_upload_bytes
    ) as files_dir:
        return await services.models.create_model(
            tx,
            payload,
            owner=owner,
            files_dir=files_dir,
            metadata=uploads.parse_metadata(form),
            user=user,
        )


@router.post("/models")
async def model_create(
    request: Request,
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
    settings: Settings = Depends(get_settings),
) -> schemas.Model:
    async with uploads.read_form(request, settings) as form:
        model = await create_model_from_form(
            form, tx=tx, services=services, binder=binder, settings=settings, user=user
        )

    await handlers.commit_created(tx, model.location)
    logger.info(
        "A new model has been created: name=%s owner=%s creator=%s uuid=%s",
        model.name,
        model.owner,
        model.creator,
        model.uuid,
    )
    return model


@router.get("/{username}/models/{model}")
async def model_index(
    response: Response,
    ctx: handlers.OwnerNameContext = Depends(model_reader),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.Model:
    model = await services.models.get_model(tx, ctx.owner, ctx.name, ctx.user)
    files.write_resource_version_header(response, model.version)
    return model


@router.patch("/{username}/models/{model}")
async def model_update(
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(model_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
    settings: Settings = Depends(get_settings),
) -> schemas.Model:
    async with uploads.read_form(request, settings) as form:
        payload = binder.bind_form(schemas.UpdateModel, form)
        metadata = uploads.parse_metadata(form)
        if payload.is_empty() and metadata is None and not uploads.get_request_files(form):
            raise ApiError(ErrorCode.FORM_INVALID_VALUE, extra=["Nothing to update"])

        async with uploads.staged_upload(
            form,
            prefix="model",
            flatten=True,
            max_bytes=settings.max_upload_bytes,
            required=False,
        ) as files_dir:
            model = await services.models.update_model(
                tx,
                ctx.owner,
                ctx.name,
                payload,
                files_dir=files_dir,
                metadata=metadata,
                user=ctx.user,
            )

    await db.commit(tx, ErrorCode.DB_SAVE)
    logger.info("Model has been updated: name=%s owner=%s version=%s", model.name, model.owner, model.version)
    return model


@router.delete("/{username}/models/{model}")
@handlers.no_result
async def model_remove(
    ctx: handlers.OwnerNameContext = Depends(model_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> None:
    model = await services.models.get_model(tx, ctx.owner, ctx.name, ctx.user)
    await services.models.remove_model(tx, ctx.owner, ctx.name, ctx.user)
    await services.collections.remove_asset_from_all(tx, model, transfer.AssetKind.MODEL)
    await db.commit(tx, ErrorCode.DB_DELETE)
    logger.info("Model has been removed: name=%s owner=%s", ctx.name, ctx.owner)


@router.post("/{username}/models/{model}/likes")
async def model_like_create(
    ctx: handlers.OwnerNameContext = Depends(model_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> PlainTextResponse:
    count = await services.models.create_like(tx, ctx.owner, ctx.name, ctx.user)
    await db.commit(tx, ErrorCode.DB_SAVE)
    return PlainTextResponse(str(count))


@router.delete("/{username}/models/{model}/likes")
async def model_like_remove(
    ctx: handlers.OwnerNameContext = Depends(model_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> PlainTextResponse:
    count = await services.models.remove_like(tx, ctx.owner, ctx.name, ctx.user)
    await db.commit(tx, ErrorCode.DB_DELETE)
    return PlainTextResponse(str(count))


@router.post("/{username}/models/{model}/clone")
async def model_clone(
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(model_reader),
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
    settings: Settings = Depends(get_settings),
) -> schemas.Model:
    async with uploads.read_form(request, settings) as form:
        payload = binder.bind_form(schemas.CloneModel, form)
    if payload.owner:
        await check_owner(tx, services.users, payload.owner)

    clone = await services.models.clone_model(tx, ctx.owner, ctx.name, payload, user)
    await handlers.commit_created(tx, clone.location)
    logger.info("Model %s/%s cloned as %s/%s", ctx.owner, ctx.name, clone.owner, clone.name)
    return clone


@router.post("/{username}/models/{model}/report")
@handlers.no_result
async def model_report(
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(model_reader),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> None:
    payload = await binder.parse_struct(schemas.ReportModel, request, is_form=True)
    await services.models.create_report(tx, ctx.owner, ctx.name, payload.reason)
    await db.commit(tx, ErrorCode.DB_SAVE)


@router.post("/{username}/models/{model}/transfer")
async def model_transfer(
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(model_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.Model:
    request_data = await transfer.process_transfer_request(
        request,
        tx,
        ctx.owner,
        binder=binder,
        users=services.users,
        permissions=services.permissions,
    )

    try:
        model = await services.models.get_model(tx, ctx.owner, ctx.name, ctx.user)
    except ApiError as exc:
        raise ApiError(ErrorCode.NAME_NOT_FOUND, extra=[f"Model [{ctx.name}] not found"], base=exc) from exc

    moved = await transfer.move_resource(
        tx,
        model,
        services.models.move,
        services.permissions,
        ctx.owner,
        request_data.dest_owner,
    )
    await db.commit(tx, ErrorCode.DB_SAVE)
    logger.info("Model %s transferred from %s to %s", model.uuid, ctx.owner, request_data.dest_owner)
    return moved


@router.get("/{username}/models/{model}/collections")
async def model_collections(
    request: Request,
    response: Response,
    ctx: handlers.OwnerNameContext = Depends(model_reader),
    pagination: PaginationRequest = Depends(pagination_request),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[Collection]:
    asset = NameOwnerPair.model_construct(name=ctx.name, owner=ctx.owner)
    items, page = await services.collections.associated_collections(
        tx, pagination, asset, transfer.AssetKind.MODEL, ctx.user
    )
    write_pagination_headers(response, request, page)
    return items


@router.get("/{username}/models/{model}/{version}/files")
async def model_file_tree(
    version: str,
    response: Response,
    ctx: handlers.OwnerNameContext = Depends(model_reader),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> files.FileTree:
    tree = await services.models.file_tree(tx, ctx.owner, ctx.name, version, ctx.user)
    files.write_resource_version_header(response, tree.version)
    return tree


@router.get("/{username}/models/{model}/{version}/files/{path:path}")
async def model_file_download(
    version: str,
    path: str,
    ctx: handlers.OwnerNameContext = Depends(model_reader),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> Response:
    return await files.individual_file_download(
        services.models, tx, ctx.owner, ctx.name, version, path, ctx.user
    )


@router.get("/{username}/models/{model}/{version}/{filename}.zip")
async def model_zip(
    version: str,
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(model_reader),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> Response:
    download = await services.models.download_zip(
        tx, ctx.owner, ctx.name, version, ctx.user, request.headers.get("user-agent")
    )
    await db.commit(tx, ErrorCode.ZIP_NOT_AVAILABLE)
    return files.serve_file_or_link(request, "model", download)
