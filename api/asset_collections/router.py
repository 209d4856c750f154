"""
Collection endpoints, including membership of models and worlds.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response

from auth.dependencies import require_user
from auth.schemas import User
from core import db, files, handlers, transfer, uploads
from core.binding import Binder, get_binder
from core.db import Transaction, get_transaction
from core.errors import ApiError, ErrorCode
from core.pagination import PaginationRequest, pagination_request, write_pagination_headers
from core.params import check_owner, read_bool_query
from core.services import Services, get_services
from core.settings import Settings, get_settings
from core.transfer import AssetKind

from . import schemas

logger = logging.getLogger(__name__)

router = APIRouter()

collection_reader = handlers.owner_and_name("collection", require_user=False)
collection_writer = handlers.owner_and_name("collection", require_user=True)

_ASSET_SEGMENTS = {"models": AssetKind.MODEL, "worlds": AssetKind.WORLD}


def _asset_kind(segment: str) -> AssetKind:
    kind = _ASSET_SEGMENTS.get(segment)
    if kind is None:
        raise ApiError(ErrorCode.NAME_WRONG_FORMAT, extra=[segment])
    return kind


@router.get("/collections")
@router.get("/{username}/collections")
async def collection_list(
    request: Request,
    ctx: handlers.SearchContext = Depends(handlers.search_context),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.Collection]:
    items, page = await services.collections.collection_list(
        tx,
        ctx.pagination,
        owner=ctx.owner,
        order=ctx.order,
        search=ctx.search,
        extend=read_bool_query(request, "extend"),
        user=ctx.user,
    )
    return ctx.page(items, page)


@router.post("/collections")
async def collection_create(
    request: Request,
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.Collection:
    payload = await binder.parse_struct(schemas.CreateCollection, request, is_form=False)
    if payload.owner:
        await check_owner(tx, services.users, payload.owner)

    collection = await services.collections.create_collection(tx, payload, user)
    await handlers.commit_created(tx, collection.location)
    logger.info(
        "A new collection has been created: name=%s owner=%s creator=%s uuid=%s",
        collection.name,
        collection.owner,
        collection.creator,
        collection.uuid,
    )
    return collection


@router.get("/{username}/collections/{collection}")
async def collection_index(
    ctx: handlers.OwnerNameContext = Depends(collection_reader),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.Collection:
    return await services.collections.get_collection(tx, ctx.owner, ctx.name, ctx.user)


@router.patch("/{username}/collections/{collection}")
async def collection_update(
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(collection_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
    settings: Settings = Depends(get_settings),
) -> schemas.Collection:
    async with uploads.read_form(request, settings) as form:
        payload = binder.bind_form(schemas.UpdateCollection, form)
        if payload.is_empty() and not uploads.get_request_files(form):
            raise ApiError(ErrorCode.FORM_INVALID_VALUE, extra=["Nothing to update"])

        # Collection files (logos, banners) keep their folder layout.
        async with uploads.staged_upload(
            form,
            prefix="collection",
            flatten=False,
            max_bytes=settings.max_upload_bytes,
            required=False,
        ) as files_dir:
            collection = await services.collections.update_collection(
                tx, ctx.owner, ctx.name, payload, files_dir=files_dir, user=ctx.user
            )

    await db.commit(tx, ErrorCode.DB_SAVE)
    logger.info("Collection has been updated: name=%s owner=%s", collection.name, collection.owner)
    return collection


@router.delete("/{username}/collections/{collection}")
@handlers.no_result
async def collection_remove(
    ctx: handlers.OwnerNameContext = Depends(collection_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> None:
    await services.collections.remove_collection(tx, ctx.owner, ctx.name, ctx.user)
    await db.commit(tx, ErrorCode.DB_DELETE)


@router.post("/{username}/collections/{collection}/clone")
async def collection_clone(
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(collection_reader),
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.Collection:
    payload = await binder.parse_struct(schemas.CloneCollection, request, is_form=False)
    if payload.owner:
        await check_owner(tx, services.users, payload.owner)

    clone = await services.collections.clone_collection(tx, ctx.owner, ctx.name, payload, user)
    await handlers.commit_created(tx, clone.location)
    return clone


@router.post("/{username}/collections/{collection}/transfer")
async def collection_transfer(
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(collection_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.Collection:
    request_data = await transfer.process_transfer_request(
        request,
        tx,
        ctx.owner,
        binder=binder,
        users=services.users,
        permissions=services.permissions,
    )

    try:
        collection = await services.collections.get_collection(tx, ctx.owner, ctx.name, ctx.user)
    except ApiError as exc:
        raise ApiError(
            ErrorCode.NAME_NOT_FOUND, extra=[f"Collection [{ctx.name}] not found"], base=exc
        ) from exc

    moved = await transfer.move_resource(
        tx,
        collection,
        services.collections.move,
        services.permissions,
        ctx.owner,
        request_data.dest_owner,
    )
    await db.commit(tx, ErrorCode.DB_SAVE)
    return moved


@router.get("/{username}/collections/{collection}/{version}/files/{path:path}")
async def collection_file_download(
    version: str,
    path: str,
    ctx: handlers.OwnerNameContext = Depends(collection_reader),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> Response:
    return await files.individual_file_download(
        services.collections, tx, ctx.owner, ctx.name, version, path, ctx.user
    )


@router.get("/{username}/collections/{collection}/{assets}")
async def collection_asset_list(
    assets: str,
    request: Request,
    response: Response,
    ctx: handlers.OwnerNameContext = Depends(collection_reader),
    pagination: PaginationRequest = Depends(pagination_request),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.CollectionAsset]:
    kind = _asset_kind(assets)
    items, page = await services.collections.collection_assets(
        tx, pagination, ctx.owner, ctx.name, kind, ctx.user
    )
    write_pagination_headers(response, request, page)
    return items


@router.post("/{username}/collections/{collection}/{assets}")
@handlers.no_result
async def collection_asset_add(
    assets: str,
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(collection_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> None:
    kind = _asset_kind(assets)
    asset = await binder.parse_struct(schemas.NameOwnerPair, request, is_form=False)
    await services.collections.add_asset(tx, ctx.owner, ctx.name, asset, kind, ctx.user)
    await db.commit(tx, ErrorCode.DB_SAVE)


@router.delete("/{username}/collections/{collection}/{assets}")
@handlers.no_result
async def collection_asset_remove(
    assets: str,
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(collection_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> None:
    kind = _asset_kind(assets)
    # DELETE carries no body; the asset comes in the query string.
    asset = binder.validate_struct(
        schemas.NameOwnerPair,
        {"owner": request.query_params.get("o", ""), "name": request.query_params.get("n", "")},
    )
    await services.collections.remove_asset(tx, ctx.owner, ctx.name, asset, kind, ctx.user)
    await db.commit(tx, ErrorCode.DB_DELETE)
