"""
World endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse

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

world_reader = handlers.owner_and_name("world", require_user=False)
world_writer = handlers.owner_and_name("world", require_user=True)
likes_page = handlers.paginated(require_user=False)


@router.get("/worlds")
@router.get("/{username}/worlds")
async def world_list(
    ctx: handlers.SearchContext = Depends(handlers.search_context),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.World]:
    items, page = await services.worlds.world_list(
        tx,
        ctx.pagination,
        owner=ctx.owner,
        order=ctx.order,
        search=ctx.search,
        liked_by=None,
        user=ctx.user,
    )
    return ctx.page(items, page)


@router.get("/{username}/likes/worlds")
async def world_like_list(
    username: str,
    ctx: handlers.PageContext = Depends(likes_page),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.World]:
    liked_by = await services.users.get_user_by_username(tx, username)
    if liked_by is None:
        raise ApiError(ErrorCode.USER_UNKNOWN, extra=[username])

    items, page = await services.worlds.world_list(
        tx, ctx.pagination, owner=None, order="", search="", liked_by=liked_by, user=ctx.user
    )
    return ctx.page(items, page)


@router.post("/worlds")
async def world_create(
    request: Request,
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
    settings: Settings = Depends(get_settings),
) -> schemas.World:
    async with uploads.read_form(request, settings) as form:
        payload = binder.bind_form(schemas.CreateWorld, form)
        owner = await check_owner(tx, services.users, payload.owner) if payload.owner else user.username

        async with uploads.staged_upload(
            form, prefix="world", flatten=True, max_bytes=settings.max_upload_bytes
        ) as files_dir:
            world = await services.worlds.create_world(
                tx, payload, owner=owner, files_dir=files_dir, user=user
            )

    await handlers.commit_created(tx, world.location)
    logger.info(
        "A new world has been created: name=%s owner=%s creator=%s uuid=%s",
        world.name,
        world.owner,
        world.creator,
        world.uuid,
    )
    return world


@router.get("/{username}/worlds/{world}")
async def world_index(
    response: Response,
    ctx: handlers.OwnerNameContext = Depends(world_reader),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.World:
    world = await services.worlds.get_world(tx, ctx.owner, ctx.name, ctx.user)
    files.write_resource_version_header(response, world.version)
    return world


@router.patch("/{username}/worlds/{world}")
async def world_update(
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(world_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
    settings: Settings = Depends(get_settings),
) -> schemas.World:
    async with uploads.read_form(request, settings) as form:
        payload = binder.bind_form(schemas.UpdateWorld, form)
        if payload.is_empty() and not uploads.get_request_files(form):
            raise ApiError(ErrorCode.FORM_INVALID_VALUE, extra=["Nothing to update"])

        async with uploads.staged_upload(
            form,
            prefix="world",
            flatten=True,
            max_bytes=settings.max_upload_bytes,
            required=False,
        ) as files_dir:
            world = await services.worlds.update_world(
                tx, ctx.owner, ctx.name, payload, files_dir=files_dir, user=ctx.user
            )

    await db.commit(tx, ErrorCode.DB_SAVE)
    logger.info("World has been updated: name=%s owner=%s version=%s", world.name, world.owner, world.version)
    return world


@router.delete("/{username}/worlds/{world}")
@handlers.no_result
async def world_remove(
    ctx: handlers.OwnerNameContext = Depends(world_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> None:
    world = await services.worlds.get_world(tx, ctx.owner, ctx.name, ctx.user)
    await services.worlds.remove_world(tx, ctx.owner, ctx.name, ctx.user)
    await services.collections.remove_asset_from_all(tx, world, transfer.AssetKind.WORLD)
    await db.commit(tx, ErrorCode.DB_DELETE)


@router.post("/{username}/worlds/{world}/likes")
async def world_like_create(
    ctx: handlers.OwnerNameContext = Depends(world_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> PlainTextResponse:
    count = await services.worlds.create_like(tx, ctx.owner, ctx.name, ctx.user)
    await db.commit(tx, ErrorCode.DB_SAVE)
    return PlainTextResponse(str(count))


@router.delete("/{username}/worlds/{world}/likes")
async def world_like_remove(
    ctx: handlers.OwnerNameContext = Depends(world_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> PlainTextResponse:
    count = await services.worlds.remove_like(tx, ctx.owner, ctx.name, ctx.user)
    await db.commit(tx, ErrorCode.DB_DELETE)
    return PlainTextResponse(str(count))


@router.post("/{username}/worlds/{world}/clone")
async def world_clone(
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(world_reader),
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.World:
    payload = await binder.parse_struct(schemas.CloneWorld, request, is_form=True)
    if payload.owner:
        await check_owner(tx, services.users, payload.owner)

    clone = await services.worlds.clone_world(tx, ctx.owner, ctx.name, payload, user)
    await handlers.commit_created(tx, clone.location)
    logger.info("World %s/%s cloned as %s/%s", ctx.owner, ctx.name, clone.owner, clone.name)
    return clone


@router.post("/{username}/worlds/{world}/report")
@handlers.no_result
async def world_report(
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(world_reader),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> None:
    payload = await binder.parse_struct(schemas.ReportWorld, request, is_form=True)
    await services.worlds.create_report(tx, ctx.owner, ctx.name, payload.reason)
    await db.commit(tx, ErrorCode.DB_SAVE)


@router.post("/{username}/worlds/{world}/transfer")
async def world_transfer(
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(world_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.World:
    request_data = await transfer.process_transfer_request(
        request,
        tx,
        ctx.owner,
        binder=binder,
        users=services.users,
        permissions=services.permissions,
    )

    try:
        world = await services.worlds.get_world(tx, ctx.owner, ctx.name, ctx.user)
    except ApiError as exc:
        raise ApiError(ErrorCode.NAME_NOT_FOUND, extra=[f"World [{ctx.name}] not found"], base=exc) from exc

    moved = await transfer.move_resource(
        tx, world, services.worlds.move, services.permissions, ctx.owner, request_data.dest_owner
    )
    await db.commit(tx, ErrorCode.DB_SAVE)
    return moved


@router.get("/{username}/worlds/{world}/collections")
async def world_collections(
    request: Request,
    response: Response,
    ctx: handlers.OwnerNameContext = Depends(world_reader),
    pagination: PaginationRequest = Depends(pagination_request),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[Collection]:
    asset = NameOwnerPair.model_construct(name=ctx.name, owner=ctx.owner)
    items, page = await services.collections.associated_collections(
        tx, pagination, asset, transfer.AssetKind.WORLD, ctx.user
    )
    write_pagination_headers(response, request, page)
    return items


@router.get("/{username}/worlds/{world}/{version}/modelrefs")
async def world_model_references(
    version: str,
    request: Request,
    response: Response,
    ctx: handlers.OwnerNameContext = Depends(world_reader),
    pagination: PaginationRequest = Depends(pagination_request),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.ModelReference]:
    refs, page = await services.worlds.model_references(
        tx, pagination, ctx.owner, ctx.name, version, ctx.user
    )
    write_pagination_headers(response, request, page)
    return refs


@router.get("/{username}/worlds/{world}/{version}/files")
async def world_file_tree(
    version: str,
    response: Response,
    ctx: handlers.OwnerNameContext = Depends(world_reader),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> files.FileTree:
    tree = await services.worlds.file_tree(tx, ctx.owner, ctx.name, version, ctx.user)
    files.write_resource_version_header(response, tree.version)
    return tree


@router.get("/{username}/worlds/{world}/{version}/files/{path:path}")
async def world_file_download(
    version: str,
    path: str,
    ctx: handlers.OwnerNameContext = Depends(world_reader),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> Response:
    return await files.individual_file_download(
        services.worlds, tx, ctx.owner, ctx.name, version, path, ctx.user
    )


@router.get("/{username}/worlds/{world}/{version}/{filename}.zip")
async def world_zip(
    version: str,
    request: Request,
    ctx: handlers.OwnerNameContext = Depends(world_reader),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> Response:
    download = await services.worlds.download_zip(
        tx, ctx.owner, ctx.name, version, ctx.user, request.headers.get("user-agent")
    )
    await db.commit(tx, ErrorCode.ZIP_NOT_AVAILABLE)
    return files.serve_file_or_link(request, "world", download)
