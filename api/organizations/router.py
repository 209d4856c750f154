"""
Organization endpoints: the organization itself, its members and its teams.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from auth.dependencies import require_user
from auth.schemas import User
from core import db, handlers
from core.binding import Binder, get_binder
from core.db import Transaction, get_transaction
from core.errors import ApiError, ErrorCode
from core.services import Services, get_services

from . import schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations")

org_reader = handlers.named("name", require_user=False)
org_writer = handlers.named("name", require_user=True)
public_page = handlers.paginated(require_user=False)


@router.get("")
async def organization_list(
    ctx: handlers.PageContext = Depends(public_page),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.OrganizationOut]:
    items, page = await services.organizations.organization_list(tx, ctx.pagination, ctx.user)
    return ctx.page(items, page)


@router.post("")
async def organization_create(
    request: Request,
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.OrganizationOut:
    payload = await binder.parse_struct(schemas.CreateOrganization, request, is_form=False)
    org = await services.organizations.create_organization(tx, payload, user)
    await db.commit(tx, ErrorCode.DB_SAVE)
    logger.info("Organization created: %s by %s", org.name, user.username)
    return org


@router.get("/{name}")
async def organization_index(
    ctx: handlers.NameContext = Depends(org_reader),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.OrganizationOut:
    return await services.organizations.get_organization(tx, ctx.name, ctx.user)


@router.patch("/{name}")
async def organization_update(
    request: Request,
    ctx: handlers.NameContext = Depends(org_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.OrganizationOut:
    payload = await binder.parse_struct(schemas.UpdateOrganization, request, is_form=False)
    if payload.is_empty():
        raise ApiError(ErrorCode.FORM_INVALID_VALUE, extra=["Nothing to update"])

    org = await services.organizations.update_organization(tx, ctx.name, payload, ctx.user)
    await db.commit(tx, ErrorCode.DB_SAVE)
    logger.info("Organization has been updated: name=%s description=%s", org.name, org.description)
    return org


@router.delete("/{name}")
async def organization_remove(
    ctx: handlers.NameContext = Depends(org_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.OrganizationOut:
    org = await services.organizations.remove_organization(tx, ctx.name, ctx.user)
    await db.commit(tx, ErrorCode.DB_DELETE)
    return org


# Members


@router.get("/{name}/users")
async def member_list(
    name: str,
    ctx: handlers.PageContext = Depends(public_page),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.Member]:
    items, page = await services.organizations.members(tx, ctx.pagination, name, ctx.user)
    return ctx.page(items, page)


@router.post("/{name}/users")
async def member_add(
    request: Request,
    ctx: handlers.NameContext = Depends(org_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.Member:
    payload = await binder.parse_struct(schemas.AddMember, request, is_form=False)
    member = await services.organizations.add_member(tx, ctx.name, payload, ctx.user)
    await db.commit(tx, ErrorCode.DB_SAVE)
    return member


@router.delete("/{name}/users/{username}")
async def member_remove(
    username: str,
    ctx: handlers.NameContext = Depends(org_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.Member:
    member = await services.organizations.remove_member(tx, ctx.name, username, ctx.user)
    await db.commit(tx, ErrorCode.DB_SAVE)
    return member


# Teams


@router.get("/{name}/teams")
async def team_list(
    name: str,
    ctx: handlers.PageContext = Depends(public_page),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.Team]:
    items, page = await services.organizations.teams(tx, ctx.pagination, name, ctx.user)
    return ctx.page(items, page)


@router.post("/{name}/teams")
async def team_create(
    request: Request,
    ctx: handlers.NameContext = Depends(org_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.Team:
    payload = await binder.parse_struct(schemas.CreateTeam, request, is_form=False)
    team = await services.organizations.create_team(tx, ctx.name, payload, ctx.user)
    await db.commit(tx, ErrorCode.DB_SAVE)
    return team


@router.get("/{name}/teams/{teamname}")
async def team_index(
    teamname: str,
    ctx: handlers.NameContext = Depends(org_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.Team:
    return await services.organizations.get_team(tx, ctx.name, teamname, ctx.user)


@router.patch("/{name}/teams/{teamname}")
async def team_update(
    teamname: str,
    request: Request,
    ctx: handlers.NameContext = Depends(org_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.Team:
    payload = await binder.parse_struct(schemas.UpdateTeam, request, is_form=False)
    team = await services.organizations.update_team(tx, ctx.name, teamname, payload, ctx.user)
    await db.commit(tx, ErrorCode.DB_SAVE)
    logger.info("Organization team has been updated: org=%s team=%s", ctx.name, teamname)
    return team


@router.delete("/{name}/teams/{teamname}")
async def team_remove(
    teamname: str,
    ctx: handlers.NameContext = Depends(org_writer),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.Team:
    team = await services.organizations.remove_team(tx, ctx.name, teamname, ctx.user)
    await db.commit(tx, ErrorCode.DB_SAVE)
    return team
