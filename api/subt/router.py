"""
SubT competition endpoints, mounted under `/subt`.

Every route except the leaderboard needs an authenticated user. The
competition is always `schemas.COMPETITION`; the `{competition}` path
segment is kept for URL compatibility only.
"""

from __future__ import annotations

import logging
from enum import IntEnum

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from starlette.datastructures import UploadFile

from auth.dependencies import require_user
from auth.schemas import User
from core import db, handlers, uploads
from core.binding import Binder, get_binder
from core.db import Transaction, get_transaction
from core.errors import ApiError, ErrorCode
from core.params import is_link_requested, read_id, read_owner
from core.services import Services, get_services
from core.settings import Settings, get_settings

from . import schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subt")

public_page = handlers.paginated(require_user=False)
user_page = handlers.paginated(require_user=True)
participant = handlers.named("name", require_user=True)

_REG_STATUS = {
    "pending": schemas.RegStatus.PENDING,
    "done": schemas.RegStatus.DONE,
    "rejected": schemas.RegStatus.REJECTED,
}

_SUBMISSION_STATUS = {
    "pending": schemas.SubmissionStatus.FOR_REVIEW,
    "done": schemas.SubmissionStatus.DONE,
    "rejected": schemas.SubmissionStatus.REJECTED,
}


def _status_query(request: Request, choices: dict[str, IntEnum]) -> IntEnum:
    raw = request.query_params.get("status")
    if raw is None:
        return choices["pending"]
    try:
        return choices[raw]
    except KeyError:
        raise ApiError(ErrorCode.MISSING_FIELD, extra=[f"status:{raw}"]) from None


@router.get("/leaderboard")
async def leaderboard(
    request: Request,
    ctx: handlers.PageContext = Depends(public_page),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.LeaderboardEntry]:
    query = request.query_params
    items, page = await services.subt.leaderboard(
        tx,
        ctx.pagination,
        query.get("competition", schemas.COMPETITION),
        query.get("circuit"),
        query.get("owner"),
    )
    return ctx.page(items, page)


# Registrations


@router.get("/registrations")
async def registration_list(
    request: Request,
    ctx: handlers.PageContext = Depends(user_page),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.Registration]:
    status = _status_query(request, _REG_STATUS)
    items, page = await services.subt.registrations(
        tx, ctx.pagination, schemas.COMPETITION, status, ctx.user
    )
    return ctx.page(items, page)


@router.post("/registrations")
async def registration_create(
    request: Request,
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.Registration:
    payload = await binder.parse_struct(schemas.CreateRegistration, request, is_form=False)
    registration = await services.subt.apply(tx, schemas.COMPETITION, payload.participant, user)
    await db.commit(tx, ErrorCode.DB_SAVE)
    logger.info("New SubT registration: participant=%s creator=%s", payload.participant, user.username)
    return registration


@router.patch("/registrations/{competition}/{name}")
async def registration_resolve(
    request: Request,
    ctx: handlers.NameContext = Depends(participant),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.Registration:
    payload = await binder.parse_struct(schemas.ResolveRegistration, request, is_form=False)
    registration = await services.subt.resolve_registration(
        tx, schemas.COMPETITION, ctx.name, schemas.RegStatus(payload.resolution), ctx.user
    )
    await db.commit(tx, ErrorCode.DB_SAVE)
    return registration


@router.delete("/registrations/{competition}/{name}")
async def registration_delete(
    ctx: handlers.NameContext = Depends(participant),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.Registration:
    registration = await services.subt.delete_registration(tx, schemas.COMPETITION, ctx.name, ctx.user)
    await db.commit(tx, ErrorCode.DB_DELETE)
    return registration


# Participants


@router.get("/participants")
async def participant_list(
    ctx: handlers.PageContext = Depends(user_page),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.Participant]:
    items, page = await services.subt.participants(tx, ctx.pagination, schemas.COMPETITION, ctx.user)
    return ctx.page(items, page)


@router.delete("/participants/{competition}/{name}")
async def participant_delete(
    ctx: handlers.NameContext = Depends(participant),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.Participant:
    removed = await services.subt.delete_participant(tx, schemas.COMPETITION, ctx.name, ctx.user)
    await db.commit(tx, ErrorCode.DB_DELETE)
    return removed


# Log files


@router.get("/logfiles")
@router.get("/participants/{name}/logfiles")
async def logfile_list(
    request: Request,
    ctx: handlers.PageContext = Depends(user_page),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.LogFile]:
    status = _status_query(request, _SUBMISSION_STATUS)
    try:
        owner: str | None = await read_owner(request, tx, services.users, "name")
    except ApiError as exc:
        if exc.code is not ErrorCode.USER_NOT_IN_REQUEST:
            raise
        owner = None

    items, page = await services.logfiles.log_list(
        tx, ctx.pagination, schemas.COMPETITION, owner, status, ctx.user
    )
    return ctx.page(items, page)


@router.post("/logfiles")
async def logfile_submit(
    request: Request,
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
    settings: Settings = Depends(get_settings),
) -> schemas.LogFile:
    async with uploads.read_form(request, settings) as form:
        payload = binder.bind_form(schemas.LogSubmission, form)
        upload = form.get("file")
        if not isinstance(upload, UploadFile):
            raise ApiError(ErrorCode.FORM, extra=["Missing log file"])
        log = await services.logfiles.create_log(tx, upload, schemas.COMPETITION, payload, user)

    await db.commit(tx, ErrorCode.DB_SAVE)
    logger.info("Log file submitted: id=%s owner=%s creator=%s", log.id, log.owner, user.username)
    return log


@router.get("/logfiles/{id}")
async def logfile_index(
    request: Request,
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.LogFile:
    return await services.logfiles.get_log(tx, schemas.COMPETITION, read_id(request), user)


@router.patch("/logfiles/{id}")
async def logfile_update(
    request: Request,
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
    binder: Binder = Depends(get_binder),
) -> schemas.LogFile:
    log_id = read_id(request)
    payload = await binder.parse_struct(schemas.UpdateLogFile, request, is_form=False)
    log = await services.logfiles.update_log(tx, schemas.COMPETITION, log_id, payload, user)
    await db.commit(tx, ErrorCode.DB_SAVE)
    return log


@router.delete("/logfiles/{id}")
async def logfile_remove(
    request: Request,
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> schemas.LogFile:
    log = await services.logfiles.remove_log(tx, schemas.COMPETITION, read_id(request), user)
    await db.commit(tx, ErrorCode.DB_DELETE)
    return log


@router.get("/logfiles/{id}/file")
async def logfile_download(
    request: Request,
    user: User = Depends(require_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> Response:
    log_id = read_id(request)
    url = await services.logfiles.download_url(tx, schemas.COMPETITION, log_id, user)
    if is_link_requested(request):
        return JSONResponse(url)
    return RedirectResponse(url, status_code=307)
