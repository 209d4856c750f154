"""
Path and query parameter extraction.

Owner, name and id values come from the route path only. A query string such
as `/models?username=alice` does not scope a listing to `alice`.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from auth.repository import UserStore

from .db import DatabaseError, Transaction
from .errors import ApiError, ErrorCode

_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})


@dataclass(frozen=True)
class ListParams:
    owner: str | None
    order: str
    search: str


def _param(request: Request, name: str) -> str | None:
    value = request.path_params.get(name)
    if value is None or value == "":
        return None
    return str(value)


async def read_owner(
    request: Request,
    tx: Transaction,
    users: UserStore,
    param: str = "username",
    *,
    include_deleted: bool = True,
) -> str:
    """
    Read an owner (user or organization) name and check that it exists.
    """
    name = _param(request, param)
    if name is None:
        raise ApiError(ErrorCode.USER_NOT_IN_REQUEST)
    return await check_owner(tx, users, name, include_deleted=include_deleted)


async def check_owner(
    tx: Transaction,
    users: UserStore,
    name: str,
    *,
    include_deleted: bool = True,
) -> str:
    try:
        owner = await users.get_owner_name(tx, name, include_deleted=include_deleted)
    except DatabaseError as exc:
        raise ApiError(ErrorCode.NO_DATABASE, base=exc) from exc
    if owner is None:
        raise ApiError(ErrorCode.USER_UNKNOWN, extra=[name])
    return owner


async def read_list_params(request: Request, tx: Transaction, users: UserStore) -> ListParams:
    try:
        owner: str | None = await read_owner(request, tx, users)
    except ApiError as exc:
        if exc.code is not ErrorCode.USER_NOT_IN_REQUEST:
            raise
        owner = None
    return ListParams(
        owner=owner,
        order=request.query_params.get("order", ""),
        search=request.query_params.get("q", ""),
    )


def read_name(request: Request, name_arg: str) -> str:
    name = _param(request, name_arg)
    if name is None:
        raise ApiError(ErrorCode.NAME_WRONG_FORMAT, extra=[name_arg])
    return name


async def read_owner_name_params(
    request: Request,
    tx: Transaction,
    users: UserStore,
    name_arg: str,
) -> tuple[str, str]:
    try:
        owner = await read_owner(request, tx, users)
    except ApiError as exc:
        if exc.code is ErrorCode.USER_NOT_IN_REQUEST:
            raise ApiError(ErrorCode.OWNER_NOT_IN_REQUEST) from exc
        raise
    return owner, read_name(request, name_arg)


def read_id(request: Request, param: str = "id") -> int:
    raw = _param(request, param)
    if raw is None or not (raw.isascii() and raw.isdigit()):
        raise ApiError(ErrorCode.ID_NOT_IN_REQUEST, extra=[raw or param])
    return int(raw)


def read_bool_query(request: Request, key: str) -> bool:
    return request.query_params.get(key, "") in _TRUE_VALUES


def is_link_requested(request: Request) -> bool:
    values = request.query_params.getlist("link")
    return bool(values) and values[0].lower() == "true"
