"""
Ownership transfer of models, worlds and collections to organizations.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable

from fastapi import Request
from pydantic import BaseModel, Field

from auth.repository import UserStore

from .binding import Binder
from .db import Transaction
from .errors import ApiError, ErrorCode
from .permissions import Action, Permissions, PermissionsError

logger = logging.getLogger(__name__)


class AssetKind(str, Enum):
    MODEL = "model"
    WORLD = "world"


class TransferAsset(BaseModel):
    dest_owner: str = Field(..., alias="destOwner", min_length=1)


Mover = Callable[[Transaction, Any, str], Awaitable[Any]]


async def process_transfer_request(
    request: Request,
    tx: Transaction,
    source_owner: str,
    *,
    binder: Binder,
    users: UserStore,
    permissions: Permissions,
) -> TransferAsset:
    """
    Read the transfer body and check that `source_owner` may hand the
    resource over to the destination organization.
    """
    transfer = await binder.parse_json(TransferAsset, request)

    organization = await users.get_organization(tx, transfer.dest_owner)
    if organization is None:
        raise ApiError(
            ErrorCode.NAME_NOT_FOUND,
            extra=[f"Organization [{transfer.dest_owner}] not found"],
        )

    if not permissions.is_authorized(source_owner, transfer.dest_owner, Action.WRITE):
        raise ApiError(
            ErrorCode.UNAUTHORIZED,
            extra=[f"User [{source_owner}] is not authorized"],
        )
    return transfer


async def move_resource(
    tx: Transaction,
    resource: Any,
    move: Mover,
    permissions: Permissions,
    source_owner: str,
    dest_owner: str,
) -> Any:
    """
    Move `resource` to `dest_owner` and swap read/write grants on its UUID.

    If any grant cannot be recorded the move is reverted.
    """
    moved = await move(tx, resource, dest_owner)
    uuid = str(resource.uuid)
    steps = (
        (permissions.add_permission, dest_owner, Action.READ),
        (permissions.add_permission, dest_owner, Action.WRITE),
        (permissions.remove_permission, source_owner, Action.READ),
        (permissions.remove_permission, source_owner, Action.WRITE),
    )
    for apply, subject, action in steps:
        try:
            apply(subject, uuid, action)
        except PermissionsError as exc:
            logger.error("Reverting transfer of %s to %s: %s", uuid, dest_owner, exc)
            await move(tx, moved, source_owner)
            raise ApiError(ErrorCode.UNEXPECTED, base=exc) from exc
    return moved
