"""
Collection collaborator interface.

Collections group models and worlds. Which asset table a call refers to is
given by `core.transfer.AssetKind`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

from auth.schemas import User
from core.db import Transaction
from core.files import FileContent
from core.pagination import PaginationRequest, PaginationResult
from core.transfer import AssetKind

from .schemas import (
    CloneCollection,
    Collection,
    CollectionAsset,
    CreateCollection,
    NameOwnerPair,
    UpdateCollection,
)


class CollectionService(Protocol):
    async def collection_list(
        self,
        tx: Transaction,
        pagination: PaginationRequest,
        *,
        owner: str | None,
        order: str,
        search: str,
        extend: bool,
        user: User | None,
    ) -> tuple[list[Collection], PaginationResult]: ...

    async def get_collection(
        self, tx: Transaction, owner: str, name: str, user: User | None
    ) -> Collection: ...

    async def create_collection(
        self, tx: Transaction, payload: CreateCollection, user: User
    ) -> Collection: ...

    async def clone_collection(
        self, tx: Transaction, owner: str, name: str, payload: CloneCollection, user: User
    ) -> Collection: ...

    async def update_collection(
        self,
        tx: Transaction,
        owner: str,
        name: str,
        payload: UpdateCollection,
        *,
        files_dir: Path | None,
        user: User,
    ) -> Collection: ...

    async def remove_collection(self, tx: Transaction, owner: str, name: str, user: User) -> None: ...

    async def get_file(
        self, tx: Transaction, owner: str, name: str, path: str, version: str, user: User | None
    ) -> FileContent: ...

    async def collection_assets(
        self,
        tx: Transaction,
        pagination: PaginationRequest,
        owner: str,
        name: str,
        kind: AssetKind,
        user: User | None,
    ) -> tuple[list[CollectionAsset], PaginationResult]: ...

    async def add_asset(
        self,
        tx: Transaction,
        owner: str,
        name: str,
        asset: NameOwnerPair,
        kind: AssetKind,
        user: User,
    ) -> None: ...

    async def remove_asset(
        self,
        tx: Transaction,
        owner: str,
        name: str,
        asset: NameOwnerPair,
        kind: AssetKind,
        user: User,
    ) -> None: ...

    async def associated_collections(
        self,
        tx: Transaction,
        pagination: PaginationRequest,
        asset: NameOwnerPair,
        kind: AssetKind,
        user: User | None,
    ) -> tuple[list[Collection], PaginationResult]: ...

    async def remove_asset_from_all(self, tx: Transaction, asset: Any, kind: AssetKind) -> None:
        """
        Drop a deleted model or world from every collection holding it.
        """
        ...

    async def move(self, tx: Transaction, collection: Collection, dest_owner: str) -> Collection: ...
