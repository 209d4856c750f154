"""
World-management collaborator interface.

Same contract as `models.service.ModelService`: calls run inside the
request's transaction and failures are raised as `ApiError`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from auth.schemas import User
from core.db import Transaction
from core.files import FileContent, FileTree, ZipDownload
from core.pagination import PaginationRequest, PaginationResult

from .schemas import CloneWorld, CreateWorld, ModelReference, UpdateWorld, World


class WorldService(Protocol):
    async def world_list(
        self,
        tx: Transaction,
        pagination: PaginationRequest,
        *,
        owner: str | None,
        order: str,
        search: str,
        liked_by: User | None,
        user: User | None,
    ) -> tuple[list[World], PaginationResult]: ...

    async def get_world(self, tx: Transaction, owner: str, name: str, user: User | None) -> World: ...

    async def file_tree(
        self, tx: Transaction, owner: str, name: str, version: str, user: User | None
    ) -> FileTree: ...

    async def get_file(
        self, tx: Transaction, owner: str, name: str, path: str, version: str, user: User | None
    ) -> FileContent: ...

    async def download_zip(
        self,
        tx: Transaction,
        owner: str,
        name: str,
        version: str,
        user: User | None,
        user_agent: str | None,
    ) -> ZipDownload: ...

    async def model_references(
        self,
        tx: Transaction,
        pagination: PaginationRequest,
        owner: str,
        name: str,
        version: str,
        user: User | None,
    ) -> tuple[list[ModelReference], PaginationResult]: ...

    async def create_like(self, tx: Transaction, owner: str, name: str, user: User) -> int: ...

    async def remove_like(self, tx: Transaction, owner: str, name: str, user: User) -> int: ...

    async def create_report(self, tx: Transaction, owner: str, name: str, reason: str) -> None: ...

    async def create_world(
        self,
        tx: Transaction,
        payload: CreateWorld,
        *,
        owner: str,
        files_dir: Path,
        user: User,
    ) -> World: ...

    async def clone_world(
        self, tx: Transaction, owner: str, name: str, payload: CloneWorld, user: User
    ) -> World: ...

    async def update_world(
        self,
        tx: Transaction,
        owner: str,
        name: str,
        payload: UpdateWorld,
        *,
        files_dir: Path | None,
        user: User,
    ) -> World: ...

    async def remove_world(self, tx: Transaction, owner: str, name: str, user: User) -> None: ...

    async def move(self, tx: Transaction, world: World, dest_owner: str) -> World: ...
