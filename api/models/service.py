"""
Model-management collaborator interface.

The storage/versioning implementation lives outside the HTTP layer. Every
method runs inside the request's transaction and reports failures by raising
`core.errors.ApiError` (e.g. NAME_NOT_FOUND, UNAUTHORIZED,
FORM_DUPLICATE_MODEL_NAME). Permission checks are the service's job.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, Sequence

from auth.schemas import User
from core.db import Transaction
from core.files import FileContent, FileTree, ZipDownload
from core.pagination import PaginationRequest, PaginationResult

from .schemas import CloneModel, CreateModel, Model, UpdateModel


class ModelService(Protocol):
    async def model_list(
        self,
        tx: Transaction,
        pagination: PaginationRequest,
        *,
        owner: str | None,
        order: str,
        search: str,
        liked_by: User | None,
        user: User | None,
        categories: Sequence[Any] = (),
    ) -> tuple[list[Model], PaginationResult]: ...

    async def get_model(self, tx: Transaction, owner: str, name: str, user: User | None) -> Model: ...

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

    async def create_like(self, tx: Transaction, owner: str, name: str, user: User) -> int: ...

    async def remove_like(self, tx: Transaction, owner: str, name: str, user: User) -> int: ...

    async def create_report(self, tx: Transaction, owner: str, name: str, reason: str) -> None: ...

    async def create_model(
        self,
        tx: Transaction,
        payload: CreateModel,
        *,
        owner: str,
        files_dir: Path,
        metadata: list[dict[str, Any]] | None,
        user: User,
    ) -> Model:
        """
        Create a model from the files staged in `files_dir`.

        `files_dir` is removed once the handler returns, so the service must
        copy what it keeps into the model's own `location`.
        """
        ...

    async def clone_model(
        self, tx: Transaction, owner: str, name: str, payload: CloneModel, user: User
    ) -> Model: ...

    async def update_model(
        self,
        tx: Transaction,
        owner: str,
        name: str,
        payload: UpdateModel,
        *,
        files_dir: Path | None,
        metadata: list[dict[str, Any]] | None,
        user: User,
    ) -> Model: ...

    async def remove_model(self, tx: Transaction, owner: str, name: str, user: User) -> None: ...

    async def move(self, tx: Transaction, model: Model, dest_owner: str) -> Model:
        """
        Relocate `model` to `dest_owner`'s storage and update its owner.
        """
        ...
