"""
Category catalog collaborator interface.
"""

from __future__ import annotations

from typing import Protocol

from core.db import Transaction

from .schemas import Category, CreateCategory, UpdateCategory


class CategoryService(Protocol):
    async def list_categories(self, tx: Transaction) -> list[Category]: ...

    async def get_by_slug(self, tx: Transaction, slug: str) -> Category | None: ...

    async def create(self, tx: Transaction, payload: CreateCategory) -> Category: ...

    async def update(self, tx: Transaction, slug: str, payload: UpdateCategory) -> Category: ...

    async def delete(self, tx: Transaction, slug: str) -> Category: ...
