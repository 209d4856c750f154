"""
Model review collaborator interface.

Reviews are listed newest first unless `order` is `"asc"`.
"""

from __future__ import annotations

from typing import Protocol

from auth.schemas import User
from core.db import Transaction
from core.pagination import PaginationRequest, PaginationResult
from models.schemas import Model

from .schemas import CreateModelReview, ModelReview


class ReviewService(Protocol):
    async def review_list(
        self,
        tx: Transaction,
        pagination: PaginationRequest,
        *,
        owner: str | None,
        order: str,
        search: str,
        model: Model | None,
        user: User | None,
    ) -> tuple[list[ModelReview], PaginationResult]: ...

    async def create_review(
        self, tx: Transaction, payload: CreateModelReview, model: Model, user: User
    ) -> ModelReview:
        """
        Open a review on `model`. The review owner defaults to the caller;
        any other owner must be one the caller can act for.
        """
        ...
