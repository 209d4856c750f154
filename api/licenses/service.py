"""
License catalog collaborator interface.
"""

from __future__ import annotations

from typing import Protocol

from core.db import Transaction
from core.pagination import PaginationRequest, PaginationResult

from .schemas import License


class LicenseService(Protocol):
    async def license_list(
        self, tx: Transaction, pagination: PaginationRequest
    ) -> tuple[list[License], PaginationResult]: ...
