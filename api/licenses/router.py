"""
License endpoints. The catalog is public and read-only.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from core import handlers
from core.db import Transaction, get_transaction
from core.services import Services, get_services

from . import schemas

router = APIRouter()

public_page = handlers.paginated(require_user=False)


@router.get("/licenses")
async def license_list(
    ctx: handlers.PageContext = Depends(public_page),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> list[schemas.License]:
    items, page = await services.licenses.license_list(tx, ctx.pagination)
    return ctx.page(items, page)
