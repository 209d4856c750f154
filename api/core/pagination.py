"""
Page/per_page pagination for list endpoints.

Requests carry `page` (1-based) and `per_page` query parameters. Responses
carry the total number of items in `X-Total-Count` and navigation links in an
RFC 5988 `Link` header.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from fastapi import Depends, Request, Response

from .errors import ApiError, ErrorCode
from .settings import Settings, get_settings


@dataclass(frozen=True)
class PaginationRequest:
    page: int
    per_page: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


@dataclass(frozen=True)
class PaginationResult:
    page: int
    per_page: int
    total: int
    page_found: bool = True

    @property
    def last_page(self) -> int:
        if self.total <= 0:
            return 1
        return math.ceil(self.total / self.per_page)


def _positive_int(raw: str | None, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ApiError(ErrorCode.INVALID_PAGINATION_REQUEST, extra=[raw], base=exc) from exc
    if value < 1:
        raise ApiError(ErrorCode.INVALID_PAGINATION_REQUEST, extra=[raw])
    return value


def new_pagination_request(request: Request, settings: Settings) -> PaginationRequest:
    params = request.query_params
    page = _positive_int(params.get("page"), 1)
    per_page = _positive_int(params.get("per_page"), settings.default_page_size)
    return PaginationRequest(page=page, per_page=min(per_page, settings.max_page_size))


async def pagination_request(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> PaginationRequest:
    return new_pagination_request(request, settings)


def _page_link(request: Request, page: int, per_page: int, rel: str) -> str:
    url = request.url.include_query_params(page=page, per_page=per_page)
    return f'<{url}>; rel="{rel}"'


def write_pagination_headers(response: Response, request: Request, result: PaginationResult) -> None:
    """
    Set `X-Total-Count` and `Link` on `response`.

    A page outside the result set is reported as PAGINATION_PAGE_NOT_FOUND.
    """
    if not result.page_found:
        raise ApiError(ErrorCode.PAGINATION_PAGE_NOT_FOUND, extra=[str(result.page)])

    links = []
    last = result.last_page
    if result.page > 1:
        links.append(_page_link(request, 1, result.per_page, "first"))
        links.append(_page_link(request, result.page - 1, result.per_page, "prev"))
    if result.page < last:
        links.append(_page_link(request, result.page + 1, result.per_page, "next"))
        links.append(_page_link(request, last, result.per_page, "last"))

    response.headers["X-Total-Count"] = str(result.total)
    if links:
        response.headers["Link"] = ", ".join(links)
