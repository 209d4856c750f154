"""
Route building blocks shared by every resource router.

Each factory returns a FastAPI dependency that gathers what a family of
endpoints needs before the endpoint body runs:

- `search_context`: pagination, tolerant identity, owner/order/search.
- `paginated(require_user=...)`: pagination and identity.
- `owner_and_name(name_arg, require_user=...)`: identity, owner and name.
- `named(name_arg, require_user=...)`: identity and name.

Failures raise `ApiError` and the endpoint is never called.
"""

from __future__ import annotations

import functools
import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Sequence

from fastapi import Depends, Request, Response

from auth.dependencies import optional_user, require_user as required_user
from auth.schemas import User

from .db import DatabaseError, Transaction, get_transaction
from .errors import ApiError, ErrorCode
from .pagination import PaginationRequest, PaginationResult, pagination_request, write_pagination_headers
from .params import read_list_params, read_name, read_owner_name_params
from .services import Services, get_services
from .uploads import remove_dir


@dataclass
class PageContext:
    pagination: PaginationRequest
    user: User | None
    request: Request = field(repr=False)
    response: Response = field(repr=False)

    def page(self, items: Sequence[Any], result: PaginationResult) -> Sequence[Any]:
        """
        Write pagination headers for `result` and return `items` unchanged.
        """
        write_pagination_headers(self.response, self.request, result)
        return items


@dataclass
class SearchContext(PageContext):
    owner: str | None = None
    order: str = ""
    search: str = ""


@dataclass
class OwnerNameContext:
    owner: str
    name: str
    user: User | None


@dataclass
class NameContext:
    name: str
    user: User | None


def _user_dependency(require_user: bool) -> Callable[..., Awaitable[User | None]]:
    return required_user if require_user else optional_user


async def search_context(
    request: Request,
    response: Response,
    pagination: PaginationRequest = Depends(pagination_request),
    user: User | None = Depends(optional_user),
    tx: Transaction = Depends(get_transaction),
    services: Services = Depends(get_services),
) -> SearchContext:
    params = await read_list_params(request, tx, services.users)
    return SearchContext(
        pagination=pagination,
        user=user,
        request=request,
        response=response,
        owner=params.owner,
        order=params.order,
        search=params.search,
    )


def paginated(*, require_user: bool) -> Callable[..., Awaitable[PageContext]]:
    async def dependency(
        request: Request,
        response: Response,
        pagination: PaginationRequest = Depends(pagination_request),
        user: User | None = Depends(_user_dependency(require_user)),
    ) -> PageContext:
        return PageContext(pagination=pagination, user=user, request=request, response=response)

    return dependency


def owner_and_name(name_arg: str, *, require_user: bool) -> Callable[..., Awaitable[OwnerNameContext]]:
    async def dependency(
        request: Request,
        user: User | None = Depends(_user_dependency(require_user)),
        tx: Transaction = Depends(get_transaction),
        services: Services = Depends(get_services),
    ) -> OwnerNameContext:
        owner, name = await read_owner_name_params(request, tx, services.users, name_arg)
        return OwnerNameContext(owner=owner, name=name, user=user)

    return dependency


def named(name_arg: str, *, require_user: bool) -> Callable[..., Awaitable[NameContext]]:
    async def dependency(
        request: Request,
        user: User | None = Depends(_user_dependency(require_user)),
    ) -> NameContext:
        return NameContext(name=read_name(request, name_arg), user=user)

    return dependency


def no_result(endpoint: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Response]]:
    """
    Discard the endpoint's return value and answer 200 with an empty
    `application/json` body.
    """

    @functools.wraps(endpoint)
    async def wrapper(*args: Any, **kwargs: Any) -> Response:
        await endpoint(*args, **kwargs)
        return Response(status_code=200, media_type="application/json")

    # FastAPI resolves string annotations against the wrapper's globals.
    wrapper.__signature__ = inspect.signature(endpoint, eval_str=True)  # type: ignore[attr-defined]
    return wrapper


async def commit_created(tx: Transaction, location: str | None) -> None:
    """
    Commit the creation of a resource. If the commit fails, the directory
    the service created for it is removed and NO_DATABASE is raised.
    """
    try:
        await tx.commit()
    except DatabaseError as exc:
        remove_dir(location)
        raise ApiError(ErrorCode.NO_DATABASE, base=exc) from exc
