"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`).

Each request that touches the database gets one `Transaction` through the
`get_transaction` dependency. Handlers commit explicitly, before anything is
written to the response body; whatever is left uncommitted when the request
ends is rolled back.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

from typing import Any, AsyncIterator
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg
from fastapi import Request
from fastapi.responses import JSONResponse

from .errors import ApiError, ErrorCode, handle_api_error

_pool: asyncpg.Pool | None = None

_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class DatabaseError(RuntimeError):
    pass


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


async def init_pool(url: str) -> None:
    global _pool
    if _pool is not None:
        return None
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    _pool = await asyncpg.create_pool(
        dsn=_sanitize_database_url(url),
        min_size=1,
        max_size=10,
        command_timeout=30,
    )


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


class Transaction:
    """
    A single database transaction bound to one pooled connection.
    """

    def __init__(self, conn: asyncpg.Connection) -> None:
        self.conn = conn
        self._tx = conn.transaction()
        self.closed = False

    async def start(self) -> None:
        await self._tx.start()

    async def commit(self) -> None:
        if self.closed:
            return None
        try:
            await self._tx.commit()
        except _DRIVER_ERRORS as exc:
            raise DatabaseError(str(exc)) from exc
        finally:
            self.closed = True

    async def rollback(self) -> None:
        if self.closed:
            return None
        self.closed = True
        await self._tx.rollback()

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        try:
            row = await self.conn.fetchrow(sql, *args)
        except _DRIVER_ERRORS as exc:
            raise DatabaseError(str(exc)) from exc
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        try:
            rows = await self.conn.fetch(sql, *args)
        except _DRIVER_ERRORS as exc:
            raise DatabaseError(str(exc)) from exc
        return [_record_to_dict(r) for r in rows]

    async def execute(self, sql: str, *args: Any) -> None:
        try:
            await self.conn.execute(sql, *args)
        except _DRIVER_ERRORS as exc:
            raise DatabaseError(str(exc)) from exc


async def get_transaction() -> AsyncIterator[Transaction]:
    try:
        db_pool = pool()
    except RuntimeError as exc:
        raise ApiError(ErrorCode.NO_DATABASE, base=exc) from exc

    async with db_pool.acquire() as conn:
        tx = Transaction(conn)
        try:
            await tx.start()
        except _DRIVER_ERRORS as exc:
            raise ApiError(ErrorCode.NO_DATABASE, base=exc) from exc
        try:
            yield tx
        finally:
            await tx.rollback()


async def commit(tx: Transaction, code: ErrorCode) -> None:
    """
    Commit `tx`, reporting a failure as `ApiError(code)`.
    """
    try:
        await tx.commit()
    except DatabaseError as exc:
        raise ApiError(code, base=exc) from exc


async def handle_database_error(request: Request, exc: DatabaseError) -> JSONResponse:
    return await handle_api_error(request, ApiError(ErrorCode.NO_DATABASE, base=exc))
