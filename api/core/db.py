"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

Every helper takes a `timeout` (seconds). Driver, network and timeout failures
are re-raised as `StorageError` so callers see one failure type.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, TypeVar
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from .errors import StorageError

T = TypeVar("T")

DEFAULT_TIMEOUT = 3.0

_pool: asyncpg.Pool | None = None


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


async def init_pool(dsn: str, *, min_size: int = 1, max_size: int = 5) -> None:
    global _pool
    if _pool is not None:
        return None
    dsn = (dsn or "").strip()
    if not dsn:
        raise RuntimeError("DATABASE_URL is not set.")
    _pool = await asyncpg.create_pool(
        dsn=_sanitize_database_url(dsn),
        min_size=min_size,
        max_size=max_size,
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


async def _guard(call: Awaitable[T], *, timeout: float) -> T:
    # wait_for bounds pool acquisition as well as the statement itself.
    try:
        return await asyncio.wait_for(call, timeout)
    except asyncio.TimeoutError as exc:
        raise StorageError("database operation timed out", timed_out=True) from exc
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
        raise StorageError(f"database operation failed: {exc}") from exc


async def ping(*, timeout: float = 5.0) -> None:
    await _guard(pool().fetchval("SELECT 1", timeout=timeout), timeout=timeout)


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


def rows_affected(status: str) -> int:
    """
    Parse the affected-row count from an asyncpg command status tag
    such as "DELETE 1" or "INSERT 0 1".
    """
    tail = (status or "").rsplit(" ", 1)[-1]
    return int(tail) if tail.isdigit() else 0


async def fetch_one(sql: str, *args: Any, timeout: float = DEFAULT_TIMEOUT) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    row = await _guard(pool().fetchrow(sql, *args, timeout=timeout), timeout=timeout)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any, timeout: float = DEFAULT_TIMEOUT) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    rows = await _guard(pool().fetch(sql, *args, timeout=timeout), timeout=timeout)
    return [_record_to_dict(r) for r in rows]


async def execute(sql: str, *args: Any, timeout: float = DEFAULT_TIMEOUT) -> int:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL) and return the affected-row count.
    """
    status = await _guard(pool().execute(sql, *args, timeout=timeout), timeout=timeout)
    return rows_affected(status)
