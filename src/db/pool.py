"""Async Postgres connection pool.

The HTTP handlers use an async pool (psycopg3) owned by the application container. Every acquired
connection is configured to use UTC at the session level.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from psycopg import AsyncConnection
from psycopg_pool import AsyncConnectionPool

from src.db.session import ensure_utc


def create_pool(
        database_url: str,
        *,
        min_size: int = 1,
        max_size: int | None = None,
        timeout: float = 30.0,
) -> AsyncConnectionPool:
    """Create an async DB pool.

    Note:
        The returned pool is created with `open=False`. Call `await pool.open()` at startup.
    """

    return AsyncConnectionPool(
        conninfo=database_url,
        min_size=min_size,
        max_size=max_size,
        timeout=timeout,
        open=False,
        configure=ensure_utc,
    )


@asynccontextmanager
async def get_conn(pool: AsyncConnectionPool) -> AsyncIterator[AsyncConnection]:
    """Acquire a connection from the pool.

    The pool commits on clean exit and rolls back if the block raises.
    """

    async with pool.connection() as conn:
        yield conn
