"""Safe DB query helpers.

These helpers never interpolate user values into SQL: every value is passed positionally via
`params`, in placeholder order. Rows come back as plain dicts so they can be serialized directly
into JSON responses.
"""

from __future__ import annotations

from typing import Any, LiteralString, cast

from psycopg import AsyncConnection
from psycopg.rows import dict_row


async def fetch_all(
        conn: AsyncConnection,
        sql: str,
        params: tuple[Any, ...] = (),
) -> list[dict[str, Any]]:
    """Execute a query and return every row as a dict.

    DB errors are not swallowed (caller decides how to handle them).
    """

    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(cast(LiteralString, sql), params)
        return await cur.fetchall()


async def fetch_one(
        conn: AsyncConnection,
        sql: str,
        params: tuple[Any, ...] = (),
) -> dict[str, Any] | None:
    """Execute a query and return the first row, or `None` if there is none."""

    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(cast(LiteralString, sql), params)
        return await cur.fetchone()


async def execute(conn: AsyncConnection, sql: str, params: tuple[Any, ...] = ()) -> int:
    """Execute a statement and return the affected row count."""

    async with conn.cursor() as cur:
        await cur.execute(cast(LiteralString, sql), params)
        return cur.rowcount
