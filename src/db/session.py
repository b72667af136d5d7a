"""DB session configuration helpers.

Lease expiry compares stored dates against `CURRENT_DATE`; for "today" to mean the same calendar day
in SQL and in Python, every DB session is locked to the UTC timezone.
"""

from __future__ import annotations

from psycopg import AsyncConnection


async def ensure_utc(conn: AsyncConnection) -> None:
    """Ensure the current Postgres session timezone is set to UTC."""

    async with conn.cursor() as cur:
        await cur.execute("SET TIME ZONE 'UTC'", prepare=False)
    # `SET` starts a transaction when autocommit is disabled; commit so the pool doesn't see INTRANS.
    await conn.commit()
