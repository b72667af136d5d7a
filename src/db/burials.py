"""Burial lease repository.

Lease date arithmetic lives in `src.burials.expiration`; this module only reads and writes rows.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from psycopg import AsyncConnection

from src.burials.expiration import EXPIRING_WINDOW_DAYS, RenewalRequest, renew_expiration
from src.db.query import fetch_all, fetch_one
from src.sql.builder import build_expired_burials_query, build_expiring_burials_query

logger = logging.getLogger(__name__)


class BurialNotFoundError(LookupError):
    """Raised when a burial id does not exist."""


async def get_burial(conn: AsyncConnection, burial_id: int) -> dict[str, Any] | None:
    """Fetch a single burial row."""

    return await fetch_one(conn, "SELECT * FROM burials WHERE id = %s", (burial_id,))


async def apply_renewal(
        conn: AsyncConnection,
        burial_id: int,
        new_expiration: date,
) -> dict[str, Any] | None:
    """Store a renewed expiration date and clear the expired flag."""

    return await fetch_one(
        conn,
        "UPDATE burials"
        " SET expiration_date = %s, renewal_date = CURRENT_DATE, is_expired = FALSE,"
        " updated_at = CURRENT_TIMESTAMP"
        " WHERE id = %s RETURNING *",
        (new_expiration, burial_id),
    )


async def renew_burial(
        conn: AsyncConnection,
        request: RenewalRequest,
        *,
        today: date,
) -> tuple[dict[str, Any], date]:
    """Renew a burial lease and return the updated row plus its new expiration date.

    Raises:
        BurialNotFoundError: If the burial does not exist.
    """

    burial = await get_burial(conn, request.burial_id)
    if burial is None:
        raise BurialNotFoundError(f"burial {request.burial_id} not found")

    new_expiration = renew_expiration(
        expiration_date=burial.get("expiration_date"),
        burial_date=burial.get("burial_date"),
        is_expired=bool(burial.get("is_expired")),
        years=request.years,
        today=today,
    )

    updated = await apply_renewal(conn, request.burial_id, new_expiration)
    if updated is None:
        raise BurialNotFoundError(f"burial {request.burial_id} not found")

    logger.info(
        "burial renewed burial_id=%d years=%d expires=%s",
        request.burial_id,
        request.years,
        new_expiration.isoformat(),
    )
    return updated, new_expiration


async def fetch_expiring(
        conn: AsyncConnection,
        *,
        cemetery_id: str | None = None,
        within_days: int = EXPIRING_WINDOW_DAYS,
) -> list[dict[str, Any]]:
    """Burials whose lease ends within the next `within_days` days."""

    built = build_expiring_burials_query(cemetery_id, within_days=within_days)
    return await fetch_all(conn, built.sql, built.params)


async def fetch_expired(
        conn: AsyncConnection,
        *,
        cemetery_id: str | None = None,
) -> list[dict[str, Any]]:
    """Burials flagged as expired."""

    built = build_expired_burials_query(cemetery_id)
    return await fetch_all(conn, built.sql, built.params)
