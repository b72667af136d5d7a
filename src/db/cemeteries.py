"""Cemetery listing for the external permit system."""

from __future__ import annotations

from typing import Any

from psycopg import AsyncConnection

from src.db.query import fetch_all
from src.sql.builder import build_external_cemeteries_query


def cemetery_summary(row: dict[str, Any]) -> dict[str, Any]:
    """Public view of a cemetery row with plot occupancy counts."""

    total = int(row.get("total_plot_count") or 0)
    available = int(row.get("available_plot_count") or 0)
    return {
        "id": row.get("id"),
        "name": row.get("name"),
        "location": row.get("location"),
        "total_plots": row.get("total_plots"),
        "available_plots": available,
        "occupied_plots": total - available,
        "sections": int(row.get("section_count") or 0),
        "coordinates": row.get("map_coordinates"),
    }


async def fetch_external_cemeteries(
        conn: AsyncConnection,
        *,
        active_only: bool = False,
) -> list[dict[str, Any]]:
    built = build_external_cemeteries_query(active_only=active_only)
    rows = await fetch_all(conn, built.sql, built.params)
    return [cemetery_summary(row) for row in rows]
