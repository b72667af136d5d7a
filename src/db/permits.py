"""Pending-permit repository for the external permit webhook."""

from __future__ import annotations

import logging
from typing import Any

from psycopg import AsyncConnection
from psycopg.errors import UniqueViolation
from psycopg.types.json import Jsonb

from src.db.query import fetch_one
from src.permits.schema import PermitSubmission

logger = logging.getLogger(__name__)


class PermitExistsError(Exception):
    """Raised when a permit id has already been received."""

    def __init__(self, permit_id: str, status: str | None) -> None:
        super().__init__(f"permit {permit_id} already exists")
        self.permit_id = permit_id
        self.status = status


class PreferredPlotNotFoundError(LookupError):
    """Raised when a permit names a preferred plot that does not exist."""


_INSERT_COLUMNS: tuple[str, ...] = (
    "permit_id",
    "permit_type",
    "deceased_first_name",
    "deceased_middle_name",
    "deceased_last_name",
    "deceased_suffix",
    "date_of_birth",
    "date_of_death",
    "gender",
    "applicant_name",
    "applicant_email",
    "applicant_phone",
    "relationship_to_deceased",
    "preferred_cemetery_id",
    "preferred_plot_id",
    "preferred_section",
    "preferred_layer",
    "permit_approved_at",
    "permit_expiry_date",
    "permit_document_url",
    "metadata",
)


def _insert_params(permit: PermitSubmission) -> tuple[Any, ...]:
    values = permit.model_dump(include=set(_INSERT_COLUMNS))
    if permit.permit_document_url is not None:
        values["permit_document_url"] = str(permit.permit_document_url)
    values["metadata"] = Jsonb(permit.metadata)
    return tuple(values[name] for name in _INSERT_COLUMNS)


async def get_permit_status(conn: AsyncConnection, permit_id: str) -> dict[str, Any] | None:
    return await fetch_one(
        conn,
        "SELECT id, status FROM pending_permits WHERE permit_id = %s",
        (permit_id,),
    )


async def plot_exists(conn: AsyncConnection, plot_id: int) -> bool:
    row = await fetch_one(conn, "SELECT id FROM grave_plots WHERE id = %s", (plot_id,))
    return row is not None


async def receive_permit(conn: AsyncConnection, permit: PermitSubmission) -> dict[str, Any]:
    """Store an approved permit as `pending`.

    Raises:
        PermitExistsError: If the permit id was already received.
        PreferredPlotNotFoundError: If `preferred_plot_id` names an unknown plot.
    """

    existing = await get_permit_status(conn, permit.permit_id)
    if existing is not None:
        raise PermitExistsError(permit.permit_id, existing.get("status"))

    if permit.preferred_plot_id is not None and not await plot_exists(conn, permit.preferred_plot_id):
        raise PreferredPlotNotFoundError(f"plot {permit.preferred_plot_id} not found")

    placeholders = ", ".join(["%s"] * len(_INSERT_COLUMNS))
    try:
        async with conn.transaction():
            row = await fetch_one(
                conn,
                f"INSERT INTO pending_permits ({', '.join(_INSERT_COLUMNS)}, status)"
                f" VALUES ({placeholders}, 'pending') RETURNING *",
                _insert_params(permit),
            )
    except UniqueViolation as exc:
        # A concurrent delivery of the same permit won the insert.
        raise PermitExistsError(permit.permit_id, "pending") from exc

    if row is None:
        raise RuntimeError("INSERT ... RETURNING produced no row")

    logger.info(
        "permit received permit_id=%s type=%s id=%s",
        permit.permit_id,
        permit.permit_type,
        row.get("id"),
    )
    return row


async def get_permit(conn: AsyncConnection, permit_id: str) -> dict[str, Any] | None:
    """A permit with the plot, cemetery and staff member it was assigned to, if any."""

    return await fetch_one(
        conn,
        "SELECT pp.*, gp.plot_number AS assigned_plot_number,"
        " c.name AS assigned_cemetery_name, u.email AS assigned_by_email"
        " FROM pending_permits pp"
        " LEFT JOIN grave_plots gp ON pp.assigned_plot_id = gp.id"
        " LEFT JOIN cemeteries c ON gp.cemetery_id = c.id"
        " LEFT JOIN users u ON pp.assigned_by = u.id"
        " WHERE pp.permit_id = %s",
        (permit_id,),
    )


def permit_status(row: dict[str, Any]) -> dict[str, Any]:
    """Public status view of a permit row."""

    return {
        "id": row.get("id"),
        "permit_id": row.get("permit_id"),
        "permit_type": row.get("permit_type"),
        "status": row.get("status"),
        "deceased_name": f"{row.get('deceased_first_name')} {row.get('deceased_last_name')}",
        "applicant_name": row.get("applicant_name"),
        "assigned_plot": row.get("assigned_plot_number") or None,
        "assigned_cemetery": row.get("assigned_cemetery_name") or None,
        "assigned_at": row.get("assigned_at"),
        "assigned_by": row.get("assigned_by_email"),
        "rejection_reason": row.get("rejection_reason"),
        "created_at": row.get("created_at"),
        "updated_at": row.get("updated_at"),
    }
