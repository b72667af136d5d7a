"""Audit trail writes to the `system_logs` table.

Audit rows describe user-visible actions (e.g. a lease renewal). A failed audit write is logged and
never breaks the action it describes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

import psycopg
from psycopg import AsyncConnection

from src.db.query import execute

logger = logging.getLogger(__name__)

AuditStatus = Literal["success", "error", "warning"]


@dataclass(frozen=True)
class AuditEntry:
    """One row of the system audit log."""

    action: str
    description: str | None = None
    resource_type: str | None = None
    resource_id: int | None = None
    user_id: int | None = None
    user_email: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    status: AuditStatus = "success"


async def write_audit_entry(conn: AsyncConnection, entry: AuditEntry) -> bool:
    """Insert an audit row; returns `False` (after logging) if the insert failed."""

    try:
        async with conn.transaction():
            await execute(
                conn,
                "INSERT INTO system_logs"
                " (user_id, user_email, action, description, resource_type, resource_id,"
                " ip_address, user_agent, status)"
                " VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)",
                (
                    entry.user_id,
                    entry.user_email,
                    entry.action,
                    entry.description,
                    entry.resource_type,
                    entry.resource_id,
                    entry.ip_address,
                    entry.user_agent,
                    entry.status,
                ),
            )
    except psycopg.Error:
        logger.exception("audit write failed action=%s", entry.action)
        return False
    return True
