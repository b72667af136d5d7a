"""Deterministic SQL builder.

The builder converts a validated `SearchIntent` (and the small set of burial/plot listings) into
parameterized SQL. Identifiers are strictly allowlisted; only values become bound parameters, and
parameters are positional: their order is the order of the `%s` placeholders.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from src.intent.schema import SearchIntent
from src.sql.columns import (
    BASIC_SEARCH_COLUMNS,
    CEMETERY_COLUMN,
    GENERAL_SEARCH_COLUMNS,
    INTENT_COLUMNS,
    PLOT_FILTER_COLUMNS,
    SEARCH_RESULT_COLUMNS,
    MatchKind,
)

SEARCH_RESULT_LIMIT = 20


class SQLBuilderError(ValueError):
    """Raised when a query cannot be built from the given arguments."""


@dataclass(frozen=True)
class BuiltQuery:
    """A parameterized SQL query ready for execution."""

    sql: str
    params: tuple[Any, ...]


_SEARCH_FROM = (
    "FROM deceased_persons d"
    " INNER JOIN burials b ON d.id = b.deceased_id"
    " INNER JOIN grave_plots gp ON b.plot_id = gp.id"
    " INNER JOIN cemeteries c ON gp.cemetery_id = c.id"
)

_BURIAL_LISTING_SELECT = (
    "SELECT b.*, d.first_name, d.last_name, d.date_of_birth, d.date_of_death,"
    " gp.plot_number, gp.cemetery_id"
)

_BURIAL_LISTING_FROM = (
    "FROM burials b"
    " JOIN deceased_persons d ON b.deceased_id = d.id"
    " JOIN grave_plots gp ON b.plot_id = gp.id"
)


def _where_and(clauses: list[str]) -> str:
    if not clauses:
        return ""
    return "WHERE " + " AND ".join(clauses)


def _contains(value: str) -> str:
    return f"%{value}%"


def _build_field_clause(column: str, kind: MatchKind, value: Any) -> tuple[str, Any]:
    if kind == MatchKind.contains:
        return f"LOWER({column}) LIKE LOWER(%s)", _contains(value)
    if kind == MatchKind.iequals:
        return f"LOWER({column}) = LOWER(%s)", value
    if kind == MatchKind.year:
        return f"EXTRACT(YEAR FROM {column}) = %s", value
    return f"{column} = %s", value


def _build_any_column_contains(columns: tuple[str, ...], text: str) -> tuple[str, list[Any]]:
    """One OR-group matching `text` inside any single column of `columns`.

    Positional placeholders cannot be reused, so the same value is bound once per column.
    """

    pattern = _contains(text)
    alternatives = " OR ".join(f"LOWER({column}) LIKE LOWER(%s)" for column in columns)
    return f"({alternatives})", [pattern] * len(columns)


def _append_cemetery_filter(
        clauses: list[str],
        params: list[Any],
        *,
        cemetery_id: str | None,
        column: str = CEMETERY_COLUMN,
) -> None:
    if not cemetery_id:
        return
    clauses.append(f"{column} = %s")
    params.append(cemetery_id)


def _search_select(clauses: list[str]) -> str:
    return (
        f"SELECT {', '.join(SEARCH_RESULT_COLUMNS)} {_SEARCH_FROM} {_where_and(clauses)}"
        f" ORDER BY d.last_name, d.first_name LIMIT {SEARCH_RESULT_LIMIT}"
    )


def build_search_query(intent: SearchIntent, cemetery_id: str | None = None) -> BuiltQuery:
    """Build the deceased-person search for a parsed intent.

    Conditions follow the fixed intent field order, then the optional cemetery filter. When neither
    produced a condition, the raw query is matched against the name and occupation columns so the
    search never degenerates into "match everything".
    """

    clauses: list[str] = []
    params: list[Any] = []

    for field in intent.populated_filters():
        column, kind = INTENT_COLUMNS[field]
        clause, value = _build_field_clause(column, kind, getattr(intent, field))
        clauses.append(clause)
        params.append(value)

    _append_cemetery_filter(clauses, params, cemetery_id=cemetery_id)

    if not clauses:
        clause, values = _build_any_column_contains(
            GENERAL_SEARCH_COLUMNS, intent.search_query.strip()
        )
        clauses.append(clause)
        params.extend(values)

    return BuiltQuery(sql=_search_select(clauses), params=tuple(params))


def build_basic_search_query(query: str, cemetery_id: str | None = None) -> BuiltQuery:
    """Keyword search over names only (used when AI parsing is switched off)."""

    clause, values = _build_any_column_contains(BASIC_SEARCH_COLUMNS, query.strip())
    clauses = [clause]
    params: list[Any] = list(values)
    _append_cemetery_filter(clauses, params, cemetery_id=cemetery_id)

    return BuiltQuery(sql=_search_select(clauses), params=tuple(params))


def build_expiring_burials_query(
        cemetery_id: str | None = None,
        *,
        within_days: int = 90,
) -> BuiltQuery:
    """Burials whose lease ends between today and today + `within_days`."""

    if within_days <= 0:
        raise SQLBuilderError("within_days must be a positive integer")

    clauses = [
        "b.expiration_date IS NOT NULL",
        "b.expiration_date BETWEEN CURRENT_DATE AND CURRENT_DATE + %s::int",
        "b.is_expired = FALSE",
    ]
    params: list[Any] = [within_days]
    _append_cemetery_filter(clauses, params, cemetery_id=cemetery_id)

    sql = (
        f"{_BURIAL_LISTING_SELECT}, (b.expiration_date - CURRENT_DATE) AS days_until_expiration"
        f" {_BURIAL_LISTING_FROM} {_where_and(clauses)} ORDER BY b.expiration_date ASC"
    )
    return BuiltQuery(sql=sql, params=tuple(params))


def build_expired_burials_query(cemetery_id: str | None = None) -> BuiltQuery:
    """Burials already flagged as expired."""

    clauses = ["b.is_expired = TRUE"]
    params: list[Any] = []
    _append_cemetery_filter(clauses, params, cemetery_id=cemetery_id)

    sql = (
        f"{_BURIAL_LISTING_SELECT} {_BURIAL_LISTING_FROM} {_where_and(clauses)}"
        " ORDER BY b.expiration_date ASC"
    )
    return BuiltQuery(sql=sql, params=tuple(params))


def build_external_plots_query(
        *,
        cemetery_id: str | None = None,
        section_id: str | None = None,
        plot_type: str | None = None,
        available_only: bool = False,
) -> BuiltQuery:
    """Plot listing for the external permit system, with burial counts per plot."""

    clauses: list[str] = []
    params: list[Any] = []

    for name, value in (
            ("cemetery_id", cemetery_id),
            ("section_id", section_id),
            ("plot_type", plot_type),
    ):
        if value:
            clauses.append(f"{PLOT_FILTER_COLUMNS[name]} = %s")
            params.append(value)

    if available_only:
        clauses.append("gp.status = 'available'")

    sql = (
        "SELECT gp.id, gp.plot_number, gp.plot_type, gp.status, gp.latitude, gp.longitude,"
        " gp.map_coordinates, gp.layers, gp.cemetery_id, gp.section_id,"
        " c.name AS cemetery_name, c.location AS cemetery_location, cs.name AS section_name,"
        " (SELECT COUNT(*) FROM burials b WHERE b.plot_id = gp.id) AS burial_count"
        " FROM grave_plots gp"
        " LEFT JOIN cemeteries c ON c.id = gp.cemetery_id"
        " LEFT JOIN cemetery_sections cs ON cs.id = gp.section_id"
        f" {_where_and(clauses)} ORDER BY gp.plot_number ASC"
    )
    return BuiltQuery(sql=sql, params=tuple(params))


def build_external_cemeteries_query(*, active_only: bool = False) -> BuiltQuery:
    """Cemeteries with plot and section counts for the external permit system."""

    where = "WHERE c.is_active = TRUE" if active_only else ""
    sql = (
        "SELECT c.id, c.name, c.location, c.total_plots, c.map_coordinates,"
        " COUNT(DISTINCT gp.id) AS total_plot_count,"
        " COUNT(DISTINCT CASE WHEN gp.status = 'available' THEN gp.id END) AS available_plot_count,"
        " COUNT(DISTINCT cs.id) AS section_count"
        " FROM cemeteries c"
        " LEFT JOIN cemetery_sections cs ON cs.cemetery_id = c.id"
        " LEFT JOIN grave_plots gp ON gp.cemetery_id = c.id"
        f" {where}"
        " GROUP BY c.id, c.name, c.location, c.total_plots, c.map_coordinates"
        " ORDER BY c.name ASC"
    )
    return BuiltQuery(sql=sql, params=())
