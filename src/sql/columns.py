"""Allowlisted SQL identifiers.

All column names referenced in generated SQL must come from these mappings; no user-provided
identifier should ever be interpolated into SQL.
"""

from __future__ import annotations

from enum import StrEnum


class MatchKind(StrEnum):
    """How an intent field is compared against its column."""

    contains = "contains"
    equals = "equals"
    year = "year"
    iequals = "iequals"


# SearchIntent field -> (column reference, comparison kind).
INTENT_COLUMNS: dict[str, tuple[str, MatchKind]] = {
    "first_name": ("d.first_name", MatchKind.contains),
    "last_name": ("d.last_name", MatchKind.contains),
    "middle_name": ("d.middle_name", MatchKind.contains),
    "date_of_birth": ("d.date_of_birth", MatchKind.equals),
    "date_of_death": ("d.date_of_death", MatchKind.equals),
    "year_of_birth": ("d.date_of_birth", MatchKind.year),
    "year_of_death": ("d.date_of_death", MatchKind.year),
    "age_at_death": ("d.age_at_death", MatchKind.equals),
    "gender": ("d.gender", MatchKind.iequals),
    "occupation": ("d.occupation", MatchKind.contains),
}

# Columns searched by the free-text general search, in this order.
GENERAL_SEARCH_COLUMNS: tuple[str, ...] = (
    "d.first_name",
    "d.last_name",
    "d.first_name || ' ' || d.last_name",
    "d.occupation",
)

BASIC_SEARCH_COLUMNS: tuple[str, ...] = GENERAL_SEARCH_COLUMNS[:3]

CEMETERY_COLUMN = "gp.cemetery_id"

SEARCH_RESULT_COLUMNS: tuple[str, ...] = (
    "d.id AS deceased_id",
    "d.first_name",
    "d.last_name",
    "d.middle_name",
    "d.date_of_birth",
    "d.date_of_death",
    "d.age_at_death",
    "d.gender",
    "d.occupation",
    "d.biography",
    "b.id AS burial_id",
    "b.burial_date",
    "b.position_in_plot",
    "b.layer",
    "gp.id AS plot_id",
    "gp.plot_number",
    "gp.plot_type",
    "gp.status",
    "gp.latitude",
    "gp.longitude",
    "gp.map_coordinates",
    "gp.cemetery_id",
    "c.name AS cemetery_name",
)

PLOT_FILTER_COLUMNS: dict[str, str] = {
    "cemetery_id": "gp.cemetery_id",
    "section_id": "gp.section_id",
    "plot_type": "gp.plot_type",
}
