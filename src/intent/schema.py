"""SearchIntent schema (Pydantic model).

This schema is the contract between the free-text parsers (rules/LLM) and the deterministic search
query builder. It is also serialized as-is into HTTP responses under the `searchIntent` key, so the
camelCase aliases are part of the public contract.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

FALLBACK_CONFIDENCE = 0.3
DEFAULT_LLM_CONFIDENCE = 0.5

ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)

# Fixed order in which populated fields become SQL conditions.
FILTER_FIELDS: tuple[str, ...] = (
    "first_name",
    "last_name",
    "middle_name",
    "date_of_birth",
    "date_of_death",
    "year_of_birth",
    "year_of_death",
    "age_at_death",
    "gender",
    "occupation",
)


class SearchIntent(BaseModel):
    """Structured filters inferred from one search string.

    Every optional field is `None` unless the parser had textual evidence for it; `None` means the
    dimension is not filtered.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        # Language-model payloads may carry keys we do not know about.
        extra="ignore",
    )

    search_query: str
    confidence: float = Field(ge=0.0, le=1.0)

    first_name: str | None = None
    last_name: str | None = None
    middle_name: str | None = None
    date_of_birth: date | None = None
    date_of_death: date | None = None
    year_of_birth: int | None = Field(default=None, ge=1, le=9999)
    year_of_death: int | None = Field(default=None, ge=1, le=9999)
    age_at_death: int | None = Field(default=None, ge=0)
    gender: str | None = None
    occupation: str | None = None
    relationship: str | None = None

    @field_validator(
        "first_name",
        "last_name",
        "middle_name",
        "gender",
        "occupation",
        "relationship",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        """Strip text fields and treat blank strings as absent."""

        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("date_of_birth", "date_of_death", mode="before")
    @classmethod
    def iso_date_only(cls, value: Any) -> Any:
        """Accept only `YYYY-MM-DD` strings (or date objects); bare years and timestamps are rejected."""

        if value is None or isinstance(value, date):
            return value
        if isinstance(value, str) and ISO_DATE_RE.fullmatch(value.strip()):
            return date.fromisoformat(value.strip())
        raise ValueError("dates must be ISO YYYY-MM-DD strings")

    def populated_filters(self) -> list[str]:
        """Names of the filterable fields that are set, in condition order."""

        return [name for name in FILTER_FIELDS if getattr(self, name) is not None]

    def to_response(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys; absent fields are omitted."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def intent_from_obj(obj: Any, *, search_query: str) -> SearchIntent:
    """Validate a decoded JSON object (e.g. an LLM reply) into a SearchIntent.

    `null` values are dropped, `searchQuery` is always replaced with the original query, and a
    missing confidence defaults to 0.5.

    Raises:
        ValueError: If `obj` is not an object or any field has a mismatched type/value.
    """

    if not isinstance(obj, dict):
        raise ValueError("intent payload must be a JSON object")

    payload = {key: value for key, value in obj.items() if value is not None}
    payload.pop("searchQuery", None)
    payload.pop("search_query", None)
    payload.setdefault("confidence", DEFAULT_LLM_CONFIDENCE)

    return SearchIntent.model_validate({**payload, "searchQuery": search_query})
