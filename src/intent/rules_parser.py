"""Rules-based search parser (fallback).

This parser is deterministic and always available:
    - every extraction step runs independently (a query may yield a year, a date, a relationship,
      a gender and a name at the same time),
    - it never rejects input; unmatched dimensions are simply left unset,
    - every result carries the same low confidence (0.3).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from src.intent.dictionaries import detect_gender, detect_relationship, gender_for_relationship
from src.intent.schema import FALLBACK_CONFIDENCE, SearchIntent

_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b", re.ASCII)
_ISO_DATE_RE = re.compile(r"\b\d{4}-\d{2}-\d{2}\b", re.ASCII)
_NAME_TOKEN_RE = re.compile(r"[A-Z][a-z]+")


@dataclass(frozen=True)
class _NameParts:
    first_name: str | None = None
    middle_name: str | None = None
    last_name: str | None = None


def _mentions_birth(text: str) -> bool:
    return "born" in text.lower()


def _extract_year(text: str) -> int | None:
    match = _YEAR_RE.search(text)
    if not match:
        return None
    return int(match.group(0))


def _extract_iso_date(text: str) -> date | None:
    """Return the first `YYYY-MM-DD` token that is a real calendar date."""

    match = _ISO_DATE_RE.search(text)
    if not match:
        return None
    try:
        return date.fromisoformat(match.group(0))
    except ValueError:
        return None


def _extract_names(text: str) -> _NameParts:
    """Pick capitalized words (`Maria`, not `MARIA` or `O'Neil`) as name parts.

    Two or more words: first and last become given/family name, the rest the middle name.
    A single word is taken as the family name.
    """

    words = [w for w in text.split() if _NAME_TOKEN_RE.fullmatch(w)]
    if len(words) >= 2:
        return _NameParts(
            first_name=words[0],
            middle_name=" ".join(words[1:-1]) or None,
            last_name=words[-1],
        )
    if len(words) == 1:
        return _NameParts(last_name=words[0])
    return _NameParts()


def parse_intent(text: str) -> SearchIntent:
    """Parse a free-text query into a SearchIntent using keyword and pattern rules."""

    query = text or ""
    born = _mentions_birth(query)

    year = _extract_year(query)
    day = _extract_iso_date(query)

    relationship = detect_relationship(query)
    gender = detect_gender(query) or gender_for_relationship(relationship)

    names = _extract_names(query)

    return SearchIntent(
        search_query=query,
        confidence=FALLBACK_CONFIDENCE,
        first_name=names.first_name,
        middle_name=names.middle_name,
        last_name=names.last_name,
        year_of_birth=year if born else None,
        year_of_death=None if born else year,
        date_of_birth=day if born else None,
        date_of_death=None if born else day,
        relationship=relationship,
        gender=gender,
    )
