"""English vocabularies for the rules-based search parser.

These mappings should remain small and deterministic. Vocabulary order matters: the first matching
relationship wins, so compound terms ("grandmother") must precede their suffixes ("mother").
"""

from __future__ import annotations

import re

RELATIONSHIPS: tuple[str, ...] = (
    "grandmother",
    "grandfather",
    "mother",
    "father",
    "sister",
    "brother",
    "aunt",
    "uncle",
    "cousin",
)

MALE_WORDS: tuple[str, ...] = ("male", "man", "boy", "he", "him")
FEMALE_WORDS: tuple[str, ...] = ("female", "woman", "girl", "she", "her")

RELATIONSHIP_GENDER: dict[str, str] = {
    "grandmother": "female",
    "mother": "female",
    "sister": "female",
    "aunt": "female",
    "grandfather": "male",
    "father": "male",
    "brother": "male",
    "uncle": "male",
}

_MALE_RE = re.compile(r"\b(?:" + "|".join(MALE_WORDS) + r")\b")
_FEMALE_RE = re.compile(r"\b(?:" + "|".join(FEMALE_WORDS) + r")\b")


def detect_relationship(text: str) -> str | None:
    """Return the first vocabulary relationship contained in the text (case-insensitive)."""

    lowered = (text or "").lower()
    for rel in RELATIONSHIPS:
        if rel in lowered:
            return rel
    return None


def detect_gender(text: str) -> str | None:
    """Detect gender from whole-word pronouns/nouns; male terms take priority."""

    lowered = (text or "").lower()
    if _MALE_RE.search(lowered):
        return "male"
    if _FEMALE_RE.search(lowered):
        return "female"
    return None


def gender_for_relationship(relationship: str | None) -> str | None:
    """Gender implied by a relationship term (`None` for neutral terms such as "cousin")."""

    if relationship is None:
        return None
    return RELATIONSHIP_GENDER.get(relationship)
