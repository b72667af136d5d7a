"""Search intent orchestration (LLM when configured; rules-based fallback)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from src.intent.llm_parser import LLMConfig, LLMParserError, parse_intent_json_via_llm
from src.intent.rules_parser import parse_intent as parse_rules_intent
from src.intent.schema import SearchIntent, intent_from_obj

logger = logging.getLogger(__name__)

ParseSource = Literal["llm", "rules"]


@dataclass(frozen=True)
class ParseResult:
    """Validated intent plus information about which parser produced it."""

    intent: SearchIntent
    source: ParseSource


def parse_query_with_source(query: str, *, llm_config: LLMConfig | None = None) -> ParseResult:
    """Parse a free-text query into a SearchIntent.

    Strategy:
        1) If an LLM API key is configured, ask the LLM for SearchIntent JSON and validate it.
        2) On any failure (transport, non-2xx, invalid JSON, schema mismatch), fall back to the
           deterministic rules parser.

    Never raises for malformed input.
    """

    if llm_config is not None and llm_config.api_key:
        try:
            obj: dict[str, Any] = parse_intent_json_via_llm(query, config=llm_config)
            return ParseResult(intent=intent_from_obj(obj, search_query=query), source="llm")
        except (LLMParserError, ValueError) as exc:
            # Invalid LLM output must never reach the caller; degrade to rules.
            logger.warning("llm parse failed, using rules fallback reason=%s", exc)

    return ParseResult(intent=parse_rules_intent(query), source="rules")


def parse_query(query: str, *, llm_config: LLMConfig | None = None) -> SearchIntent:
    """Parse a free-text query into a SearchIntent (convenience wrapper)."""

    return parse_query_with_source(query, llm_config=llm_config).intent
