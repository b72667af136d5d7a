"""Optional LLM-based search parser.

Enabled only when an API key is configured. The LLM is only allowed to produce **SearchIntent
JSON**; the decoded object is validated against the schema by the caller before use.
"""

from __future__ import annotations

import http.client
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.error import HTTPError
from urllib.request import Request, urlopen

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_API_BASE = "https://api.openai.com/v1"


class LLMParserError(RuntimeError):
    """Raised when the LLM parser fails to return a JSON object."""


@dataclass(frozen=True)
class LLMConfig:
    """Configuration for the OpenAI-style Chat Completions API call."""

    api_key: str
    model: str = DEFAULT_MODEL
    api_base: str = DEFAULT_API_BASE
    timeout_s: float = 30.0
    temperature: float = 0.3
    max_tokens: int = 200


def _load_prompt() -> str:
    prompt_path = Path(__file__).resolve().parent / "prompt_search_v1.md"
    return prompt_path.read_text(encoding="utf-8")


def _strip_code_fences(text: str) -> str:
    value = (text or "").strip()
    if value.startswith("```"):
        value = value.strip("`")
        # After stripping backticks, try to remove leading "json" marker.
        value = value.removeprefix("json").strip()
    return value


def _chat_completions_url(api_base: str) -> str:
    return api_base.rstrip("/") + "/chat/completions"


def build_payload(user_text: str, *, config: LLMConfig) -> dict[str, Any]:
    """Build the chat-completion request body (one system + one user message)."""

    return {
        "model": config.model,
        "temperature": config.temperature,
        "max_tokens": config.max_tokens,
        "messages": [
            {"role": "system", "content": _load_prompt()},
            {"role": "user", "content": user_text},
        ],
    }


def parse_intent_json_via_llm(user_text: str, *, config: LLMConfig) -> dict[str, Any]:
    """Call an LLM and return the decoded JSON object from its reply.

    The call is compatible with OpenAI-style `/v1/chat/completions` APIs.
    """

    req = Request(
        _chat_completions_url(config.api_base),
        method="POST",
        headers={
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        },
        data=json.dumps(build_payload(user_text, config=config)).encode(),
    )

    try:
        with urlopen(req, timeout=config.timeout_s) as resp:  # noqa: S310 (explicit, key-gated network call)
            body = resp.read()
    except HTTPError as exc:
        raise LLMParserError(f"LLM HTTP error: {exc.code}") from exc
    except (OSError, http.client.HTTPException) as exc:
        # URLError, timeouts, resets and truncated or dropped responses.
        raise LLMParserError("LLM connection error") from exc

    try:
        decoded = json.loads(body)
        content = decoded["choices"][0]["message"]["content"]
    except Exception as exc:  # noqa: BLE001
        raise LLMParserError("Unexpected LLM response format") from exc

    if not isinstance(content, str) or not content.strip():
        raise LLMParserError("LLM returned an empty or non-text reply")

    try:
        obj = json.loads(_strip_code_fences(content))
    except json.JSONDecodeError as exc:
        raise LLMParserError("LLM did not return valid JSON") from exc

    if not isinstance(obj, dict):
        raise LLMParserError("LLM reply is not a JSON object")
    return obj
