# kg_canvas/llm/parsing.py

"""
Turning raw model replies into structured values.

Replies are parsed into a tagged result instead of raising, so every
caller has to decide explicitly what a ParseError falls back to.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Generic, TypeVar, Union

T = TypeVar("T")

_OPENING_FENCE = re.compile(r"^```[a-zA-Z0-9_-]*\s*")
_CLOSING_FENCE = re.compile(r"\s*```$")


@dataclass(frozen=True)
class ParseOk(Generic[T]):
    value: T


@dataclass(frozen=True)
class ParseError:
    reason: str
    raw: str = ""


ParseResult = Union[ParseOk[T], ParseError]


def strip_code_fences(content: str) -> str:
    """
    Remove a surrounding markdown code fence (```json ... ``` or ``` ... ```).
    """
    cleaned = (content or "").strip()
    if cleaned.startswith("```"):
        cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
        cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_json_object(content: str) -> ParseResult[Dict[str, Any]]:
    """
    Parse a reply that must be a single JSON object.
    """
    cleaned = strip_code_fences(content)
    if not cleaned:
        return ParseError("empty reply", raw=content or "")

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        return ParseError(f"invalid JSON: {e}", raw=content)

    if not isinstance(parsed, dict):
        return ParseError(
            f"expected a JSON object, got {type(parsed).__name__}",
            raw=content,
        )
    return ParseOk(parsed)
