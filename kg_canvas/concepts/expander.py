# kg_canvas/concepts/expander.py

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from kg_canvas.config.settings import settings
from kg_canvas.llm.client import OllamaClient
from kg_canvas.llm.parsing import ParseError, ParseOk, ParseResult, parse_json_object
from kg_canvas.llm.prompts import CONCEPT_SYSTEM_PROMPT, concept_user_prompt
from kg_canvas.models.concept import FALLBACK_CONCEPTS, Concept, Importance

logger = logging.getLogger(__name__)


def _importance(value: Any) -> Importance:
    if isinstance(value, str):
        try:
            return Importance(value.strip().lower())
        except ValueError:
            pass
    return Importance.MEDIUM


def _concept_from_item(item: Dict[str, Any], index: int) -> Concept:
    raw_id = item.get("id")
    name = item.get("name")
    summary = item.get("summary")
    return Concept(
        id=str(raw_id).strip() if raw_id not in (None, "") else f"concept-{index + 1}",
        name=name.strip() if isinstance(name, str) and name.strip() else f"Concept {index + 1}",
        summary=summary.strip() if isinstance(summary, str) else "",
        importance=_importance(item.get("importance")),
    )


def parse_concepts_reply(content: str, max_concepts: Optional[int] = None) -> ParseResult[List[Concept]]:
    """
    Parse `{"concepts": [...]}` into Concept objects.

    Items that are not JSON objects are skipped; missing names, summaries
    and importance tags get defaults. A reply with no usable items is a
    ParseError.
    """
    limit = settings.MAX_CONCEPTS if max_concepts is None else max_concepts

    parsed = parse_json_object(content)
    if isinstance(parsed, ParseError):
        return parsed

    items = parsed.value.get("concepts")
    if not isinstance(items, list) or not items:
        return ParseError("reply has no non-empty 'concepts' list", raw=content)

    concepts = [
        _concept_from_item(item, i)
        for i, item in enumerate(items)
        if isinstance(item, dict)
    ]
    if not concepts:
        return ParseError("no concept in the reply is a JSON object", raw=content)

    return ParseOk(concepts[:limit])


class ConceptExpander:
    """
    Decomposes a paper into atomic concepts with the language model.

    `expand()` always returns a non-empty list: on any transport or
    validation failure it returns FALLBACK_CONCEPTS.
    """

    def __init__(self, client: Any = None, temperature: Optional[float] = None) -> None:
        self.client = client if client is not None else OllamaClient()
        self.temperature = settings.CONCEPT_TEMPERATURE if temperature is None else temperature

    def expand(self, paper_title: str, paper_summary: str) -> List[Concept]:
        try:
            content = self.client.chat(
                CONCEPT_SYSTEM_PROMPT,
                concept_user_prompt(paper_title, paper_summary),
                temperature=self.temperature,
                json_mode=True,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Concept extraction failed for %r: %s", paper_title, exc)
            logger.info("Falling back to generic concepts for %r", paper_title)
            return list(FALLBACK_CONCEPTS)

        result = parse_concepts_reply(content)
        if isinstance(result, ParseError):
            logger.warning(
                "Invalid concepts reply for %r (%s); falling back to generic concepts",
                paper_title, result.reason,
            )
            return list(FALLBACK_CONCEPTS)

        return result.value


def expand_concepts(title: str, summary: str, client: Any = None) -> List[Concept]:
    """Functional shortcut around ConceptExpander.expand."""
    return ConceptExpander(client=client).expand(title, summary)
