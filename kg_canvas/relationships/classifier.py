# kg_canvas/relationships/classifier.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from kg_canvas.config.settings import settings
from kg_canvas.llm.client import OllamaClient
from kg_canvas.llm.parsing import ParseError, ParseOk, ParseResult, parse_json_object
from kg_canvas.llm.prompts import (
    RELATIONSHIP_SYSTEM_PROMPT,
    relationship_user_prompt,
    summaries_as_evidence,
)
from kg_canvas.models.paper import Paper
from kg_canvas.models.relationship import Relationship, fallback_relationship
from kg_canvas.nlp.chunking import combine_chunks_for_analysis, extract_citation_chunks

logger = logging.getLogger(__name__)


def parse_relationship_reply(content: str) -> ParseResult[Relationship]:
    """
    Parse a classifier reply into a Relationship.

    Only an unusable reply (empty, invalid JSON, not an object) is a
    ParseError; missing or odd fields are normalized by the model itself.
    """
    parsed = parse_json_object(content)
    if isinstance(parsed, ParseError):
        return parsed

    try:
        return ParseOk(Relationship.model_validate(parsed.value))
    except ValidationError as e:
        return ParseError(f"reply does not match the relationship schema: {e}", raw=content)


@dataclass(frozen=True)
class RelationshipAnalysis:
    """
    Result of the full chunk -> evidence -> classification pipeline.
    """
    relationship: Relationship
    citation_chunks_found: int
    evidence: str


class RelationshipClassifier:
    """
    Classifies how paper B relates to paper A using the language model.

    Failures never escape: transport errors and unusable replies both
    resolve to `fallback_relationship()`.
    """

    def __init__(self, client: Any = None, temperature: Optional[float] = None) -> None:
        self.client = client if client is not None else OllamaClient()
        self.temperature = (
            settings.RELATIONSHIP_TEMPERATURE if temperature is None else temperature
        )

    def classify(self, paper_a: Paper, paper_b: Paper, evidence: str = "") -> Relationship:
        context = (evidence or "").strip() or summaries_as_evidence(
            paper_a.summary or "", paper_b.summary or ""
        )
        user_prompt = relationship_user_prompt(
            paper_a.title,
            paper_a.summary or "",
            paper_b.title,
            paper_b.summary or "",
            context,
        )

        try:
            content = self.client.chat(
                RELATIONSHIP_SYSTEM_PROMPT,
                user_prompt,
                temperature=self.temperature,
                json_mode=True,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Relationship analysis failed for %r -> %r: %s; using fallback",
                paper_a.title, paper_b.title, exc,
            )
            return fallback_relationship()

        result = parse_relationship_reply(content)
        if isinstance(result, ParseError):
            logger.warning(
                "Unusable relationship reply for %r -> %r (%s); using fallback",
                paper_a.title, paper_b.title, result.reason,
            )
            return fallback_relationship()

        return result.value

    def analyze(self, paper_a: Paper, paper_b: Paper) -> RelationshipAnalysis:
        """
        Look for places where paper B discusses paper A, then classify.

        When paper B's text never mentions paper A the classifier falls back
        to comparing the two summaries.
        """
        chunks = extract_citation_chunks(
            paper_b.evidence_text,
            paper_a.title,
            list(paper_a.authors),
        )
        evidence = combine_chunks_for_analysis(chunks)
        logger.info(
            "Found %d citation chunks of %r in %r", len(chunks), paper_a.title, paper_b.title
        )

        return RelationshipAnalysis(
            relationship=self.classify(paper_a, paper_b, evidence),
            citation_chunks_found=len(chunks),
            evidence=evidence,
        )


def classify_relationship(
    paper_a: Paper,
    paper_b: Paper,
    evidence: str = "",
    client: Any = None,
) -> Relationship:
    """Functional shortcut around RelationshipClassifier.classify."""
    return RelationshipClassifier(client=client).classify(paper_a, paper_b, evidence)
