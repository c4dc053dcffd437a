# kg_canvas/models/relationship.py

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RelationType(str, Enum):
    INCREMENTAL = "Incremental"
    CONTRADICTORY = "Contradictory"
    APPLIED = "Applied"
    METHODOLOGICAL_IMPROVEMENT = "Methodological Improvement"
    THEORETICAL_EXTENSION = "Theoretical Extension"
    COMPARATIVE_ANALYSIS = "Comparative Analysis"
    BACKGROUND_REFERENCE = "Background Reference"


RELATION_DESCRIPTIONS = {
    RelationType.INCREMENTAL: "Paper B builds upon or extends the work in Paper A",
    RelationType.CONTRADICTORY: "Paper B challenges, refutes, or contradicts findings in Paper A",
    RelationType.APPLIED: "Paper B applies methods or concepts from Paper A to a new domain or problem",
    RelationType.METHODOLOGICAL_IMPROVEMENT: "Paper B improves upon the methodology or techniques in Paper A",
    RelationType.THEORETICAL_EXTENSION: "Paper B extends the theoretical framework from Paper A",
    RelationType.COMPARATIVE_ANALYSIS: "Paper B compares its approach with Paper A",
    RelationType.BACKGROUND_REFERENCE: "Paper A is cited as background or related work without direct extension",
}

UNAVAILABLE_SUMMARY = "Relationship analysis unavailable."
FALLBACK_SUMMARY = (
    "Relationship analysis unavailable. Papers may be related but specific "
    "connection could not be determined."
)
DEFAULT_CONFIDENCE = 0.5
FALLBACK_CONFIDENCE = 0.3

_NORMALIZED_NAMES = {
    re.sub(r"[\s_\-]+", " ", rt.value).strip().lower(): rt for rt in RelationType
}


def coerce_relation_type(value: Any) -> RelationType:
    """
    Map free-form classifier output onto the fixed taxonomy.

    Matching ignores case and treats `_`, `-` and runs of whitespace alike.
    Anything unrecognized becomes BACKGROUND_REFERENCE.
    """
    if isinstance(value, RelationType):
        return value
    if not isinstance(value, str):
        return RelationType.BACKGROUND_REFERENCE

    key = re.sub(r"[\s_\-]+", " ", value).strip().lower()
    return _NORMALIZED_NAMES.get(key, RelationType.BACKGROUND_REFERENCE)


def clamp_confidence(value: Any, default: float = DEFAULT_CONFIDENCE) -> float:
    """
    Clamp a confidence score into [0, 1].

    Booleans, non-numeric strings, NaN and missing values fall back to `default`.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number):
        return default
    return max(0.0, min(1.0, number))


class Relationship(BaseModel):
    """
    Typed, confidence-scored relationship attached to a `related` edge.

    Serialized with the camelCase names the visualization layer expects
    (`relationType`, `confidenceScore`); snake_case names are accepted too.
    Construction never fails on odd values: the relation type is coerced,
    a missing summary becomes UNAVAILABLE_SUMMARY and the confidence is clamped.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    relation_type: RelationType = Field(
        default=RelationType.BACKGROUND_REFERENCE,
        alias="relationType",
    )
    summary: str = Field(default=UNAVAILABLE_SUMMARY)
    confidence_score: float = Field(
        default=DEFAULT_CONFIDENCE,
        alias="confidenceScore",
        ge=0.0,
        le=1.0,
    )

    @field_validator("relation_type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> RelationType:
        return coerce_relation_type(value)

    @field_validator("summary", mode="before")
    @classmethod
    def _default_summary(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            return UNAVAILABLE_SUMMARY
        return value.strip()

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> float:
        return clamp_confidence(value)

    @property
    def label(self) -> str:
        """Short edge label: the first 50 characters of the summary."""
        return self.summary[:50] + "..."

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


def fallback_relationship(summary: Optional[str] = None) -> Relationship:
    """The deterministic relationship used when analysis fails outright."""
    return Relationship(
        relation_type=RelationType.BACKGROUND_REFERENCE,
        summary=summary or FALLBACK_SUMMARY,
        confidence_score=FALLBACK_CONFIDENCE,
    )
