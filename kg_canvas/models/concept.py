# kg_canvas/models/concept.py

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class Importance(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Concept(BaseModel):
    """
    An atomic concept derived from exactly one paper.

    Fields
    ------
    id:
        Identifier local to one expansion reply (e.g. "concept-1").
    name:
        Short name, usually 2-5 words.
    summary:
        One or two sentences explaining the concept.
    importance:
        high / medium / low.
    """

    id: str
    name: str
    summary: str = ""
    importance: Importance = Importance.MEDIUM

    model_config = {"frozen": True}


FALLBACK_CONCEPTS = (
    Concept(
        id="concept-1",
        name="Core Algorithm",
        summary="The main computational approach used to solve the problem",
        importance=Importance.HIGH,
    ),
    Concept(
        id="concept-2",
        name="Data Structure",
        summary="The way data is organized and accessed in the system",
        importance=Importance.HIGH,
    ),
    Concept(
        id="concept-3",
        name="Optimization Technique",
        summary="Methods used to improve performance or efficiency",
        importance=Importance.MEDIUM,
    ),
    Concept(
        id="concept-4",
        name="Evaluation Metric",
        summary="How the approach is measured and validated",
        importance=Importance.MEDIUM,
    ),
    Concept(
        id="concept-5",
        name="Baseline Comparison",
        summary="Comparison with existing approaches in the field",
        importance=Importance.LOW,
    ),
)

