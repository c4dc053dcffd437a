from .chunk import Chunk
from .concept import FALLBACK_CONCEPTS, Concept, Importance
from .paper import BibliographicRecord, Paper
from .relationship import (
    FALLBACK_CONFIDENCE,
    FALLBACK_SUMMARY,
    RelationType,
    Relationship,
    fallback_relationship,
)

__all__ = [
    "Chunk",
    "Concept",
    "FALLBACK_CONCEPTS",
    "Importance",
    "BibliographicRecord",
    "Paper",
    "FALLBACK_CONFIDENCE",
    "FALLBACK_SUMMARY",
    "RelationType",
    "Relationship",
    "fallback_relationship",
]
