# kg_canvas/models/chunk.py

from dataclasses import dataclass


@dataclass(frozen=True)
class Chunk:
    """
    A sentence that plausibly refers to another paper.

    text:            the matching sentence, trimmed
    context:         previous + current + next sentence
    relevance_score: in [0, 1]
    """
    text: str
    context: str
    relevance_score: float
