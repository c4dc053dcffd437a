# kg_canvas/models/paper.py

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple


@dataclass(frozen=True)
class Paper:
    """
    A research paper as the graph sees it.

    `paper_id` is the bibliographic id (e.g. a Semantic Scholar paperId) when
    one is known. `full_text` is only present for papers whose document was
    extracted; relationship evidence prefers it over the summary.
    """
    title: str
    summary: str
    authors: Tuple[str, ...] = field(default_factory=tuple)
    year: Optional[int] = None
    paper_id: Optional[str] = None
    doi: Optional[str] = None
    full_text: Optional[str] = None

    @property
    def evidence_text(self) -> str:
        return self.full_text or self.summary or ""

    def with_summary(self, summary: str) -> "Paper":
        """Summary enrichment is the only change a Paper accepts."""
        return replace(self, summary=summary)


@dataclass(frozen=True)
class BibliographicRecord:
    """
    One hit from the bibliographic search / reference-list service.
    """
    paper_id: Optional[str]
    title: str
    authors: Tuple[str, ...] = field(default_factory=tuple)
    year: Optional[int] = None
    venue: Optional[str] = None
    citation_count: Optional[int] = None
    reference_count: Optional[int] = None

    def ghost_summary(self, index: int) -> str:
        """One-line description used for citation (ghost) nodes."""
        if self.venue:
            suffix = f" ({self.year})" if self.year else ""
            return f"Published in {self.venue}{suffix}"
        return f"Citation {index + 1}"
