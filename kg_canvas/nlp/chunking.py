# kg_canvas/nlp/chunking.py

"""
Lexical citation-context extraction.

Given the text of one paper and the title/authors of another, find the
sentences that most plausibly talk about the other paper, and pack the best
of them into a bounded evidence string for the relationship classifier.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

from kg_canvas.config.settings import settings
from kg_canvas.models.chunk import Chunk

_SENTENCE_SPLIT = re.compile(r"[.!?]+")

# Words of this length or shorter are ignored (cheap stop-word suppression).
_MIN_WORD_LENGTH = 3
# Sentences whose trimmed length is at or below this are treated as noise.
_MIN_SENTENCE_LENGTH = 20

_TITLE_WEIGHT = 0.7
_AUTHOR_WEIGHT = 0.3


def _significant_words(text: str) -> List[str]:
    return [w for w in text.lower().split() if len(w) > _MIN_WORD_LENGTH]


def split_sentences(text: str) -> List[str]:
    """
    Split on `.`, `!` and `?` and drop short fragments.

    The returned sentences are untrimmed so that joining them back together
    keeps the original spacing.
    """
    return [
        s for s in _SENTENCE_SPLIT.split(text or "")
        if len(s.strip()) > _MIN_SENTENCE_LENGTH
    ]


def _relevance(title_matches: int, title_word_count: int, author_hit: bool) -> float:
    title_part = 0.0
    if title_word_count:
        title_part = _TITLE_WEIGHT * (title_matches / title_word_count)
    author_part = _AUTHOR_WEIGHT if author_hit else 0.0
    return min(1.0, title_part + author_part)


def extract_citation_chunks(
    paper_text: str,
    cited_title: str,
    cited_authors: Optional[Sequence[str]] = None,
    max_chunks: Optional[int] = None,
) -> List[Chunk]:
    """
    Locate sentences in `paper_text` that reference the cited paper.

    A sentence qualifies when it contains a significant word of `cited_title`
    or a significant word of any cited author's name. Each qualifying
    sentence is returned with its neighbouring sentences as context and a
    relevance score weighting title-word density (0.7) over the author
    signal (0.3), capped at 1.0.

    Results are sorted by relevance (highest first) and truncated to
    `max_chunks` (settings.MAX_CHUNKS by default).
    """
    limit = settings.MAX_CHUNKS if max_chunks is None else max_chunks

    title_words = _significant_words(cited_title or "")
    author_words = [
        word
        for author in (cited_authors or [])
        for word in _significant_words(author or "")
    ]

    sentences = split_sentences(paper_text)
    chunks: List[Chunk] = []

    for i, raw_sentence in enumerate(sentences):
        sentence = raw_sentence.lower()

        title_matches = sum(1 for word in title_words if word in sentence)
        author_hit = any(word in sentence for word in author_words)

        if not title_matches and not author_hit:
            continue

        start = max(0, i - 1)
        end = min(len(sentences), i + 2)
        context = ". ".join(sentences[start:end]).strip()

        chunks.append(
            Chunk(
                text=raw_sentence.strip(),
                context=context,
                relevance_score=_relevance(title_matches, len(title_words), author_hit),
            )
        )

    # sorted() is stable, so equally relevant chunks keep document order
    chunks = sorted(chunks, key=lambda c: c.relevance_score, reverse=True)
    return chunks[:limit]


def combine_chunks_for_analysis(
    chunks: Sequence[Chunk],
    max_length: Optional[int] = None,
) -> str:
    """
    Join chunk contexts (blank-line separated) until the next one would
    push the total past `max_length`.

    Chunks are expected in relevance order, so truncation drops the least
    relevant evidence first. Returns "" for no chunks.
    """
    budget = settings.EVIDENCE_MAX_LENGTH if max_length is None else max_length

    combined = ""
    for chunk in chunks:
        if len(combined) + len(chunk.context) > budget:
            break
        combined += chunk.context + "\n\n"

    return combined.strip()
