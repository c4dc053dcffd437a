# tests/conftest.py

import random
from typing import Any, Dict, List, Optional, Sequence

import pytest

from kg_canvas.canvas import CanvasController
from kg_canvas.concepts.expander import ConceptExpander
from kg_canvas.models.paper import BibliographicRecord
from kg_canvas.relationships.chat import RelationshipChat
from kg_canvas.relationships.classifier import RelationshipClassifier


class FakeLLM:
    """
    Stands in for OllamaClient. Replies are returned in order (the last one
    repeats); an `error` is raised from every call instead.
    """

    def __init__(self, replies: Sequence[str] = (), error: Optional[Exception] = None):
        self.replies = list(replies)
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def chat(self, system_prompt, user_prompt, temperature=0.3, json_mode=False):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "temperature": temperature,
                "json_mode": json_mode,
            }
        )
        if self.error is not None:
            raise self.error
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0] if self.replies else ""


class FakeBibliography:
    def __init__(
        self,
        found: Optional[BibliographicRecord] = None,
        references: Sequence[BibliographicRecord] = (),
        error: Optional[Exception] = None,
    ):
        self.found = found
        self.references = list(references)
        self.error = error
        self.searches: List[str] = []

    def search_paper(self, query):
        self.searches.append(query)
        if self.error is not None:
            raise self.error
        return self.found

    def get_references(self, paper_id, limit=None):
        if self.error is not None:
            raise self.error
        return list(self.references)

    def get_citations(self, paper_id, limit=None):
        return self.get_references(paper_id, limit)


CONCEPTS_REPLY = (
    '{"concepts": ['
    '{"id": "attn", "name": "Self-Attention", "summary": "Tokens attend to each other.", "importance": "high"},'
    '{"id": "pos", "name": "Positional Encoding", "summary": "Order signal.", "importance": "medium"},'
    '{"id": "ffn", "name": "Feed-Forward Block", "summary": "Per-token MLP.", "importance": "low"}'
    "]}"
)

RELATIONSHIP_REPLY = (
    '{"relationType": "Methodological Improvement", '
    '"summary": "Paper B replaces recurrence in Paper A with attention.", '
    '"confidenceScore": 0.8}'
)


@pytest.fixture
def fake_llm():
    return FakeLLM([CONCEPTS_REPLY])


@pytest.fixture
def records():
    return [
        BibliographicRecord(paper_id=f"ref{i}", title=f"Reference {i}", venue="NeurIPS" if i % 2 else None, year=2017)
        for i in range(12)
    ]


def make_controller(
    bibliography=None,
    concept_llm=None,
    relationship_llm=None,
    chat_llm=None,
    **kwargs,
):
    """
    A CanvasController wired to fakes only (no network).
    """
    return CanvasController(
        concept_expander=ConceptExpander(client=concept_llm or FakeLLM([CONCEPTS_REPLY])),
        classifier=RelationshipClassifier(client=relationship_llm or FakeLLM([RELATIONSHIP_REPLY])),
        bibliography=bibliography or FakeBibliography(),
        chat=RelationshipChat(client=chat_llm or FakeLLM(["They share the attention mechanism."])),
        rng=random.Random(0),
        **kwargs,
    )
