# tests/test_classifier.py

from conftest import RELATIONSHIP_REPLY, FakeLLM

from kg_canvas.llm.client import LLMClientError
from kg_canvas.llm.parsing import ParseError, ParseOk
from kg_canvas.models.paper import Paper
from kg_canvas.models.relationship import FALLBACK_SUMMARY, RelationType
from kg_canvas.relationships.classifier import (
    RelationshipClassifier,
    classify_relationship,
    parse_relationship_reply,
)


PAPER_A = Paper(
    title="Graph Coloring Algorithms",
    summary="A survey of greedy and exact graph coloring methods.",
    authors=("Jane Smith",),
)
PAPER_B = Paper(
    title="Register Allocation Revisited",
    summary="We apply coloring heuristics to register allocation.",
)


def test_fenced_reply_is_parsed_and_confidence_clamped():
    reply = '```json\n{"relationType":"Applied","summary":"B applies A.","confidenceScore":1.4}\n```'
    llm = FakeLLM([reply])

    rel = classify_relationship(PAPER_A, PAPER_B, client=llm)

    assert rel.relation_type == RelationType.APPLIED
    assert rel.confidence_score == 1.0
    assert rel.summary == "B applies A."


def test_summaries_are_used_when_no_evidence():
    llm = FakeLLM([RELATIONSHIP_REPLY])

    RelationshipClassifier(client=llm).classify(PAPER_A, PAPER_B)

    call = llm.calls[0]
    assert call["json_mode"] is True
    assert call["temperature"] == 0.2
    assert "Paper A Summary: A survey of greedy" in call["user_prompt"]
    assert "Paper B Summary: We apply coloring" in call["user_prompt"]


def test_transport_failure_returns_fallback():
    llm = FakeLLM(error=LLMClientError("connection refused"))

    rel = RelationshipClassifier(client=llm).classify(PAPER_A, PAPER_B, "some evidence")

    assert rel.relation_type == RelationType.BACKGROUND_REFERENCE
    assert rel.summary == FALLBACK_SUMMARY
    assert rel.confidence_score == 0.3


def test_unusable_reply_returns_fallback():
    llm = FakeLLM(["I think they are related."])

    rel = RelationshipClassifier(client=llm).classify(PAPER_A, PAPER_B)

    assert rel.summary == FALLBACK_SUMMARY
    assert rel.confidence_score == 0.3


def test_unknown_type_and_low_confidence_are_normalized():
    llm = FakeLLM(['{"relationType": "Revolutionary", "summary": "?", "confidenceScore": -5}'])

    rel = RelationshipClassifier(client=llm).classify(PAPER_A, PAPER_B)

    assert rel.relation_type == RelationType.BACKGROUND_REFERENCE
    assert rel.confidence_score == 0.0


def test_parse_relationship_reply_tags_errors():
    assert isinstance(parse_relationship_reply(""), ParseError)
    assert isinstance(parse_relationship_reply("[1, 2]"), ParseError)
    assert isinstance(parse_relationship_reply("{not json"), ParseError)

    ok = parse_relationship_reply(RELATIONSHIP_REPLY)
    assert isinstance(ok, ParseOk)
    assert ok.value.relation_type == RelationType.METHODOLOGICAL_IMPROVEMENT


def test_analyze_uses_citation_chunks_from_paper_b():
    paper_b = Paper(
        title="Register Allocation Revisited",
        summary="We apply coloring heuristics to register allocation.",
        full_text=(
            "Our allocator follows the graph coloring approach of Smith closely. "
            "Spilling decisions are made with a cost model of our own design."
        ),
    )
    llm = FakeLLM([RELATIONSHIP_REPLY])

    analysis = RelationshipClassifier(client=llm).analyze(PAPER_A, paper_b)

    assert analysis.citation_chunks_found == 1
    assert "graph coloring approach of Smith" in analysis.evidence
    assert analysis.evidence in llm.calls[0]["user_prompt"]
    assert analysis.relationship.confidence_score == 0.8


def test_analyze_without_mentions_compares_summaries():
    llm = FakeLLM([RELATIONSHIP_REPLY])

    analysis = RelationshipClassifier(client=llm).analyze(
        Paper(title="Attention Models", summary="About attention."),
        Paper(title="Other", summary="Nothing relevant here."),
    )

    assert analysis.citation_chunks_found == 0
    assert analysis.evidence == ""
    assert "Paper A Summary: About attention." in llm.calls[0]["user_prompt"]
