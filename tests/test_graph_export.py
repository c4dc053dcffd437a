# tests/test_graph_export.py

from kg_canvas.graph import state as gs
from kg_canvas.graph.export import to_networkx, to_payload
from kg_canvas.graph.state import GraphState, Position
from kg_canvas.models.concept import Concept, Importance
from kg_canvas.models.paper import BibliographicRecord, Paper
from kg_canvas.models.relationship import Relationship


def _state():
    state, a = gs.add_paper(
        GraphState(),
        Paper(title="Paper A", summary="A.", authors=("Ada",), year=2020, paper_id="pa"),
        position=Position(10, 20),
    )
    state, b = gs.add_paper(state, Paper(title="Paper B", summary="B."), now_ms=7)
    state = gs.apply_expansion(
        state,
        a.id,
        [Concept(id="k", name="Key Idea", importance=Importance.HIGH)],
        [BibliographicRecord(paper_id="r", title="Ref")],
    )
    state, edge = gs.upsert_edge(state, a.id, b.id)
    state = gs.record_relationship(
        state, edge.id, Relationship(relation_type="Applied", summary="B applies A.", confidence_score=0.6)
    )
    return state, edge


def test_payload_shape():
    state, edge = _state()

    payload = to_payload(state)

    nodes = {n["id"]: n for n in payload["nodes"]}
    paper = nodes["paper-pa"]
    assert paper["type"] == "paper"
    assert paper["position"] == {"x": 10, "y": 20}
    assert paper["data"]["authors"] == ["Ada"]
    assert paper["data"]["paperId"] == "pa"
    assert paper["data"]["isGhost"] is False

    assert nodes["concept-paper-pa-k"]["data"]["importance"] == "high"
    assert nodes["citation-pa-0"]["data"]["isGhost"] is True
    assert nodes["citation-pa-0"]["data"]["summary"] == "Citation 1"

    edges = {e["id"]: e for e in payload["edges"]}
    related = edges[edge.id]
    assert related["data"]["relationship"] == {
        "relationType": "Applied",
        "summary": "B applies A.",
        "confidenceScore": 0.6,
    }
    assert related["data"]["label"] == "B applies A...."
    assert related["data"]["isAnalyzing"] is False


def test_networkx_snapshot():
    state, edge = _state()

    G = to_networkx(state)

    assert G.number_of_nodes() == 4
    assert G.number_of_edges() == 3
    assert G.nodes["paper-pa"]["title"] == "Paper A"
    assert G.edges["paper-pa", "paper-7", edge.id]["type"] == "related"
