# tests/test_web_app.py

import io

import pytest
from conftest import FakeBibliography, make_controller
from fastapi.testclient import TestClient
from pypdf import PdfWriter

from kg_canvas.models.paper import BibliographicRecord
from kg_canvas.web.app import app


class FakeHealthClient:
    def check_connection(self):
        return True

    def list_models(self):
        return ["llama3.2:3b"]


@pytest.fixture
def client():
    found = BibliographicRecord(paper_id="204e3073", title="Attention Is All You Need", year=2017)
    app.state.controller = make_controller(bibliography=FakeBibliography(found=found))
    app.state.llm_client = FakeHealthClient()
    return TestClient(app)


def _add_paper(client, title, paper_id):
    r = client.post(
        "/papers",
        json={"title": title, "summary": f"Summary of {title}.", "paper_id": paper_id},
    )
    assert r.status_code == 201
    return r.json()["node_id"]


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"

    r = client.get("/health", params={"check_llm": True})
    body = r.json()
    assert body["llm_available"] is True
    assert body["llm_models"] == ["llama3.2:3b"]


def test_add_paper_with_lookup_and_graph(client):
    r = client.post("/papers", json={"title": "attention is all you need", "summary": "Transformers."})
    assert r.status_code == 201
    assert r.json()["node_id"] == "paper-204e3073"

    graph = client.get("/graph").json()
    assert [n["id"] for n in graph["nodes"]] == ["paper-204e3073"]
    assert graph["nodes"][0]["data"]["year"] == 2017
    assert graph["edges"] == []


def test_add_paper_validation(client):
    r = client.post("/papers", json={"title": "No summary", "summary": "  ", "lookup": False})
    assert r.status_code == 400

    r = client.post("/papers", json={"title": "Missing summary field"})
    assert r.status_code == 422


def test_duplicate_bibliographic_id_is_rejected(client):
    _add_paper(client, "Paper A", "pa")
    r = client.post("/papers", json={"title": "Again", "summary": "x", "paper_id": "pa"})
    assert r.status_code == 400


def test_expand(client):
    node_id = _add_paper(client, "Paper A", "pa")

    r = client.post(f"/papers/{node_id}/expand")
    assert r.status_code == 200
    assert r.json() == {"node_id": node_id, "concept_count": 3, "citation_count": 0}

    types = [n["type"] for n in client.get("/graph").json()["nodes"]]
    assert types.count("concept") == 3

    assert client.post("/papers/paper-404/expand").status_code == 404


def test_relationship_and_chat(client):
    a = _add_paper(client, "Paper A", "pa")
    b = _add_paper(client, "Paper B", "pb")

    r = client.post("/relationships", json={"source_id": a, "target_id": b})
    assert r.status_code == 200
    body = r.json()
    assert body["relationship"]["relationType"] == "Methodological Improvement"
    assert body["relationship"]["confidenceScore"] == 0.8
    assert body["citation_chunks_found"] == 0
    edge_id = body["edge_id"]

    r = client.post(f"/edges/{edge_id}/analyze")
    assert r.status_code == 200
    assert r.json()["edge_id"] == edge_id

    r = client.post(
        "/relationships/chat",
        json={
            "edge_id": edge_id,
            "question": "What do they share?",
            "history": [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}],
        },
    )
    assert r.status_code == 200
    assert r.json()["answer"] == "They share the attention mechanism."


def test_relationship_errors(client):
    a = _add_paper(client, "Paper A", "pa")

    assert client.post("/relationships", json={"source_id": a, "target_id": "nope"}).status_code == 404
    assert client.post("/relationships", json={"source_id": a, "target_id": a}).status_code == 400
    assert client.post("/edges/edge-404/analyze").status_code == 404
    r = client.post("/relationships/chat", json={"edge_id": "edge-404", "question": "Why?"})
    assert r.status_code == 404


def test_search(client):
    r = client.post("/papers/search", json={"query": "attention"})
    assert r.status_code == 200
    assert r.json()["paper_id"] == "204e3073"

    app.state.controller = make_controller(bibliography=FakeBibliography(found=None))
    assert client.post("/papers/search", json={"query": "unknown"}).status_code == 404
    assert client.post("/papers/search", json={"query": "  "}).status_code == 400


def test_layout_direction(client):
    a = _add_paper(client, "Paper A", "pa")
    b = _add_paper(client, "Paper B", "pb")
    client.post("/relationships", json={"source_id": a, "target_id": b})

    graph = client.post("/graph/layout", json={"direction": "LR"}).json()

    nodes = {n["id"]: n for n in graph["nodes"]}
    assert nodes[a]["position"] == {"x": 0.0, "y": 0.0}
    assert nodes[b]["position"] == {"x": 430.0, "y": 0.0}
    assert nodes[a]["sourcePosition"] == "right"


def test_extract_pdf(client):
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buf = io.BytesIO()
    writer.write(buf)

    r = client.post(
        "/documents/extract",
        files={"file": ("residual_learning.pdf", buf.getvalue(), "application/pdf")},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["title"] == "residual_learning"
    assert body["num_pages"] == 1

    r = client.post("/documents/extract", files={"file": ("notes.txt", b"plain text", "text/plain")})
    assert r.status_code == 400

    r = client.post("/documents/extract", files={"file": ("broken.pdf", b"not a pdf", "application/pdf")})
    assert r.status_code == 400


def test_update_summary(client):
    node_id = _add_paper(client, "Paper A", "pa")

    r = client.put(f"/papers/{node_id}/summary", json={"summary": "A better abstract."})
    assert r.status_code == 200

    nodes = client.get("/graph").json()["nodes"]
    assert nodes[0]["data"]["summary"] == "A better abstract."
    assert client.put("/papers/paper-404/summary", json={"summary": "x"}).status_code == 404
