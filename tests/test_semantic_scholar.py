# tests/test_semantic_scholar.py

import requests

from kg_canvas.models.paper import BibliographicRecord
from kg_canvas.sources.semantic_scholar import SemanticScholarClient, record_from_json


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.requests.append({"url": url, "params": params, "headers": headers})
        if self.error is not None:
            raise self.error
        return self.response


VASWANI = {
    "paperId": "204e3073",
    "title": "Attention Is All You Need",
    "authors": [{"name": "Ashish Vaswani"}, {"name": "Noam Shazeer"}, {"name": None}],
    "year": 2017,
    "venue": "NeurIPS",
    "citationCount": 100000,
    "referenceCount": 40,
}


def test_record_from_json():
    rec = record_from_json(VASWANI)

    assert rec.paper_id == "204e3073"
    assert rec.authors == ("Ashish Vaswani", "Noam Shazeer")
    assert rec.year == 2017
    assert rec.citation_count == 100000


def test_search_returns_first_hit_and_sends_api_key():
    session = FakeSession(FakeResponse(payload={"total": 1, "data": [VASWANI]}))
    client = SemanticScholarClient(base_url="https://s2.test/graph/v1", api_key="secret", session=session)

    rec = client.search_paper("attention is all you need")

    assert rec.title == "Attention Is All You Need"
    sent = session.requests[0]
    assert sent["url"] == "https://s2.test/graph/v1/paper/search"
    assert sent["params"]["query"] == "attention is all you need"
    assert sent["params"]["limit"] == 1
    assert sent["headers"] == {"x-api-key": "secret"}


def test_search_without_hits_or_with_errors_returns_none():
    empty = SemanticScholarClient(
        base_url="https://s2.test", api_key="", session=FakeSession(FakeResponse(payload={"data": []}))
    )
    assert empty.search_paper("nothing") is None

    failing = SemanticScholarClient(
        base_url="https://s2.test", api_key="", session=FakeSession(FakeResponse(status_code=429, text="slow down"))
    )
    assert failing.search_paper("anything") is None

    offline = SemanticScholarClient(
        base_url="https://s2.test",
        api_key="",
        session=FakeSession(error=requests.exceptions.ConnectionError("offline")),
    )
    assert offline.search_paper("anything") is None


def test_references_unwrap_cited_papers():
    payload = {
        "data": [
            {"citedPaper": {"paperId": "r1", "title": "Neural Machine Translation", "year": 2014}},
            {"citedPaper": {"paperId": None, "title": None}},
            {"citedPaper": {"paperId": "r2", "title": "Layer Normalization", "venue": "arXiv"}},
        ]
    }
    session = FakeSession(FakeResponse(payload=payload))
    client = SemanticScholarClient(base_url="https://s2.test", api_key="", session=session)

    refs = client.get_references("204e3073", limit=20)

    assert [r.paper_id for r in refs] == ["r1", "r2"]
    assert session.requests[0]["url"] == "https://s2.test/paper/204e3073/references"
    assert session.requests[0]["params"]["limit"] == 20


def test_references_failure_is_empty():
    client = SemanticScholarClient(
        base_url="https://s2.test", api_key="", session=FakeSession(FakeResponse(status_code=404, text="nope"))
    )
    assert client.get_references("missing") == []


def test_ghost_summary():
    assert BibliographicRecord(paper_id="x", title="T", venue="ICML", year=2020).ghost_summary(0) == (
        "Published in ICML (2020)"
    )
    assert BibliographicRecord(paper_id="x", title="T").ghost_summary(3) == "Citation 4"


def test_citations_unwrap_citing_papers():
    payload = {"data": [{"citingPaper": {"paperId": "c1", "title": "BERT", "year": 2018}}]}
    session = FakeSession(FakeResponse(payload=payload))
    client = SemanticScholarClient(base_url="https://s2.test", api_key="", session=session)

    cites = client.get_citations("204e3073", limit=5)

    assert [c.title for c in cites] == ["BERT"]
    assert session.requests[0]["url"] == "https://s2.test/paper/204e3073/citations"
