# kg_canvas/sources/semantic_scholar.py

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from kg_canvas.config.settings import settings
from kg_canvas.models.paper import BibliographicRecord

logger = logging.getLogger(__name__)

SEARCH_FIELDS = "title,authors,year,venue,citationCount,referenceCount"
LINK_FIELDS = "title,authors,year,venue,citationCount"


class SemanticScholarError(Exception):
    """
    Domain-specific error for anything that goes wrong talking to Semantic Scholar.
    """
    pass


def record_from_json(data: Dict[str, Any]) -> BibliographicRecord:
    authors = tuple(
        a.get("name") for a in (data.get("authors") or []) if a and a.get("name")
    )
    return BibliographicRecord(
        paper_id=data.get("paperId"),
        title=data.get("title") or "",
        authors=authors,
        year=data.get("year"),
        venue=data.get("venue") or None,
        citation_count=data.get("citationCount"),
        reference_count=data.get("referenceCount"),
    )


class SemanticScholarClient:
    """
    Bibliographic search and reference lists.

    The public methods are lenient: lookup problems are logged and reported
    as None / [] so that adding or expanding a paper never fails on them.
    `_get` is strict and raises SemanticScholarError.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or settings.SEMANTIC_SCHOLAR_API_URL).rstrip("/")
        if api_key is None and settings.SEMANTIC_SCHOLAR_API_KEY is not None:
            api_key = settings.SEMANTIC_SCHOLAR_API_KEY.get_secret_value()
        self.api_key = api_key
        self.timeout = (
            timeout if timeout is not None else settings.SEMANTIC_SCHOLAR_TIMEOUT_SECONDS
        )
        self._session = session or requests.Session()

    def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = {"x-api-key": self.api_key} if self.api_key else {}

        try:
            response = self._session.get(
                url, params=params, headers=headers, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise SemanticScholarError(f"Error contacting Semantic Scholar at {url}: {e}") from e

        if response.status_code != 200:
            raise SemanticScholarError(
                f"Semantic Scholar error {response.status_code}: {response.text[:200]}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise SemanticScholarError(f"Semantic Scholar returned a non-JSON body: {e}") from e

    def search_paper(self, query: str) -> Optional[BibliographicRecord]:
        """
        Return the best match for a free-text query, or None.
        """
        try:
            data = self._get(
                "/paper/search",
                {"query": query, "limit": 1, "fields": SEARCH_FIELDS},
            )
        except SemanticScholarError as exc:
            logger.warning("Error searching Semantic Scholar for %r: %s", query, exc)
            return None

        hits = data.get("data") or []
        if not hits:
            return None
        return record_from_json(hits[0])

    def _linked_papers(self, paper_id: str, relation: str, key: str, limit: int) -> List[BibliographicRecord]:
        try:
            data = self._get(
                f"/paper/{paper_id}/{relation}",
                {"limit": limit, "fields": LINK_FIELDS},
            )
        except SemanticScholarError as exc:
            logger.warning("Error fetching %s for %s: %s", relation, paper_id, exc)
            return []

        records: List[BibliographicRecord] = []
        for item in data.get("data") or []:
            linked = (item or {}).get(key)
            if linked and linked.get("title"):
                records.append(record_from_json(linked))
        return records

    def get_references(self, paper_id: str, limit: Optional[int] = None) -> List[BibliographicRecord]:
        """Works cited by `paper_id`."""
        return self._linked_papers(
            paper_id, "references", "citedPaper", limit or settings.REFERENCE_FETCH_LIMIT
        )

    def get_citations(self, paper_id: str, limit: Optional[int] = None) -> List[BibliographicRecord]:
        """Works citing `paper_id`."""
        return self._linked_papers(
            paper_id, "citations", "citingPaper", limit or settings.REFERENCE_FETCH_LIMIT
        )
