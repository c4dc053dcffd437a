# kg_canvas/api/models.py

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from kg_canvas.config.settings import LayoutDirection
from kg_canvas.models.relationship import Relationship


class PaperCreateRequest(BaseModel):
    title: str = Field(..., description="Paper title.")
    summary: str = Field(..., description="Summary or pasted abstract.")
    authors: List[str] = Field(default_factory=list)
    year: Optional[int] = None
    paper_id: Optional[str] = Field(
        None,
        description="Bibliographic id, if already known.",
    )
    full_text: Optional[str] = Field(
        None,
        description="Full document text, used as relationship evidence.",
    )
    lookup: bool = Field(
        True,
        description="Search the bibliographic service for authors/year/id when paper_id is not given.",
    )


class PaperCreated(BaseModel):
    node_id: str


class SummaryUpdate(BaseModel):
    summary: str = Field(..., description="New summary, e.g. a pasted abstract.")


class PaperSearchRequest(BaseModel):
    query: str


class PaperSearchResult(BaseModel):
    paper_id: Optional[str] = None
    title: str
    authors: List[str] = Field(default_factory=list)
    year: Optional[int] = None
    venue: Optional[str] = None
    citation_count: Optional[int] = None
    reference_count: Optional[int] = None


class ExpansionResponse(BaseModel):
    node_id: str
    concept_count: int
    citation_count: int


class RelateRequest(BaseModel):
    source_id: str = Field(..., description="Node id of Paper A.")
    target_id: str = Field(..., description="Node id of Paper B.")


class RelationshipResponse(BaseModel):
    edge_id: str
    relationship: Relationship
    citation_chunks_found: int = Field(
        0,
        description="How many citation chunks backed the classification (0 means summaries were compared).",
    )


class ChatTurn(BaseModel):
    role: str = Field(..., description="\"user\" or \"assistant\".")
    content: str


class RelationshipQuestion(BaseModel):
    edge_id: str
    question: str
    history: List[ChatTurn] = Field(default_factory=list)


class ChatResponse(BaseModel):
    answer: str


class LayoutRequest(BaseModel):
    direction: LayoutDirection = LayoutDirection.TOP_BOTTOM


class HealthResponse(BaseModel):
    status: str
    llm_available: Optional[bool] = None
    llm_models: Optional[List[str]] = None


class DocumentResponse(BaseModel):
    title: str
    summary: str
    full_text: str
    num_pages: int
    metadata: Dict[str, Any] = Field(default_factory=dict)
