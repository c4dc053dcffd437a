# kg_canvas/canvas.py

"""
The controller that owns the canvas state.

All graph mutations go through CanvasController. Long-running collaborator
calls (language model, bibliographic lookups) run in a worker thread; when
they complete, their result is applied to the *current* state, not to the
snapshot taken before the call, so concurrent operations on different
nodes do not overwrite each other.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence

from starlette.concurrency import run_in_threadpool

from kg_canvas.concepts.expander import ConceptExpander
from kg_canvas.config.settings import LayoutDirection, ReexpansionMode, settings
from kg_canvas.graph import state as gs
from kg_canvas.graph.layout import LayoutOptions, layout
from kg_canvas.graph.schema import EdgeType, NodeType, OperationKind
from kg_canvas.graph.state import GraphState, GraphStateError, Node
from kg_canvas.models.concept import FALLBACK_CONCEPTS
from kg_canvas.models.paper import BibliographicRecord, Paper
from kg_canvas.models.relationship import Relationship, fallback_relationship
from kg_canvas.relationships.chat import ChatMessage, RelationshipChat
from kg_canvas.relationships.classifier import RelationshipClassifier
from kg_canvas.sources.semantic_scholar import SemanticScholarClient

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    OK = "ok"
    INVALID = "invalid"
    NOT_FOUND = "not_found"
    BUSY = "busy"


@dataclass(frozen=True)
class Outcome:
    """
    Result of a controller operation. Rejections carry a human-readable
    `reason` instead of raising.
    """
    status: OutcomeStatus
    reason: Optional[str] = None
    node_id: Optional[str] = None
    edge_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.OK


@dataclass(frozen=True)
class ExpansionOutcome(Outcome):
    concept_count: int = 0
    citation_count: int = 0


@dataclass(frozen=True)
class RelationshipOutcome(Outcome):
    relationship: Optional[Relationship] = None
    citation_chunks_found: int = 0


@dataclass(frozen=True)
class ChatOutcome(Outcome):
    answer: Optional[str] = None


class CanvasController:
    def __init__(
        self,
        concept_expander: Any = None,
        classifier: Any = None,
        bibliography: Any = None,
        chat: Any = None,
        state: Optional[GraphState] = None,
        reexpansion_mode: Optional[ReexpansionMode] = None,
        layout_direction: Optional[LayoutDirection] = None,
        layout_options: Optional[LayoutOptions] = None,
        auto_layout: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.concept_expander = concept_expander or ConceptExpander()
        self.classifier = classifier or RelationshipClassifier()
        self.bibliography = bibliography or SemanticScholarClient()
        self.chat = chat or RelationshipChat()
        self.reexpansion_mode = ReexpansionMode(reexpansion_mode or settings.REEXPANSION_MODE)
        self.layout_direction = LayoutDirection(layout_direction or settings.LAYOUT_DIRECTION)
        self.layout_options = layout_options or LayoutOptions.from_settings()
        self.auto_layout = auto_layout
        self._rng = rng or random.Random()
        self._state = state or GraphState()

    @property
    def state(self) -> GraphState:
        return self._state

    # ------------------------------------------------------------------
    # Papers
    # ------------------------------------------------------------------

    def add_paper(
        self,
        title: str,
        summary: str,
        authors: Sequence[str] = (),
        year: Optional[int] = None,
        paper_id: Optional[str] = None,
        doi: Optional[str] = None,
        full_text: Optional[str] = None,
    ) -> Outcome:
        title = (title or "").strip()
        summary = (summary or "").strip()
        if not title or not summary:
            return Outcome(OutcomeStatus.INVALID, "Paper title and summary are required")

        paper = Paper(
            title=title,
            summary=summary,
            authors=tuple(a for a in authors if a),
            year=year,
            paper_id=paper_id or None,
            doi=doi,
            full_text=full_text,
        )
        try:
            self._state, node = gs.add_paper(self._state, paper, rng=self._rng)
        except GraphStateError as exc:
            return Outcome(OutcomeStatus.INVALID, str(exc))

        logger.info("Added paper node %s (%r)", node.id, title)
        return Outcome(OutcomeStatus.OK, node_id=node.id)

    async def add_paper_with_lookup(
        self,
        title: str,
        summary: str,
        full_text: Optional[str] = None,
    ) -> Outcome:
        """
        Add a paper, enriching authors/year/bibliographic id from a title
        search. The paper is added even when the search finds nothing or fails.
        """
        if not (title or "").strip() or not (summary or "").strip():
            return Outcome(OutcomeStatus.INVALID, "Paper title and summary are required")

        record: Optional[BibliographicRecord] = None
        try:
            record = await run_in_threadpool(self.bibliography.search_paper, title.strip())
        except Exception as exc:  # noqa: BLE001
            logger.warning("Paper lookup failed, continuing without metadata: %s", exc)

        if record is None:
            return self.add_paper(title, summary, full_text=full_text)

        return self.add_paper(
            title,
            summary,
            authors=record.authors,
            year=record.year,
            paper_id=record.paper_id,
            full_text=full_text,
        )

    def update_summary(self, node_id: str, summary: str) -> Outcome:
        """Replace a paper's summary, e.g. with a pasted abstract."""
        summary = (summary or "").strip()
        if not summary:
            return Outcome(OutcomeStatus.INVALID, "Summary is required", node_id=node_id)
        if not self._state.has_node(node_id):
            return Outcome(OutcomeStatus.NOT_FOUND, f"Node {node_id!r} not found", node_id=node_id)

        try:
            self._state = gs.update_paper_summary(self._state, node_id, summary)
        except GraphStateError as exc:
            return Outcome(OutcomeStatus.INVALID, str(exc), node_id=node_id)
        return Outcome(OutcomeStatus.OK, node_id=node_id)

    # ------------------------------------------------------------------
    # Expansion
    # ------------------------------------------------------------------

    async def _fetch_citations(self, paper: Paper) -> List[BibliographicRecord]:
        if not paper.paper_id:
            return []
        try:
            references = await run_in_threadpool(self.bibliography.get_references, paper.paper_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Error fetching citations for %s: %s", paper.paper_id, exc)
            return []
        return list(references)[: settings.MAX_CITATIONS_PER_EXPANSION]

    async def expand_paper(self, node_id: str) -> ExpansionOutcome:
        """
        Add a concept cluster and citation ghosts to a paper node.

        While an expansion of `node_id` is outstanding, further requests for
        the same node are rejected with status BUSY. Expansions of different
        nodes may overlap.

        Citations are fetched even when the concept expander fails and the
        generic concepts are used instead. The two sources fail
        independently, so a model outage does not hide the paper's
        references.
        """
        node = self._state.node(node_id)
        if node is None:
            return ExpansionOutcome(OutcomeStatus.NOT_FOUND, f"Node {node_id!r} not found", node_id=node_id)
        if node.type != NodeType.PAPER or node.paper is None:
            return ExpansionOutcome(OutcomeStatus.INVALID, "Only paper nodes can be expanded", node_id=node_id)
        if self._state.is_in_flight(OperationKind.EXPAND, node_id):
            return ExpansionOutcome(OutcomeStatus.BUSY, "Expansion already in progress", node_id=node_id)

        paper = node.paper
        self._state = gs.begin_operation(self._state, OperationKind.EXPAND, node_id)
        try:
            try:
                concepts = await run_in_threadpool(
                    self.concept_expander.expand, paper.title, paper.summary
                )
            except Exception:  # noqa: BLE001
                logger.exception("Concept expansion of %s failed; using generic concepts", node_id)
                concepts = list(FALLBACK_CONCEPTS)
            citations = await self._fetch_citations(paper)

            try:
                self._state = gs.apply_expansion(
                    self._state, node_id, concepts, citations, self.reexpansion_mode
                )
            except GraphStateError as exc:
                return ExpansionOutcome(OutcomeStatus.INVALID, str(exc), node_id=node_id)

            logger.info(
                "Expanded %s into %d concepts and %d citations",
                node_id, len(concepts), len(citations),
            )
            if self.auto_layout:
                self.relayout()

            return ExpansionOutcome(
                OutcomeStatus.OK,
                node_id=node_id,
                concept_count=len(concepts),
                citation_count=len(citations),
            )
        finally:
            self._state = gs.end_operation(self._state, OperationKind.EXPAND, node_id)

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def _paper_pair(self, source_id: str, target_id: str) -> Optional[Outcome]:
        for node_id in (source_id, target_id):
            node = self._state.node(node_id)
            if node is None:
                return Outcome(OutcomeStatus.NOT_FOUND, f"Node {node_id!r} not found")
            if node.type != NodeType.PAPER:
                return Outcome(
                    OutcomeStatus.INVALID,
                    "Both nodes must be papers for relationship analysis",
                )
        return None

    def connect_papers(self, source_id: str, target_id: str) -> Outcome:
        """
        Find the edge between two papers (either direction) or create a
        `related` edge from source to target.
        """
        rejection = self._paper_pair(source_id, target_id)
        if rejection is not None:
            return rejection

        try:
            self._state, edge = gs.upsert_edge(self._state, source_id, target_id, EdgeType.RELATED)
        except GraphStateError as exc:
            return Outcome(OutcomeStatus.INVALID, str(exc))
        return Outcome(OutcomeStatus.OK, edge_id=edge.id)

    async def analyze_edge(self, edge_id: str) -> RelationshipOutcome:
        """
        Classify the relationship between the two papers an edge connects.

        The stored source is Paper A and the target Paper B. The edge is
        marked analyzing while the request is outstanding; a failed analysis
        still labels it with the fallback relationship.
        """
        edge = self._state.edge(edge_id)
        if edge is None:
            return RelationshipOutcome(OutcomeStatus.NOT_FOUND, f"Edge {edge_id!r} not found", edge_id=edge_id)
        rejection = self._paper_pair(edge.source, edge.target)
        if rejection is not None:
            return RelationshipOutcome(rejection.status, rejection.reason, edge_id=edge_id)
        if edge.analyzing:
            return RelationshipOutcome(OutcomeStatus.BUSY, "Analysis already in progress", edge_id=edge_id)

        paper_a = self._state.node(edge.source).paper
        paper_b = self._state.node(edge.target).paper
        self._state = gs.mark_edge_analyzing(self._state, edge_id)

        chunks_found = 0
        try:
            analysis = await run_in_threadpool(self.classifier.analyze, paper_a, paper_b)
            relationship = analysis.relationship
            chunks_found = analysis.citation_chunks_found
        except Exception:  # noqa: BLE001
            logger.exception("Error analyzing relationship on %s; using fallback", edge_id)
            relationship = fallback_relationship()

        if self._state.edge(edge_id) is None:
            # edge disappeared while the request was outstanding
            return RelationshipOutcome(OutcomeStatus.NOT_FOUND, f"Edge {edge_id!r} not found", edge_id=edge_id)

        self._state = gs.record_relationship(self._state, edge_id, relationship)
        logger.info(
            "Edge %s classified as %s (%.2f)",
            edge_id, relationship.relation_type.value, relationship.confidence_score,
        )
        return RelationshipOutcome(
            OutcomeStatus.OK,
            edge_id=edge_id,
            relationship=relationship,
            citation_chunks_found=chunks_found,
        )

    async def relate_papers(self, source_id: str, target_id: str) -> RelationshipOutcome:
        connected = self.connect_papers(source_id, target_id)
        if not connected.ok:
            return RelationshipOutcome(connected.status, connected.reason)
        return await self.analyze_edge(connected.edge_id)

    async def ask_about_edge(
        self,
        edge_id: str,
        question: str,
        history: Sequence[ChatMessage] = (),
    ) -> ChatOutcome:
        edge = self._state.edge(edge_id)
        if edge is None:
            return ChatOutcome(OutcomeStatus.NOT_FOUND, f"Edge {edge_id!r} not found", edge_id=edge_id)

        source: Optional[Node] = self._state.node(edge.source)
        target: Optional[Node] = self._state.node(edge.target)
        try:
            answer = await run_in_threadpool(
                self.chat.ask,
                question,
                source.paper if source else None,
                target.paper if target else None,
                edge.relationship,
                history,
            )
        except ValueError as exc:
            return ChatOutcome(OutcomeStatus.INVALID, str(exc), edge_id=edge_id)
        return ChatOutcome(OutcomeStatus.OK, edge_id=edge_id, answer=answer)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def relayout(self, direction: Optional[LayoutDirection] = None) -> GraphState:
        """Recompute every position from scratch; the last layout applied wins."""
        positioned = layout(
            self._state.nodes,
            self._state.edges,
            direction or self.layout_direction,
            self.layout_options,
        )
        self._state = gs.apply_positions(self._state, positioned)
        return self._state
