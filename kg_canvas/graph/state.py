# kg_canvas/graph/state.py

"""
Immutable node/edge state for the paper canvas.

Every transition here is a pure function: it takes a GraphState and returns
a new one, never touching nodes or edges that were already published.
Invariant violations (unknown ids, duplicate ids, dangling edges) raise
GraphStateError.
"""

from __future__ import annotations

import math
import random
import time
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from kg_canvas.config.settings import ReexpansionMode
from kg_canvas.graph.schema import EdgeType, NodeType, OperationKind
from kg_canvas.models.concept import Concept
from kg_canvas.models.paper import BibliographicRecord, Paper
from kg_canvas.models.relationship import Relationship

# Concepts "explode" around their paper on this radius before layout runs.
CONCEPT_RADIUS = 300.0


class GraphStateError(ValueError):
    """
    Raised when a transition would break a graph invariant.
    """
    pass


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Node:
    """
    A node on the canvas.

    Paper and citation nodes carry a `paper`; concept nodes carry a
    `concept`. `origin_id` is the paper node a concept/citation was
    expanded from.
    """
    id: str
    type: NodeType
    position: Position = field(default_factory=Position)
    paper: Optional[Paper] = None
    concept: Optional[Concept] = None
    origin_id: Optional[str] = None
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None

    @property
    def title(self) -> str:
        if self.concept is not None:
            return self.concept.name
        return self.paper.title if self.paper is not None else ""

    @property
    def summary(self) -> str:
        if self.concept is not None:
            return self.concept.summary
        return self.paper.summary if self.paper is not None else ""

    @property
    def is_ghost(self) -> bool:
        return self.type == NodeType.CITATION


@dataclass(frozen=True)
class Edge:
    id: str
    source: str
    target: str
    type: EdgeType
    relationship: Optional[Relationship] = None
    analyzing: bool = False
    label: Optional[str] = None

    def connects(self, a: str, b: str) -> bool:
        """Direction-insensitive endpoint check."""
        return (self.source, self.target) in ((a, b), (b, a))


@dataclass(frozen=True)
class GraphState:
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()
    # (operation kind, node or edge id) pairs with a request outstanding
    in_flight: FrozenSet[Tuple[OperationKind, str]] = frozenset()
    # paper node id -> number of expansions applied so far
    expansion_rounds: Mapping[str, int] = field(default_factory=dict)

    def node(self, node_id: str) -> Optional[Node]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def edge(self, edge_id: str) -> Optional[Edge]:
        for e in self.edges:
            if e.id == edge_id:
                return e
        return None

    def has_node(self, node_id: str) -> bool:
        return self.node(node_id) is not None

    def find_edge_between(self, a: str, b: str) -> Optional[Edge]:
        for e in self.edges:
            if e.connects(a, b):
                return e
        return None

    def is_in_flight(self, kind: OperationKind, key: str) -> bool:
        return (kind, key) in self.in_flight

    def nodes_of_type(self, node_type: NodeType) -> List[Node]:
        return [n for n in self.nodes if n.type == node_type]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _require_node(state: GraphState, node_id: str) -> Node:
    node = state.node(node_id)
    if node is None:
        raise GraphStateError(f"Node {node_id!r} not found")
    return node


def _require_edge(state: GraphState, edge_id: str) -> Edge:
    edge = state.edge(edge_id)
    if edge is None:
        raise GraphStateError(f"Edge {edge_id!r} not found")
    return edge


def _with_nodes_and_edges(
    state: GraphState,
    new_nodes: Sequence[Node] = (),
    new_edges: Sequence[Edge] = (),
) -> GraphState:
    """
    Append nodes and edges, enforcing id uniqueness and edge endpoints.
    """
    node_ids = {n.id for n in state.nodes}
    for n in new_nodes:
        if n.id in node_ids:
            raise GraphStateError(f"Duplicate node id {n.id!r}")
        node_ids.add(n.id)

    edge_ids = {e.id for e in state.edges}
    for e in new_edges:
        if e.id in edge_ids:
            raise GraphStateError(f"Duplicate edge id {e.id!r}")
        if e.source not in node_ids or e.target not in node_ids:
            raise GraphStateError(
                f"Edge {e.id!r} references a missing node ({e.source!r} -> {e.target!r})"
            )
        edge_ids.add(e.id)

    return replace(
        state,
        nodes=state.nodes + tuple(new_nodes),
        edges=state.edges + tuple(new_edges),
    )


def _replace_edge(state: GraphState, edge_id: str, **changes) -> GraphState:
    _require_edge(state, edge_id)
    edges = tuple(replace(e, **changes) if e.id == edge_id else e for e in state.edges)
    return replace(state, edges=edges)


def _unique_id(candidate: str, taken: Iterable[str]) -> str:
    taken = set(taken)
    if candidate not in taken:
        return candidate
    n = 2
    while f"{candidate}-{n}" in taken:
        n += 1
    return f"{candidate}-{n}"


# ---------------------------------------------------------------------------
# Papers
# ---------------------------------------------------------------------------

def paper_node_id(paper: Paper, now_ms: Optional[int] = None) -> str:
    """
    `paper-<bibId>` when a bibliographic id is known, else `paper-<timestamp>`.
    """
    if paper.paper_id:
        return f"paper-{paper.paper_id}"
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"paper-{now_ms}"


def initial_position(rng: Optional[random.Random] = None) -> Position:
    """Random pre-layout placement in the 100..500 square."""
    rng = rng or random.Random()
    return Position(x=rng.random() * 400 + 100, y=rng.random() * 400 + 100)


def add_paper(
    state: GraphState,
    paper: Paper,
    position: Optional[Position] = None,
    now_ms: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Tuple[GraphState, Node]:
    """
    Add a paper node. A paper whose bibliographic id is already on the
    canvas is rejected; timestamp ids get a suffix if they collide.
    """
    node_id = paper_node_id(paper, now_ms)
    if paper.paper_id and state.has_node(node_id):
        raise GraphStateError(f"Paper {paper.paper_id!r} is already on the canvas")
    node_id = _unique_id(node_id, (n.id for n in state.nodes))

    node = Node(
        id=node_id,
        type=NodeType.PAPER,
        position=position or initial_position(rng),
        paper=paper,
    )
    return _with_nodes_and_edges(state, new_nodes=[node]), node


def update_paper_summary(state: GraphState, node_id: str, summary: str) -> GraphState:
    node = _require_node(state, node_id)
    if node.type != NodeType.PAPER or node.paper is None:
        raise GraphStateError(f"Node {node_id!r} is not a paper")
    updated = replace(node, paper=node.paper.with_summary(summary))
    return replace(state, nodes=tuple(updated if n.id == node_id else n for n in state.nodes))


# ---------------------------------------------------------------------------
# In-flight guards
# ---------------------------------------------------------------------------

def begin_operation(state: GraphState, kind: OperationKind, key: str) -> GraphState:
    if state.is_in_flight(kind, key):
        raise GraphStateError(f"{kind.value} already in progress for {key!r}")
    return replace(state, in_flight=state.in_flight | {(kind, key)})


def end_operation(state: GraphState, kind: OperationKind, key: str) -> GraphState:
    return replace(state, in_flight=state.in_flight - {(kind, key)})


# ---------------------------------------------------------------------------
# Expansion
# ---------------------------------------------------------------------------

def _drop_expansion_of(state: GraphState, paper_id: str) -> GraphState:
    doomed = {n.id for n in state.nodes if n.origin_id == paper_id}
    return replace(
        state,
        nodes=tuple(n for n in state.nodes if n.id not in doomed),
        edges=tuple(
            e for e in state.edges if e.source not in doomed and e.target not in doomed
        ),
    )


def _concept_keys(concepts: Sequence[Concept]) -> List[str]:
    """Per-call unique keys: the concept id, or the index when missing or repeated."""
    keys: List[str] = []
    seen = set()
    for index, concept in enumerate(concepts):
        key = concept.id or str(index)
        if key in seen:
            key = f"{key}-{index}"
        seen.add(key)
        keys.append(key)
    return keys


def apply_expansion(
    state: GraphState,
    paper_id: str,
    concepts: Sequence[Concept],
    citations: Sequence[BibliographicRecord] = (),
    mode: ReexpansionMode = ReexpansionMode.APPEND,
) -> GraphState:
    """
    Attach a concept cluster (and citation ghosts) to a paper node.

    Ids are derived from (paper node id, expansion round, concept id or
    index). The first round carries no round marker; later rounds are
    tagged `-r<n>`. Concept ids come from the model and may spell out a
    marker themselves, so a derived id already on the canvas gets a
    numeric suffix. In REPLACE mode the paper's earlier concept and
    citation nodes are removed first.
    """
    paper_node = _require_node(state, paper_id)
    if paper_node.type != NodeType.PAPER:
        raise GraphStateError(f"Node {paper_id!r} is not a paper")

    if mode == ReexpansionMode.REPLACE:
        state = _drop_expansion_of(state, paper_id)

    round_no = state.expansion_rounds.get(paper_id, 0) + 1
    tag = "" if round_no == 1 else f"-r{round_no}"

    origin = paper_node.position
    new_nodes: List[Node] = []
    new_edges: List[Edge] = []
    taken_nodes = {n.id for n in state.nodes}
    taken_edges = {e.id for e in state.edges}

    def claim(candidate: str, taken: set) -> str:
        unique = _unique_id(candidate, taken)
        taken.add(unique)
        return unique

    for index, (concept, key) in enumerate(zip(concepts, _concept_keys(concepts))):
        angle = (index * 2 * math.pi) / len(concepts)
        concept_id = claim(f"concept-{paper_id}{tag}-{key}", taken_nodes)
        new_nodes.append(
            Node(
                id=concept_id,
                type=NodeType.CONCEPT,
                position=Position(
                    x=origin.x + math.cos(angle) * CONCEPT_RADIUS,
                    y=origin.y + math.sin(angle) * CONCEPT_RADIUS,
                ),
                concept=concept,
                origin_id=paper_id,
            )
        )
        new_edges.append(
            Edge(
                id=claim(f"edge-{paper_id}{tag}-concept-{key}", taken_edges),
                source=paper_id,
                target=concept_id,
                type=EdgeType.CONTAINS,
            )
        )

    namespace = (paper_node.paper.paper_id if paper_node.paper else None) or paper_id
    for index, record in enumerate(citations):
        citation_id = claim(f"citation-{namespace}{tag}-{index}", taken_nodes)
        new_nodes.append(
            Node(
                id=citation_id,
                type=NodeType.CITATION,
                paper=Paper(
                    title=record.title,
                    summary=record.ghost_summary(index),
                    authors=record.authors,
                    year=record.year,
                    paper_id=record.paper_id,
                ),
                origin_id=paper_id,
            )
        )
        new_edges.append(
            Edge(
                id=claim(f"edge-citation-{namespace}{tag}-{index}", taken_edges),
                source=paper_id,
                target=citation_id,
                type=EdgeType.CITES,
            )
        )

    state = _with_nodes_and_edges(state, new_nodes, new_edges)
    rounds: Dict[str, int] = dict(state.expansion_rounds)
    rounds[paper_id] = round_no
    return replace(state, expansion_rounds=rounds)


# ---------------------------------------------------------------------------
# Edges and relationships
# ---------------------------------------------------------------------------

def upsert_edge(
    state: GraphState,
    source: str,
    target: str,
    kind: EdgeType = EdgeType.RELATED,
) -> Tuple[GraphState, Edge]:
    """
    Return the existing edge between `source` and `target` (either
    direction) or create a new `edge-<source>-<target>`.
    """
    _require_node(state, source)
    _require_node(state, target)
    if source == target:
        raise GraphStateError("An edge needs two distinct nodes")

    existing = state.find_edge_between(source, target)
    if existing is not None:
        return state, existing

    edge_id = _unique_id(f"edge-{source}-{target}", (e.id for e in state.edges))
    edge = Edge(id=edge_id, source=source, target=target, type=kind)
    return _with_nodes_and_edges(state, new_edges=[edge]), edge


def mark_edge_analyzing(state: GraphState, edge_id: str) -> GraphState:
    return _replace_edge(state, edge_id, analyzing=True)


def record_relationship(state: GraphState, edge_id: str, relationship: Relationship) -> GraphState:
    """
    Attach (or overwrite) the edge's relationship and clear its analyzing flag.
    """
    return _replace_edge(
        state,
        edge_id,
        relationship=relationship,
        analyzing=False,
        label=relationship.label,
    )


# ---------------------------------------------------------------------------
# Layout results
# ---------------------------------------------------------------------------

def apply_positions(state: GraphState, positioned: Iterable[Node]) -> GraphState:
    """
    Take positions/handles from `positioned` for nodes still in the state.
    Nodes that were removed meanwhile are ignored.
    """
    by_id = {n.id: n for n in positioned}
    nodes = tuple(
        replace(
            n,
            position=by_id[n.id].position,
            source_handle=by_id[n.id].source_handle,
            target_handle=by_id[n.id].target_handle,
        )
        if n.id in by_id
        else n
        for n in state.nodes
    )
    return replace(state, nodes=nodes)
