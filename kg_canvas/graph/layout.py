# kg_canvas/graph/layout.py

"""
Deterministic hierarchical (layered) layout.

The steps follow the usual Sugiyama scheme:

1. break cycles by reversing DFS back edges,
2. assign ranks (longest path, then pull sources down next to their
   successors),
3. split edges spanning several ranks with dummy nodes,
4. reduce crossings with alternating barycenter sweeps,
5. place every rank centred on the widest one.

Every node gets the same bounding box; the returned position is the box's
top-left corner. Only insertion order is used to break ties, so identical
input always produces identical output.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

import networkx as nx

from kg_canvas.config.settings import LayoutDirection, settings
from kg_canvas.graph.state import Edge, Node, Position

_SWEEPS = 8
_EXHAUSTED = object()

_HANDLES = {
    LayoutDirection.TOP_BOTTOM: ("bottom", "top"),
    LayoutDirection.LEFT_RIGHT: ("right", "left"),
}


@dataclass(frozen=True)
class LayoutOptions:
    node_width: float
    node_height: float
    node_sep: float
    rank_sep: float

    @classmethod
    def from_settings(cls) -> "LayoutOptions":
        return cls(
            node_width=settings.NODE_WIDTH,
            node_height=settings.NODE_HEIGHT,
            node_sep=settings.NODE_SEP,
            rank_sep=settings.RANK_SEP,
        )


@dataclass(frozen=True)
class _Dummy:
    """Placeholder for one rank crossed by a long edge."""
    source: Hashable
    target: Hashable
    step: int


# ---------------------------------------------------------------------------
# 1. Cycle removal
# ---------------------------------------------------------------------------

def _back_edges(G: nx.DiGraph) -> List[Tuple[Hashable, Hashable]]:
    on_stack = set()
    done = set()
    back: List[Tuple[Hashable, Hashable]] = []

    for root in G.nodes:
        if root in done:
            continue
        on_stack.add(root)
        stack = [(root, iter(list(G.successors(root))))]
        while stack:
            node, children = stack[-1]
            child = next(children, _EXHAUSTED)
            if child is _EXHAUSTED:
                stack.pop()
                on_stack.discard(node)
                done.add(node)
            elif child in on_stack:
                back.append((node, child))
            elif child not in done:
                on_stack.add(child)
                stack.append((child, iter(list(G.successors(child)))))
    return back


def _make_acyclic(G: nx.DiGraph) -> nx.DiGraph:
    D = G.copy()
    for u, v in _back_edges(G):
        D.remove_edge(u, v)
        if not D.has_edge(v, u):
            D.add_edge(v, u)
    return D


# ---------------------------------------------------------------------------
# 2. Ranking
# ---------------------------------------------------------------------------

def _assign_ranks(D: nx.DiGraph, order: Dict[Hashable, int]) -> Dict[Hashable, int]:
    topo = list(nx.lexicographical_topological_sort(D, key=order.__getitem__))

    rank: Dict[Hashable, int] = {}
    for n in topo:
        rank[n] = max((rank[p] + 1 for p in D.predecessors(n)), default=0)

    # A source only needs to sit one rank above its nearest successor.
    for n in reversed(topo):
        if D.in_degree(n) == 0 and D.out_degree(n) > 0:
            rank[n] = min(rank[s] for s in D.successors(n)) - 1
    return rank


# ---------------------------------------------------------------------------
# 3. Dummy nodes
# ---------------------------------------------------------------------------

def _layered_graph(
    D: nx.DiGraph,
    rank: Dict[Hashable, int],
    order: Dict[Hashable, int],
) -> Tuple[nx.DiGraph, List[List[Hashable]]]:
    H = nx.DiGraph()
    keys: Dict[Hashable, tuple] = {}

    for n in D.nodes:
        H.add_node(n)
        keys[n] = (order[n], 0)

    for u, v in D.edges:
        span = rank[v] - rank[u]
        prev = u
        for step in range(1, span):
            dummy = _Dummy(u, v, step)
            H.add_edge(prev, dummy)
            rank[dummy] = rank[u] + step
            keys[dummy] = (order[u], 1, order[v], step)
            prev = dummy
        H.add_edge(prev, v)

    layers: List[List[Hashable]] = [[] for _ in range(max(rank.values(), default=-1) + 1)]
    for n in sorted(H.nodes, key=keys.__getitem__):
        layers[rank[n]].append(n)
    return H, layers


# ---------------------------------------------------------------------------
# 4. Crossing reduction
# ---------------------------------------------------------------------------

def _crossings(H: nx.DiGraph, layers: List[List[Hashable]]) -> int:
    total = 0
    for upper, lower in zip(layers, layers[1:]):
        pos = {n: i for i, n in enumerate(lower)}
        segments = [
            (i, pos[v])
            for i, u in enumerate(upper)
            for v in H.successors(u)
            if v in pos
        ]
        for a in range(len(segments)):
            for b in range(a + 1, len(segments)):
                (u1, v1), (u2, v2) = segments[a], segments[b]
                if (u1 - u2) * (v1 - v2) < 0:
                    total += 1
    return total


def _sweep(H: nx.DiGraph, layers: List[List[Hashable]], downward: bool) -> List[List[Hashable]]:
    layers = [list(layer) for layer in layers]
    indices = range(1, len(layers)) if downward else range(len(layers) - 2, -1, -1)

    for r in indices:
        fixed = layers[r - 1] if downward else layers[r + 1]
        pos = {n: i for i, n in enumerate(fixed)}
        neighbours = H.predecessors if downward else H.successors

        def barycenter(item):
            i, n = item
            linked = [pos[m] for m in neighbours(n) if m in pos]
            return (sum(linked) / len(linked) if linked else float(i), i)

        layers[r] = [n for _, n in sorted(enumerate(layers[r]), key=barycenter)]
    return layers


def _order_layers(H: nx.DiGraph, layers: List[List[Hashable]]) -> List[List[Hashable]]:
    best = layers
    best_crossings = _crossings(H, layers)
    current = layers

    for i in range(_SWEEPS):
        if best_crossings == 0:
            break
        current = _sweep(H, current, downward=(i % 2 == 0))
        c = _crossings(H, current)
        if c < best_crossings:
            best, best_crossings = current, c
    return best


# ---------------------------------------------------------------------------
# 5. Coordinates
# ---------------------------------------------------------------------------

def _assign_coordinates(
    layers: List[List[Hashable]],
    direction: LayoutDirection,
    options: LayoutOptions,
) -> Dict[Hashable, Tuple[float, float]]:
    """Return box centres for real nodes."""
    horizontal = direction == LayoutDirection.LEFT_RIGHT
    # extent of a node along the rank axis / across ranks
    along = options.node_width if horizontal else options.node_height
    across = options.node_height if horizontal else options.node_width

    real_layers = [[n for n in layer if not isinstance(n, _Dummy)] for layer in layers]
    spans = [len(layer) * across + max(len(layer) - 1, 0) * options.node_sep for layer in real_layers]
    widest = max(spans, default=0.0)

    centres: Dict[Hashable, Tuple[float, float]] = {}
    for r, layer in enumerate(real_layers):
        offset = (widest - spans[r]) / 2
        rank_coord = r * (along + options.rank_sep) + along / 2
        for i, n in enumerate(layer):
            cross_coord = offset + i * (across + options.node_sep) + across / 2
            centres[n] = (rank_coord, cross_coord) if horizontal else (cross_coord, rank_coord)
    return centres


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def compute_positions(
    node_ids: Sequence[Hashable],
    edge_pairs: Iterable[Tuple[Hashable, Hashable]],
    direction: LayoutDirection = LayoutDirection.TOP_BOTTOM,
    options: Optional[LayoutOptions] = None,
) -> Dict[Hashable, Tuple[float, float]]:
    """
    Map node id -> top-left corner of its box.

    Edges whose endpoints are unknown, and self loops, are ignored.
    """
    options = options or LayoutOptions.from_settings()
    direction = LayoutDirection(direction)

    G = nx.DiGraph()
    G.add_nodes_from(dict.fromkeys(node_ids))
    for u, v in edge_pairs:
        if u != v and u in G and v in G:
            G.add_edge(u, v)

    if G.number_of_nodes() == 0:
        return {}

    order = {n: i for i, n in enumerate(G.nodes)}
    D = _make_acyclic(G)
    rank = _assign_ranks(D, order)
    H, layers = _layered_graph(D, rank, order)
    layers = _order_layers(H, layers)
    centres = _assign_coordinates(layers, direction, options)

    half_w, half_h = options.node_width / 2, options.node_height / 2
    return {n: (x - half_w, y - half_h) for n, (x, y) in centres.items()}


def layout(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    direction: LayoutDirection = LayoutDirection.TOP_BOTTOM,
    options: Optional[LayoutOptions] = None,
) -> List[Node]:
    """
    Return copies of `nodes` with layered positions and connection handles.
    Pure: the inputs are not modified.
    """
    direction = LayoutDirection(direction)
    positions = compute_positions(
        [n.id for n in nodes],
        [(e.source, e.target) for e in edges],
        direction,
        options,
    )
    source_handle, target_handle = _HANDLES[direction]

    return [
        replace(
            n,
            position=Position(*positions[n.id]),
            source_handle=source_handle,
            target_handle=target_handle,
        )
        for n in nodes
    ]
