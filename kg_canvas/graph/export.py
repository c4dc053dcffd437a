# kg_canvas/graph/export.py

from __future__ import annotations

from typing import Any, Dict, List

import networkx as nx

from kg_canvas.graph.state import Edge, GraphState, Node


def node_payload(node: Node) -> Dict[str, Any]:
    """
    JSON shape consumed by the canvas front end.
    """
    data: Dict[str, Any] = {
        "type": node.type.value,
        "title": node.title,
        "summary": node.summary,
    }
    if node.paper is not None:
        data.update(
            authors=list(node.paper.authors),
            year=node.paper.year,
            paperId=node.paper.paper_id,
            doi=node.paper.doi,
            isGhost=node.is_ghost,
        )
    if node.concept is not None:
        data["importance"] = node.concept.importance.value

    payload: Dict[str, Any] = {
        "id": node.id,
        "type": node.type.value,
        "position": {"x": node.position.x, "y": node.position.y},
        "data": data,
    }
    if node.source_handle:
        payload["sourcePosition"] = node.source_handle
    if node.target_handle:
        payload["targetPosition"] = node.target_handle
    return payload


def edge_payload(edge: Edge) -> Dict[str, Any]:
    data: Dict[str, Any] = {"type": edge.type.value, "isAnalyzing": edge.analyzing}
    if edge.label:
        data["label"] = edge.label
    if edge.relationship is not None:
        data["relationship"] = edge.relationship.to_payload()
    return {
        "id": edge.id,
        "source": edge.source,
        "target": edge.target,
        "data": data,
    }


def to_payload(state: GraphState) -> Dict[str, List[Dict[str, Any]]]:
    return {
        "nodes": [node_payload(n) for n in state.nodes],
        "edges": [edge_payload(e) for e in state.edges],
    }


def to_networkx(state: GraphState) -> nx.MultiDiGraph:
    """
    Snapshot the state as a MultiDiGraph (node/edge attributes mirror the payload).
    """
    G = nx.MultiDiGraph()
    for node in state.nodes:
        payload = node_payload(node)
        G.add_node(node.id, position=payload["position"], **payload["data"])

    for edge in state.edges:
        payload = edge_payload(edge)
        G.add_edge(edge.source, edge.target, key=edge.id, **payload["data"])
    return G
