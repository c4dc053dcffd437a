from .layout import LayoutOptions, compute_positions, layout
from .schema import EdgeType, NodeType, OperationKind
from .state import Edge, GraphState, GraphStateError, Node, Position

__all__ = [
    "LayoutOptions",
    "compute_positions",
    "layout",
    "EdgeType",
    "NodeType",
    "OperationKind",
    "Edge",
    "GraphState",
    "GraphStateError",
    "Node",
    "Position",
]
