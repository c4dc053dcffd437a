# kg_canvas/graph/schema.py

from enum import Enum


class NodeType(str, Enum):
    PAPER = "paper"
    CONCEPT = "concept"
    # Ghost paper: a referenced work shown without its full content
    CITATION = "citation"


class EdgeType(str, Enum):
    # paper -> citation
    CITES = "cites"

    # paper -> concept, created once per concept at expansion time
    CONTAINS = "contains"

    # paper <-> paper, user- or classifier-created, may carry a Relationship
    RELATED = "related"


class OperationKind(str, Enum):
    EXPAND = "expand"
