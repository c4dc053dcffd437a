from .chat import ChatMessage, RelationshipChat
from .classifier import (
    RelationshipAnalysis,
    RelationshipClassifier,
    classify_relationship,
    parse_relationship_reply,
)

__all__ = [
    "ChatMessage",
    "RelationshipChat",
    "RelationshipAnalysis",
    "RelationshipClassifier",
    "classify_relationship",
    "parse_relationship_reply",
]
