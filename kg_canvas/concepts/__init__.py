from .expander import ConceptExpander, expand_concepts, parse_concepts_reply

__all__ = ["ConceptExpander", "expand_concepts", "parse_concepts_reply"]
