from .pdf import ExtractedDocument, PdfExtractionError, extract_document
from .semantic_scholar import SemanticScholarClient, SemanticScholarError

__all__ = [
    "ExtractedDocument",
    "PdfExtractionError",
    "extract_document",
    "SemanticScholarClient",
    "SemanticScholarError",
]
