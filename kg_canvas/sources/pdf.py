# kg_canvas/sources/pdf.py

from __future__ import annotations

import io
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pypdf import PdfReader
from pypdf.errors import PdfReadError

_ABSTRACT_RE = re.compile(r"(?:abstract|summary)[:\s]*([\s\S]{200,2000})", re.IGNORECASE)
_SUMMARY_CHARS = 2000


class PdfExtractionError(Exception):
    pass


@dataclass
class ExtractedDocument:
    title: str
    summary: str
    full_text: str
    num_pages: int
    metadata: Dict[str, Any] = field(default_factory=dict)


def guess_title(text: str, metadata_title: Optional[str], fallback: str) -> str:
    """
    Metadata title first, then the first line of 10-200 characters,
    then `fallback` (usually the file stem).
    """
    if metadata_title and metadata_title.strip():
        return metadata_title.strip()
    for line in text.splitlines():
        stripped = line.strip()
        if 10 < len(stripped) < 200:
            return stripped
    return fallback


def guess_summary(text: str) -> str:
    match = _ABSTRACT_RE.search(text)
    if match:
        return match.group(1).strip()[:_SUMMARY_CHARS]
    return text[:_SUMMARY_CHARS].strip()


def extract_document(
    source: Union[str, Path, bytes],
    filename: Optional[str] = None,
) -> ExtractedDocument:
    """
    Extract title, summary and full text from a PDF path or raw bytes.
    """
    if isinstance(source, (bytes, bytearray)):
        stream: Any = io.BytesIO(source)
        stem = Path(filename).stem if filename else "document"
    else:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"PDF not found: {path}")
        stream = path
        stem = Path(filename).stem if filename else path.stem

    try:
        reader = PdfReader(stream)
        pages = [page.extract_text() or "" for page in reader.pages]
    except PdfReadError as e:
        raise PdfExtractionError(f"Could not read PDF {filename or stem!r}: {e}") from e

    text = "\n".join(pages)
    info = reader.metadata or {}
    metadata = {str(k).lstrip("/"): str(v) for k, v in info.items()}

    return ExtractedDocument(
        title=guess_title(text, getattr(reader.metadata, "title", None), stem),
        summary=guess_summary(text),
        full_text=text,
        num_pages=len(reader.pages),
        metadata=metadata,
    )
