# kg_canvas/llm/prompts.py

from __future__ import annotations

from typing import Optional, Sequence

from kg_canvas.models.relationship import RELATION_DESCRIPTIONS, RelationType

JSON_ONLY = "Always return valid JSON only, no markdown formatting, no code blocks, just pure JSON."

NO_CITATION_CONTEXT = "No specific citation context available. Use the summaries above."


# ---------------------------------------------------------------------------
# Concept expansion
# ---------------------------------------------------------------------------

CONCEPT_SYSTEM_PROMPT = (
    "You are an expert at analyzing research papers and extracting atomic concepts.\n"
    + JSON_ONLY
)


def concept_user_prompt(title: str, summary: str) -> str:
    return f"""Analyze the following research paper and extract 5-8 key atomic concepts. Each concept should be:
1. A distinct, self-contained idea or technique
2. Clearly named (2-5 words)
3. Summarized in 1-2 sentences that reduce cognitive load for CS students
4. Rated by importance (high/medium/low)

Paper Title: {title}
Paper Summary: {summary}

Return ONLY valid JSON in this exact format (no markdown, no code blocks):
{{
  "concepts": [
    {{
      "id": "concept-1",
      "name": "Concept Name",
      "summary": "Clear, concise explanation",
      "importance": "high"
    }}
  ]
}}"""


# ---------------------------------------------------------------------------
# Relationship classification
# ---------------------------------------------------------------------------

def _taxonomy_lines() -> str:
    return "\n".join(
        f'{i}. "{rt.value}" - {RELATION_DESCRIPTIONS[rt]}'
        for i, rt in enumerate(RelationType, start=1)
    )


RELATIONSHIP_SYSTEM_PROMPT = f"""You are an expert research paper analyst specializing in identifying relationships between academic papers.

Your task is to analyze how two papers relate to each other and classify their relationship type.

RELATIONSHIP TYPES:
{_taxonomy_lines()}

{JSON_ONLY}"""


def relationship_user_prompt(
    title_a: str,
    summary_a: str,
    title_b: str,
    summary_b: str,
    evidence: str,
) -> str:
    return f"""Analyze the relationship between two research papers:

PAPER A:
Title: {title_a}
Summary: {summary_a}

PAPER B:
Title: {title_b}
Summary: {summary_b}

CITATION CONTEXT (where Paper B mentions Paper A):
{evidence or NO_CITATION_CONTEXT}

Based on this information, determine:
1. The relationship type (choose from the types listed in the system prompt)
2. A concise 2-sentence summary of how the papers relate
3. A confidence score (0.0 to 1.0) indicating how certain you are about this relationship

Return ONLY valid JSON in this exact format (no markdown, no code blocks):
{{
  "relationType": "Incremental",
  "summary": "Paper B extends the database optimization techniques from Paper A by introducing a new indexing strategy that improves query performance by 40%.",
  "confidenceScore": 0.92
}}"""


def summaries_as_evidence(summary_a: str, summary_b: str) -> str:
    """Evidence used when no citation chunk was found."""
    return f"Paper A Summary: {summary_a}\n\nPaper B Summary: {summary_b}"


# ---------------------------------------------------------------------------
# Relationship Q&A
# ---------------------------------------------------------------------------

CHAT_SYSTEM_PROMPT = """You are an expert research assistant specializing in analyzing relationships between academic papers. You have access to the full context of both papers, their relationship metadata, and conversation history.

Your role is to answer questions about how two papers relate to each other, their methodologies, differences, improvements, and connections. Use the relationship metadata and paper summaries to provide accurate, contextual answers.

Always be concise, accurate, and cite specific details from the papers when possible."""


def _paper_block(label: str, title: str, summary: str, authors: Sequence[str]) -> str:
    return (
        f"{label}:\n"
        f"Title: {title}\n"
        f"Summary: {summary}\n"
        f"Authors: {', '.join(authors) if authors else 'Unknown'}"
    )


def chat_user_prompt(
    question: str,
    source: tuple,
    target: tuple,
    relationship_context: str,
    history_context: Optional[str] = None,
) -> str:
    """
    `source` and `target` are (title, summary, authors) triples.
    """
    history = f"\nCONVERSATION HISTORY:\n{history_context}\n" if history_context else ""
    return f"""Answer the following question about the relationship between two research papers:

{_paper_block("PAPER A (Source)", *source)}

{_paper_block("PAPER B (Target)", *target)}

RELATIONSHIP CONTEXT:
{relationship_context}
{history}
QUESTION: {question}

Provide a clear, concise answer based on the paper summaries and relationship context. If the question cannot be answered from the available information, say so."""
