# kg_canvas/cli/analysis_cli.py

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from kg_canvas.concepts.expander import ConceptExpander
from kg_canvas.llm.client import OllamaClient
from kg_canvas.models.paper import Paper
from kg_canvas.nlp.chunking import combine_chunks_for_analysis, extract_citation_chunks
from kg_canvas.relationships.classifier import RelationshipClassifier

app = typer.Typer(
    help="Run concept expansion and relationship analysis without the canvas."
)

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _llm_client() -> OllamaClient:
    return OllamaClient()


def _read_text(path: Optional[Path]) -> Optional[str]:
    if path is None:
        return None
    if not path.exists():
        console.print(f"[red]File not found:[/red] {path}")
        raise typer.Exit(code=1)
    return path.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("chunks")
def chunks(
    text_file: Path = typer.Argument(..., help="Text of the citing paper."),
    cited_title: str = typer.Option(..., "--title", "-t", help="Title of the cited paper."),
    authors: List[str] = typer.Option(
        None,
        "--author",
        "-a",
        help="Author of the cited paper. Can be passed multiple times.",
    ),
    show_evidence: bool = typer.Option(
        False,
        "--evidence",
        help="Also print the combined evidence sent to the classifier.",
    ),
) -> None:
    """
    Show the passages of a paper that appear to cite another paper.
    """
    text = _read_text(text_file) or ""
    found = extract_citation_chunks(text, cited_title, authors or [])

    if not found:
        console.print(f"[yellow]No citation chunks found for '{cited_title}'.[/yellow]")
        return

    tbl = Table(show_header=True, header_style="bold")
    tbl.add_column("Score", justify="right")
    tbl.add_column("Sentence")
    for chunk in found:
        tbl.add_row(f"{chunk.relevance_score:.2f}", chunk.text)
    console.print(tbl)

    if show_evidence:
        console.print()
        console.print("[bold]Evidence:[/bold]")
        console.print(combine_chunks_for_analysis(found))


@app.command("concepts")
def concepts(
    title: str = typer.Argument(..., help="Paper title."),
    summary: str = typer.Argument(..., help="Paper summary / abstract."),
) -> None:
    """
    Decompose a paper into concepts with the language model.
    """
    result = ConceptExpander(client=_llm_client()).expand(title, summary)

    tbl = Table(show_header=True, header_style="bold")
    tbl.add_column("Id")
    tbl.add_column("Concept")
    tbl.add_column("Importance")
    tbl.add_column("Summary")
    for concept in result:
        tbl.add_row(concept.id, concept.name, concept.importance.value, concept.summary)
    console.print(tbl)


@app.command("relate")
def relate(
    title_a: str = typer.Option(..., "--title-a", help="Title of Paper A (the cited paper)."),
    summary_a: str = typer.Option(..., "--summary-a", help="Summary of Paper A."),
    title_b: str = typer.Option(..., "--title-b", help="Title of Paper B (the citing paper)."),
    summary_b: str = typer.Option(..., "--summary-b", help="Summary of Paper B."),
    authors_a: List[str] = typer.Option(
        None,
        "--author-a",
        help="Author of Paper A. Can be passed multiple times.",
    ),
    text_b: Optional[Path] = typer.Option(
        None,
        "--text-b",
        help="Full text of Paper B, searched for citation context.",
    ),
) -> None:
    """
    Classify how Paper B relates to Paper A.
    """
    paper_a = Paper(title=title_a, summary=summary_a, authors=tuple(authors_a or ()))
    paper_b = Paper(title=title_b, summary=summary_b, full_text=_read_text(text_b))

    analysis = RelationshipClassifier(client=_llm_client()).analyze(paper_a, paper_b)
    rel = analysis.relationship

    console.print(f"[bold]{rel.relation_type.value}[/bold] (confidence {rel.confidence_score:.2f})")
    console.print(rel.summary)
    if analysis.citation_chunks_found:
        console.print(f"[dim]Based on {analysis.citation_chunks_found} citation chunk(s).[/dim]")
    else:
        console.print("[dim]No citation context found; compared summaries.[/dim]")


@app.command("llm-status")
def llm_status() -> None:
    """
    Check that the language-model server is reachable and list its models.
    """
    client = _llm_client()
    if not client.check_connection():
        console.print(f"[red]Language model server not reachable at {client.base_url}.[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]Connected to {client.base_url}[/green]")
    for name in client.list_models():
        marker = "*" if name == client.model else " "
        console.print(f" {marker} {name}")
