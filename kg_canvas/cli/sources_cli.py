# kg_canvas/cli/sources_cli.py

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from kg_canvas.models.paper import BibliographicRecord
from kg_canvas.sources.pdf import PdfExtractionError, extract_document
from kg_canvas.sources.semantic_scholar import SemanticScholarClient

app = typer.Typer(
    help="Bibliographic lookups and document extraction."
)

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _bibliography() -> SemanticScholarClient:
    return SemanticScholarClient()


def _records_table(records: List[BibliographicRecord]) -> Table:
    tbl = Table(show_header=True, header_style="bold")
    tbl.add_column("#", justify="right")
    tbl.add_column("Paper id")
    tbl.add_column("Title")
    tbl.add_column("Year", justify="right")
    tbl.add_column("Venue")

    for i, rec in enumerate(records):
        tbl.add_row(
            str(i + 1),
            rec.paper_id or "-",
            rec.title,
            str(rec.year) if rec.year else "-",
            rec.venue or "-",
        )
    return tbl


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("search")
def search(
    query: str = typer.Argument(..., help="Title (or free text) to look up."),
) -> None:
    """
    Look up the best bibliographic match for a title.
    """
    record = _bibliography().search_paper(query)
    if record is None:
        console.print(f"[yellow]No paper found for '{query}'.[/yellow]")
        raise typer.Exit(code=1)

    console.print(f"[bold]{record.title}[/bold]")
    console.print(f"  Paper id:  {record.paper_id or '-'}")
    console.print(f"  Authors:   {', '.join(record.authors) or '-'}")
    console.print(f"  Year:      {record.year or '-'}")
    console.print(f"  Venue:     {record.venue or '-'}")
    if record.citation_count is not None:
        console.print(f"  Citations: {record.citation_count}")


@app.command("references")
def references(
    paper_id: str = typer.Argument(..., help="Bibliographic paper id."),
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        min=1,
        help="Max number of references to fetch.",
    ),
) -> None:
    """
    List the papers a paper cites.
    """
    records = _bibliography().get_references(paper_id, limit=limit)
    if not records:
        console.print(f"[yellow]No references found for {paper_id}.[/yellow]")
        return

    console.print(f"[bold]References of {paper_id}:[/bold]")
    console.print(_records_table(records))


@app.command("citations")
def citations(
    paper_id: str = typer.Argument(..., help="Bibliographic paper id."),
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        min=1,
        help="Max number of citing papers to fetch.",
    ),
) -> None:
    """
    List papers that cite a paper.
    """
    records = _bibliography().get_citations(paper_id, limit=limit)
    if not records:
        console.print(f"[yellow]No citing papers found for {paper_id}.[/yellow]")
        return

    console.print(f"[bold]Papers citing {paper_id}:[/bold]")
    console.print(_records_table(records))


@app.command("extract")
def extract(
    pdf_path: Path = typer.Argument(..., help="Path to a PDF file."),
    show_text: bool = typer.Option(
        False,
        "--show-text",
        help="Print the full extracted text as well.",
    ),
) -> None:
    """
    Extract title, summary and text from a PDF.
    """
    if not pdf_path.exists():
        console.print(f"[red]PDF not found:[/red] {pdf_path}")
        raise typer.Exit(code=1)

    try:
        document = extract_document(pdf_path)
    except PdfExtractionError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[bold]{document.title}[/bold] ({document.num_pages} pages)")
    console.print()
    console.print(document.summary)
    if show_text:
        console.print()
        console.print(document.full_text)
