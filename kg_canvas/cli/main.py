# kg_canvas/cli/main.py

from __future__ import annotations

import typer
from kg_canvas.cli import analysis_cli, sources_cli

app = typer.Typer(help="CLI tools for the paper relationship canvas.")

app.add_typer(sources_cli.app, name="papers")
app.add_typer(analysis_cli.app, name="analyze")

if __name__ == "__main__":
    app()
