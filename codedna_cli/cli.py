"""Typer-based CLI for CodeDNA ingestion."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config_manager import load_ingest_settings
from .errors import ProjectRootError
from .graph_export import export_dot, export_html
from .pipeline import IngestPipeline
from .project_dna import load_dna
from .storage import CodeGraphStore, ProjectManager

console = Console()

app = typer.Typer(
    help="🧬 CodeDNA: import-graph ranking and Project DNA for JS/TS projects.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"CodeDNA CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging."),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
):
    """CodeDNA CLI: rank files by import centrality and summarise projects."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _resolve_slug(pm: ProjectManager, project: Optional[str]) -> str:
    slug = project or pm.get_current_project()
    if not slug:
        raise typer.BadParameter("No project loaded. Run 'dna ingest <path>' first or pass --project.")
    return slug


@app.command("ingest")
def ingest(
    project_path: Path = typer.Argument(Path("."), exists=True, file_okay=False, help="Path to source project."),
    force: bool = typer.Option(False, "--force", help="Re-parse even if the cached DNA is current."),
    as_json: bool = typer.Option(False, "--json", help="Print a JSON summary."),
):
    """Scan, rank and summarise a project into its Project DNA."""
    pipeline = IngestPipeline(load_ingest_settings())
    try:
        result = pipeline.run(project_path, force=force)
    except ProjectRootError as exc:
        raise typer.BadParameter(str(exc))

    pm = ProjectManager()
    pm.create_or_get_project(result.slug)
    pm.set_current_project(result.slug)

    if result.cached:
        if as_json:
            typer.echo(json.dumps({"project": result.project, "slug": result.slug, "cached": True}))
        else:
            typer.echo(f"dna ingest: '{result.project}' cached (use --force to re-parse)")
        return

    if as_json:
        typer.echo(json.dumps({
            "project": result.project,
            "slug": result.slug,
            "cached": False,
            "files": result.files,
            "nodes": result.nodes,
            "edges": result.edges,
            "pagerankIterations": result.iterations,
            "converged": result.converged,
            "topFiles": [{"path": f.path, "score": f.rank} for f in result.top_files[:5]],
            "dnaPath": str(result.dna_path),
            "tokenEstimate": result.token_estimate,
            "durationMs": result.duration_ms,
        }))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Score", justify="right")
    table.add_column("File")
    for f in result.top_files[:5]:
        table.add_row(f"{f.rank:.3f}", f.path)

    status = "converged" if result.converged else "max iter"
    console.print(Panel(
        f"Project: [bold]{result.project}[/bold]\n"
        f"Files: {result.files}   Nodes: {result.nodes}   Edges: {result.edges}\n"
        f"PageRank: {result.iterations} iter ({status})\n"
        f"DNA: ~{result.token_estimate} tokens -> {result.dna_path}\n"
        f"Time: {result.duration_ms}ms",
        title="CodeDNA ingest",
    ))
    if result.top_files:
        console.print(table)


@app.command("top")
def top(
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project slug (default: current)."),
    limit: int = typer.Option(20, min=1, max=200, help="Number of files to show."),
):
    """Show the highest-ranked files of an ingested project."""
    pm = ProjectManager()
    slug = _resolve_slug(pm, project)
    with CodeGraphStore() as store:
        nodes = store.get_nodes(slug)

    if not nodes:
        typer.echo(f"No code graph stored for '{slug}'.")
        raise typer.Exit(code=0)

    table = Table(title=f"Top files: {slug}")
    table.add_column("#", justify="right")
    table.add_column("Rank", justify="right")
    table.add_column("File")
    table.add_column("Imports", justify="right")
    table.add_column("Exports", justify="right")
    for i, node in enumerate(nodes[:limit], 1):
        table.add_row(
            str(i),
            f"{node['pagerank']:.3f}",
            node["path"],
            str(len(node["imports"])),
            str(len(node["exports"])),
        )
    console.print(table)


@app.command("show")
def show(
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project slug (default: current)."),
):
    """Print the saved Project DNA."""
    pm = ProjectManager()
    slug = _resolve_slug(pm, project)
    content = load_dna(slug)
    if content is None:
        typer.echo(f"No Project DNA saved for '{slug}'.", err=True)
        raise typer.Exit(code=1)
    typer.echo(content)


@app.command("export-graph")
def export_graph(
    focus: str = typer.Argument("", help="Optional path fragment to export a local subgraph."),
    fmt: str = typer.Option("html", "--format", "-f", help="Export format: html or dot."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path."),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project slug (default: current)."),
):
    """Export the stored import graph to standalone HTML or Graphviz DOT."""
    fmt = fmt.lower()
    if fmt not in {"html", "dot"}:
        raise typer.BadParameter("Format must be one of: html, dot")

    pm = ProjectManager()
    slug = _resolve_slug(pm, project)
    with CodeGraphStore() as store:
        nodes = store.get_nodes(slug)
        edges = store.get_edges(slug)

    if output is None:
        output = Path.cwd() / f"{slug}_graph.{fmt}"

    if fmt == "html":
        export_html(nodes, edges, output, focus=focus)
    else:
        export_dot(nodes, edges, output, focus=focus)

    typer.echo(f"Exported graph to {output}")


@app.command("delete-project")
def delete_project(slug: str = typer.Argument(..., help="Project slug to delete.")):
    """Delete a project's Project DNA and stored code graph."""
    pm = ProjectManager()
    deleted = pm.delete_project(slug)
    if not deleted:
        raise typer.BadParameter(f"Project '{slug}' not found.")
    with CodeGraphStore() as store:
        store.clear_project(slug)
    typer.echo(f"Deleted project '{slug}'.")


@app.command("list-projects")
def list_projects():
    """List all ingested projects."""
    pm = ProjectManager()
    projects = pm.list_projects()
    current = pm.get_current_project()

    if not projects:
        typer.echo("No projects ingested yet.")
        raise typer.Exit(code=0)

    for p in projects:
        marker = "*" if p == current else " "
        typer.echo(f"{marker} {p}")


if __name__ == "__main__":
    app()
