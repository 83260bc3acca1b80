"""Entry point: run the viewer server or inspect a graph document from the shell."""

import logging
import os
from pathlib import Path
from typing import Optional

import typer
import uvicorn
from dotenv import load_dotenv
from rich import print
from rich.table import Table

from backend.src.models.view import DEFAULT_PROFILE, get_profile
from backend.src.services.graph_builder import ModelError, build_snapshot
from backend.src.services.layout import LayoutEngine
from backend.src.services.loader import DataLoadError, load_graph_document, load_tag_document

load_dotenv()

app = typer.Typer(name="notegraph", help="Note graph viewer: server and layout tools.", no_args_is_help=True)


def _configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _load_snapshot(graph: Path, tags: Optional[Path], profile: str):
    try:
        config = get_profile(profile)
    except ValueError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    try:
        document = load_graph_document(graph)
        tag_list = load_tag_document(tags) if tags is not None else None
        snapshot = build_snapshot(document, tag_list, expand_tags=config.graph.expand_tags)
    except (DataLoadError, ModelError) as exc:
        print(f"[red]{exc.error}: {exc.message}[/red]")
        raise typer.Exit(code=1)
    return config, snapshot


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind"),
    port: int = typer.Option(None, "--port", "-p", help="Port (default: $PORT or 3000)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the viewer API and static file server."""
    _configure_logging()
    uvicorn.run(
        "backend.src.api.main:app",
        host=host,
        port=port or int(os.getenv("PORT", "3000")),
        reload=reload,
    )


@app.command()
def inspect(
    graph: Path = typer.Argument(..., help="Graph document (graph.json)"),
    tags: Optional[Path] = typer.Option(None, "--tags", "-t", help="Tag document (tags.json)"),
    profile: str = typer.Option(DEFAULT_PROFILE, "--profile", help="View profile name"),
    top: int = typer.Option(10, "--top", "-n", help="Number of nodes to list"),
):
    """Build the graph model and list the best-connected nodes."""
    _, snapshot = _load_snapshot(graph, tags, profile)

    print(f"[bold]{len(snapshot.nodes)}[/bold] nodes, [bold]{len(snapshot.links)}[/bold] links")
    table = Table(title="Most connected")
    table.add_column("Path")
    table.add_column("Kind")
    table.add_column("Title")
    table.add_column("Connections", justify="right")
    ranked = sorted(snapshot.nodes, key=lambda node: (-node.connections, node.path))
    for node in ranked[:top]:
        table.add_row(node.path, node.kind.value, node.title, str(node.connections))
    print(table)


@app.command()
def settle(
    graph: Path = typer.Argument(..., help="Graph document (graph.json)"),
    tags: Optional[Path] = typer.Option(None, "--tags", "-t", help="Tag document (tags.json)"),
    profile: str = typer.Option(DEFAULT_PROFILE, "--profile", help="View profile name"),
    max_steps: int = typer.Option(1000, "--max-steps", help="Upper bound on simulation steps"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Run the layout headless until it settles and report the result."""
    _configure_logging(verbose)
    config, snapshot = _load_snapshot(graph, tags, profile)

    engine = LayoutEngine(config.forces, config.simulation)
    engine.load(snapshot, radii={node.path: config.node_radius(node.connections) for node in snapshot.nodes})
    steps = engine.run(max_steps)
    min_x, min_y, max_x, max_y = engine.bounds()

    state = "[green]settled[/green]" if engine.is_settled else "[yellow]still relaxing[/yellow]"
    print(f"Layout {state} after {steps} steps (alpha={engine.alpha:.4f})")
    print(f"Bounding box: ({min_x:.1f}, {min_y:.1f}) - ({max_x:.1f}, {max_y:.1f})")


if __name__ == "__main__":
    app()
