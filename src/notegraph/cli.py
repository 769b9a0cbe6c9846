"""CLI interface for notegraph."""

import logging
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from notegraph.config import NoteGraphConfig, load_config, merge_cli_overrides
from notegraph.errors import NoteGraphError
from notegraph.graph.builder import clamp_steps
from notegraph.graph.engine import ExportOptions, NoteGraph
from notegraph.graph.models import Network
from notegraph.vault import load_vault

app = typer.Typer(
    name="notegraph",
    help="Explore the link graph of a folder of markdown notes.",
)

console = Console()

VaultArg = Annotated[
    Path,
    typer.Argument(
        help="Directory of markdown notes.",
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
]
StepsOption = Annotated[
    Optional[int],
    typer.Option("--steps", "-s", help="Ego network depth (1-3)."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from notegraph import __version__

        console.print(f"notegraph {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .notegraph.toml file."),
    ] = None,
) -> None:
    """notegraph - link networks, backlinks and statistics for notes."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    ctx.obj = load_config(config_path)


def _open_graph(ctx: typer.Context, vault: Path, **overrides: object) -> NoteGraph:
    config: NoteGraphConfig = ctx.obj or NoteGraphConfig()
    config = merge_cli_overrides(config, **overrides)
    try:
        notes = load_vault(vault)
    except NoteGraphError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc
    return NoteGraph(notes, config=config)


def _require_note(graph: NoteGraph, note_id: str) -> None:
    if note_id not in graph.notes:
        console.print(f"[red]Error:[/red] Note not found: {escape(note_id)}")
        raise typer.Exit(1)


def _clamped(steps: Optional[int]) -> Optional[int]:
    return None if steps is None else clamp_steps(steps)


def _safe_title(title: str) -> str:
    return re.sub(r"[^a-z0-9]", "_", title, flags=re.IGNORECASE).lower()


def _network_table(network: Network) -> Table:
    table = Table(title=f"{network.mode} network")
    table.add_column("Step", justify="right")
    table.add_column("ID")
    table.add_column("Title")
    for node in network.nodes:
        step = "-" if node.step is None else str(node.step)
        title = escape(node.title)
        if node.is_focal:
            title = f"[bold]{title}[/bold]"
        table.add_row(step, escape(node.id), title)
    return table


@app.command()
def ego(
    ctx: typer.Context,
    vault: VaultArg,
    note: Annotated[str, typer.Option("--note", "-n", help="Focal note id.")],
    steps: StepsOption = None,
) -> None:
    """Show the ego network around one note."""
    graph = _open_graph(ctx, vault, steps=_clamped(steps))
    _require_note(graph, note)

    network = graph.build_ego_network(note)
    console.print(_network_table(network))
    for edge in network.edges:
        console.print(
            f"  {escape(edge.source)} -> {escape(edge.target)} "
            f"({edge.edge_type}, step {edge.step})"
        )
    console.print(f"{len(network.nodes)} nodes, {len(network.edges)} edges")


@app.command()
def stats(
    ctx: typer.Context,
    vault: VaultArg,
    note: Annotated[
        Optional[str],
        typer.Option("--note", "-n", help="Focal note id for step distances."),
    ] = None,
) -> None:
    """Print statistics for the full note network."""
    graph = _open_graph(ctx, vault)
    if note is not None:
        _require_note(graph, note)

    network = graph.build_full_network(note)
    result = graph.analyze(network)

    table = Table(title="Network statistics")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Total notes", str(result.total_notes))
    table.add_row("Links", str(result.edge_count))
    table.add_row("Isolated notes", str(result.isolated_count))
    table.add_row("Isolation rate", f"{result.isolation_rate:.1f}%")
    table.add_row("Density", f"{result.density:.4f}")
    table.add_row("Average degree", f"{result.average_degree:.2f}")
    table.add_row("Max degree", str(result.max_degree))
    table.add_row("Connected components", str(result.connected_components))
    table.add_row("Diameter (sampled)", str(result.diameter))
    table.add_row("Communities", str(result.communities.count))
    table.add_row("Modularity (heuristic)", f"{result.communities.heuristic_modularity:.3f}")
    table.add_row("Modularity (Newman)", f"{result.newman_modularity:.3f}")
    console.print(table)

    if result.top_central:
        console.print("\n[bold]Most central notes[/bold]")
        for rank, score in enumerate(result.top_central, start=1):
            node = network.get_node(score.node_id)
            title = node.title if node else score.node_id
            console.print(f"  {rank}. {escape(title)} ({score.score:.4f})")


@app.command()
def backlinks(
    ctx: typer.Context,
    vault: VaultArg,
    title: Annotated[str, typer.Option("--title", "-t", help="Target note title.")],
    context_words: Annotated[
        Optional[int],
        typer.Option("--context-words", help="Words of context on each side."),
    ] = None,
) -> None:
    """List notes that link to the note with TITLE."""
    graph = _open_graph(ctx, vault, context_words=context_words)
    found = graph.backlinks_for(title)
    if not found:
        console.print(f"No backlinks to '{escape(title)}'.")
        return

    for backlink in found:
        console.print(
            f"[bold]{escape(backlink.source_title)}[/bold] ({escape(backlink.source_id)})"
        )
        console.print(f"  {escape(backlink.context)}")
    console.print(f"\n{len(found)} backlink(s)")


@app.command()
def isolated(ctx: typer.Context, vault: VaultArg) -> None:
    """List notes with no links in either direction."""
    graph = _open_graph(ctx, vault)
    found = graph.find_isolated_notes()
    for note in found:
        console.print(f"  {escape(note.id)}: {escape(note.title)}")
    console.print(f"{len(found)} isolated of {len(graph.notes)} notes")


@app.command()
def export(
    ctx: typer.Context,
    vault: VaultArg,
    note: Annotated[str, typer.Option("--note", "-n", help="Focal note id.")],
    full: Annotated[
        bool,
        typer.Option("--full", help="Export the whole corpus instead of an ego network."),
    ] = False,
    steps: StepsOption = None,
    no_metadata: Annotated[
        bool,
        typer.Option("--no-metadata", help="Omit metadata columns."),
    ] = False,
    no_isolated: Annotated[
        bool,
        typer.Option("--no-isolated", help="Omit the isolated-notes analysis."),
    ] = False,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Directory for the CSV files."),
    ] = None,
) -> None:
    """Write the network as edges, nodes and statistics CSV files."""
    graph = _open_graph(
        ctx,
        vault,
        steps=_clamped(steps),
        output_directory=str(output) if output else None,
        include_metadata=False if no_metadata else None,
        include_isolated=False if no_isolated else None,
    )
    _require_note(graph, note)

    config = graph.config
    options = ExportOptions(
        full_corpus=full,
        include_metadata=config.export.include_metadata,
        include_isolated=config.export.include_isolated,
        steps=config.graph.default_steps,
    )
    result = graph.export_network(note, options)
    if result is None:
        console.print(f"[red]Error:[/red] Nothing to export for {note}")
        raise typer.Exit(1)

    if full:
        network_type = "complete"
    else:
        depth = clamp_steps(config.graph.default_steps)
        network_type = f"ego_{depth}step{'s' if depth > 1 else ''}"
    prefix = _safe_title(graph.notes[note].title)
    stamp = datetime.now(UTC).strftime("%Y-%m-%d")

    out_dir = Path(config.export.directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    files = {
        f"{prefix}_{network_type}_edges_{stamp}.csv": result.edges_table,
        f"{prefix}_{network_type}_nodes_{stamp}.csv": result.nodes_table,
        f"{prefix}_{network_type}_stats_{stamp}.csv": result.stats_table,
    }
    if result.isolated_table is not None:
        files[f"{prefix}_isolated_notes_{stamp}.csv"] = result.isolated_table

    for name, content in files.items():
        (out_dir / name).write_text(content, encoding="utf-8")
        console.print(f"[green]Wrote[/green] {out_dir / name}")
