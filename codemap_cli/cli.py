"""Typer-based CLI for CodeMap call and dependency graphs."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__, cli_config  # noqa: F401  (registers config commands)
from .cli_groups import analyze_grp, config_grp
from .engine import EngineBridge
from .errors import CodeMapError
from .graph_export import export_dot, export_html
from .layout import LayoutAlgorithm
from .render import RenderEngine
from .resolver import resolve_source_root
from .surface import SurfaceRegistry
from .symbols import symbol_in_file

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="🗺️  CodeMap CLI — call graphs, callers, dependencies and change impact.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(analyze_grp, name="analyze")
app.add_typer(config_grp, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"CodeMap CLI v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log engine invocations and diagnostics."),
):
    """CodeMap CLI: visualize call and dependency graphs from the CodeMap engine."""
    _configure_logging(verbose)


# ── shared options ───────────────────────────────────────────

ProjectOpt = typer.Option(Path("."), "--project", "-p", exists=True, file_okay=False, help="Project base directory.")
FileOpt = typer.Option(None, "--file", help="Take the symbol under the cursor in this file.")
LineOpt = typer.Option(1, "--line", min=1, help="Cursor line (1-based) for --file.")
ColumnOpt = typer.Option(0, "--column", min=0, help="Cursor column (0-based) for --file.")
LayoutOpt = typer.Option(LayoutAlgorithm.HIERARCHICAL, "--layout", "-l", help="Layout algorithm.")
CollapseOpt = typer.Option(False, "--collapse", help="Hide methods and constructors.")
HtmlOpt = typer.Option(None, "--html", help="Write an interactive HTML view to this file.")
DotOpt = typer.Option(None, "--dot", help="Write a Graphviz DOT file.")
JsonOpt = typer.Option(False, "--json", help="Print the raw analysis result as JSON.")


def _resolve_symbol(symbol: Optional[str], file: Optional[Path], line: int, column: int) -> Optional[str]:
    if symbol:
        return symbol
    if file is None:
        return None
    if not file.is_file():
        raise typer.BadParameter(f"File not found: {file}")
    found = symbol_in_file(file, line, column)
    if not found:
        raise typer.BadParameter(f"No symbol at {file}:{line}:{column}")
    return found


def _print_graph(engine: RenderEngine) -> None:
    graph = engine.graph
    result = engine.state.result
    if graph is None or result is None:
        return

    title = result.command + (f": {result.target}" if result.target else "")
    table = Table(title=title, show_lines=False)
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Symbol", style="bold")
    table.add_column("Location", style="dim")
    for node_id in engine.visible_node_ids():
        node = graph.node_by_id(node_id)
        location = ""
        if node.file_path:
            location = node.file_path + (f":{node.line_number}" if node.line_number else "")
        table.add_row(node.type.value.lower(), node.display_name, location)
    console.print(table)

    visible_edges = set(engine.visible_edge_ids())
    for edge in graph.edges:
        if edge.id in visible_edges:
            console.print(f"  {edge.source} [dim]--{edge.type.value.lower()}-->[/dim] {edge.target}")
    console.print(f"\n[dim]{engine.state.stats_text}[/dim]")


def _run_analysis(
    command: str,
    symbol: Optional[str],
    project: Path,
    depth: Optional[int] = None,
    file: Optional[Path] = None,
    line: int = 1,
    column: int = 0,
    layout: LayoutAlgorithm = LayoutAlgorithm.HIERARCHICAL,
    collapse: bool = False,
    html_out: Optional[Path] = None,
    dot_out: Optional[Path] = None,
    as_json: bool = False,
) -> None:
    target = _resolve_symbol(symbol, file, line, column)
    if command != "circular-deps" and not target:
        raise typer.BadParameter("Give a SYMBOL or point --file/--line/--column at one.")

    project_base = project.resolve()
    try:
        source_root = resolve_source_root(project_base)
        registry = SurfaceRegistry(EngineBridge.from_config(project_base))
        surface = registry.get_or_create(str(project_base), layout=layout, collapsed=collapse)

        label = target or "project"
        if as_json:
            asyncio.run(surface.run_query(command, source_root, target, depth))
        else:
            with console.status(f"CodeMap: running {command} for {label}..."):
                asyncio.run(surface.run_query(command, source_root, target, depth))
    except CodeMapError as exc:
        err_console.print(f"[red]CodeMap Error:[/red] {exc}")
        raise typer.Exit(code=1)

    engine = surface.renderer
    if as_json:
        typer.echo(json.dumps(engine.state.result.to_wire(), indent=2))
    else:
        _print_graph(engine)

    title = f"{command}: {label}"
    if html_out is not None:
        export_html(engine, html_out, title=title)
        console.print(f"Exported graph to {html_out}")
    if dot_out is not None:
        export_dot(engine, dot_out)
        console.print(f"Exported graph to {dot_out}")


@analyze_grp.command("callgraph")
def callgraph(
    symbol: Optional[str] = typer.Argument(None, help="Method signature or name."),
    depth: Optional[int] = typer.Option(None, "--depth", "-d", min=1, help="Max traversal depth (default from config)."),
    project: Path = ProjectOpt,
    file: Optional[Path] = FileOpt,
    line: int = LineOpt,
    column: int = ColumnOpt,
    layout: LayoutAlgorithm = LayoutOpt,
    collapse: bool = CollapseOpt,
    html_out: Optional[Path] = HtmlOpt,
    dot_out: Optional[Path] = DotOpt,
    as_json: bool = JsonOpt,
):
    """Forward call graph from a method."""
    _run_analysis("callgraph", symbol, project, depth, file, line, column, layout, collapse, html_out, dot_out, as_json)


@analyze_grp.command("callers")
def callers(
    symbol: Optional[str] = typer.Argument(None, help="Method signature or name."),
    project: Path = ProjectOpt,
    file: Optional[Path] = FileOpt,
    line: int = LineOpt,
    column: int = ColumnOpt,
    layout: LayoutAlgorithm = LayoutOpt,
    collapse: bool = CollapseOpt,
    html_out: Optional[Path] = HtmlOpt,
    dot_out: Optional[Path] = DotOpt,
    as_json: bool = JsonOpt,
):
    """Who calls this? Reverse call graph of a method."""
    _run_analysis("incoming-calls", symbol, project, None, file, line, column, layout, collapse, html_out, dot_out, as_json)


@analyze_grp.command("deps")
def dependencies(
    symbol: Optional[str] = typer.Argument(None, help="Class name."),
    project: Path = ProjectOpt,
    file: Optional[Path] = FileOpt,
    line: int = LineOpt,
    column: int = ColumnOpt,
    layout: LayoutAlgorithm = LayoutOpt,
    collapse: bool = CollapseOpt,
    html_out: Optional[Path] = HtmlOpt,
    dot_out: Optional[Path] = DotOpt,
    as_json: bool = JsonOpt,
):
    """Class-level dependency graph."""
    _run_analysis("dependencies", symbol, project, None, file, line, column, layout, collapse, html_out, dot_out, as_json)


@analyze_grp.command("impact")
def impact(
    symbol: Optional[str] = typer.Argument(None, help="Class name."),
    project: Path = ProjectOpt,
    file: Optional[Path] = FileOpt,
    line: int = LineOpt,
    column: int = ColumnOpt,
    layout: LayoutAlgorithm = LayoutOpt,
    collapse: bool = CollapseOpt,
    html_out: Optional[Path] = HtmlOpt,
    dot_out: Optional[Path] = DotOpt,
    as_json: bool = JsonOpt,
):
    """Classes affected if the given class changes."""
    _run_analysis("impact", symbol, project, None, file, line, column, layout, collapse, html_out, dot_out, as_json)


@analyze_grp.command("cycles")
def cycles(
    project: Path = ProjectOpt,
    layout: LayoutAlgorithm = LayoutOpt,
    html_out: Optional[Path] = HtmlOpt,
    dot_out: Optional[Path] = DotOpt,
    as_json: bool = JsonOpt,
):
    """Circular dependencies across the whole project."""
    _run_analysis("circular-deps", None, project, layout=layout, html_out=html_out, dot_out=dot_out, as_json=as_json)


if __name__ == "__main__":
    app()
