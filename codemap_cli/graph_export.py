"""Graph export helpers for DOT and standalone interactive HTML outputs."""

from __future__ import annotations

import html
import json
from pathlib import Path
from typing import Optional

from .render import RenderEngine
from .styles import edge_style, node_style

TEMPLATE_PATH = Path(__file__).parent / "templates" / "graph_view.html"


def render_dot(engine: RenderEngine) -> str:
    """Graphviz source for the currently visible part of the graph."""
    graph = engine.graph
    lines = ["digraph CodeMap {"]
    lines.append("  rankdir=TB;")
    lines.append('  node [style=filled, fontcolor="#ffffff"];')
    if graph is None:
        lines.append("}")
        return "\n".join(lines)

    state = engine.state
    for node in graph.nodes:
        if node.id in state.hidden_nodes:
            continue
        style = node_style(node.type)
        lines.append(
            f'  "{_esc(node.id)}" [label="{_esc(node.name)}", fillcolor="{style.color}", '
            f'shape={_dot_shape(style.shape)}, tooltip="{_esc(node.display_name)}"];'
        )

    for edge in graph.edges:
        if edge.id in state.hidden_edges:
            continue
        style = edge_style(edge.type)
        lines.append(
            f'  "{_esc(edge.source)}" -> "{_esc(edge.target)}" '
            f'[label="{edge.type.value.lower()}", color="{style.color}", style={style.line_style}];'
        )

    lines.append("}")
    return "\n".join(lines)


def export_dot(engine: RenderEngine, output_file: Path) -> None:
    output_file.write_text(render_dot(engine), encoding="utf-8")


def render_html(engine: RenderEngine, title: str = "CodeMap Graph", editor_url: Optional[str] = None) -> str:
    """Standalone Cytoscape.js page for the engine's current view.

    ``editor_url`` may contain ``{filePath}`` and ``{lineNumber}``
    placeholders (e.g. ``vscode://file/{filePath}:{lineNumber}``); clicking a
    node with a source location opens it.
    """
    view = engine.snapshot()
    payload = json.dumps(view).replace("</", "<\\/")
    url = json.dumps(editor_url)

    if TEMPLATE_PATH.exists():
        template = TEMPLATE_PATH.read_text(encoding="utf-8")
        return (
            template.replace("{{ TITLE }}", html.escape(title))
            .replace("{{ VIEW_DATA }}", payload)
            .replace("{{ EDITOR_URL }}", url)
        )
    return _basic_html_export(title, view)


def export_html(
    engine: RenderEngine,
    output_file: Path,
    title: str = "CodeMap Graph",
    editor_url: Optional[str] = None,
) -> None:
    output_file.write_text(render_html(engine, title, editor_url), encoding="utf-8")


def _basic_html_export(title: str, view: dict) -> str:
    """Fallback static listing when the interactive template is unavailable."""
    items = []
    for el in view["elements"]:
        if "hidden" in el["classes"]:
            continue
        data = el["data"]
        if el["group"] == "nodes":
            items.append(f"<li>{html.escape(data['nodeType'])}: {html.escape(data['label'])}</li>")
        else:
            items.append(
                f"<li>{html.escape(data['source'])} --{html.escape(data['label'])}--> "
                f"{html.escape(data['target'])}</li>"
            )
    return f"""<!doctype html>
<html>
<head><meta charset="utf-8" /><title>{html.escape(title)}</title></head>
<body>
  <h1>{html.escape(title)}</h1>
  <p>{html.escape(view["stats"])}</p>
  <ul>{''.join(items)}</ul>
</body>
</html>
"""


def _dot_shape(shape: str) -> str:
    return {
        "round-rectangle": "box",
        "rectangle": "box",
        "diamond": "diamond",
        "hexagon": "hexagon",
        "ellipse": "ellipse",
    }.get(shape, "ellipse")


def _esc(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')
