"""Interactive graph render engine.

``RenderEngine`` owns the view state of one visualization surface. It is
toolkit-agnostic: user interaction arrives through its methods (or
``dispatch`` for raw UI events) and every visible change is announced as a
``RenderCommand`` to subscribed listeners, which bind it to a concrete
presentation layer such as the HTML export.

All operations run synchronously against in-memory state and are expected
to be called from one thread per surface.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional

from .layout import LayoutAlgorithm, Position, compute_layout
from .models import AnalysisResult, CodeGraph, NavigationIntent
from .styles import edge_style, node_style

logger = logging.getLogger(__name__)

EMPTY: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class RenderCommand:
    """One instruction for the presentation layer."""

    kind: str
    payload: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[[RenderCommand], None]


@dataclass(frozen=True)
class RenderState:
    result: Optional[AnalysisResult] = None
    layout: LayoutAlgorithm = LayoutAlgorithm.HIERARCHICAL
    collapsed: bool = False
    hidden_nodes: FrozenSet[str] = EMPTY
    hidden_edges: FrozenSet[str] = EMPTY
    faded_nodes: FrozenSet[str] = EMPTY
    faded_edges: FrozenSet[str] = EMPTY
    highlighted: Optional[str] = None
    positions: Mapping[str, Position] = field(default_factory=dict)
    stats_text: str = ""
    generation: int = 0

    @property
    def graph(self) -> Optional[CodeGraph]:
        return self.result.graph if self.result is not None else None


def _format_ms(value: Optional[float]) -> str:
    if value is None:
        return "0"
    return f"{value:g}" if value != int(value) else str(int(value))


def format_stats(result: AnalysisResult) -> str:
    """Statistics line shown next to the graph.

    Uses the engine-reported numbers; falls back to the graph's own counts
    when the engine sent no stats.
    """
    stats = result.stats
    nodes = stats.graph_nodes if stats else result.graph.node_count
    edges = stats.graph_edges if stats else result.graph.edge_count
    classes = stats.total_classes_parsed if stats else 0
    return f"{nodes} nodes · {edges} edges · {classes} classes · {_format_ms(result.analysis_time_ms)}ms"


def collapse_mask(graph: CodeGraph, collapsed: bool) -> tuple[FrozenSet[str], FrozenSet[str]]:
    """Hidden node and edge ids for the given collapse toggle."""
    if not collapsed:
        return EMPTY, EMPTY
    hidden_nodes = frozenset(node.id for node in graph.nodes if node.is_member)
    hidden_edges = frozenset(
        edge.id for edge in graph.edges
        if edge.source in hidden_nodes or edge.target in hidden_nodes
    )
    return hidden_nodes, hidden_edges


def hover_fade(graph: CodeGraph, node_id: Optional[str]) -> tuple[FrozenSet[str], FrozenSet[str]]:
    """Faded node and edge ids while ``node_id`` is hovered.

    Everything fades except the node, its incident edges and the nodes at
    the other end of those edges.
    """
    if node_id is None or node_id not in graph:
        return EMPTY, EMPTY
    incident = graph.incident_edges(node_id)
    keep_edges = {edge.id for edge in incident}
    keep_nodes = {node_id} | graph.neighbors(node_id)
    faded_nodes = frozenset(n.id for n in graph.nodes if n.id not in keep_nodes)
    faded_edges = frozenset(e.id for e in graph.edges if e.id not in keep_edges)
    return faded_nodes, faded_edges


class RenderEngine:
    """Stateful view over the most recent analysis result of one surface."""

    def __init__(
        self,
        layout: LayoutAlgorithm = LayoutAlgorithm.HIERARCHICAL,
        collapsed: bool = False,
    ):
        self._state = RenderState(layout=LayoutAlgorithm(layout), collapsed=collapsed)
        self._issued = 0
        self._listeners: List[Listener] = []

    # ── listeners ─────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for render commands; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: str, **payload: Any) -> None:
        command = RenderCommand(kind, payload)
        for listener in list(self._listeners):
            listener(command)

    # ── state access ──────────────────────────────────────────

    @property
    def state(self) -> RenderState:
        return self._state

    @property
    def graph(self) -> Optional[CodeGraph]:
        return self._state.graph

    @property
    def latest_generation(self) -> int:
        return self._issued

    def next_generation(self) -> int:
        """Issue a token for a new query; older tokens become stale."""
        self._issued += 1
        return self._issued

    # ── graph replacement ─────────────────────────────────────

    def replace_graph(self, result: AnalysisResult, generation: Optional[int] = None) -> bool:
        """Install ``result`` as the displayed graph.

        ``generation`` is the token returned by ``next_generation`` when the
        query was issued. A token other than the latest one is stale and the
        call does nothing. Without a token the result is applied as a fresh
        request. Returns whether the graph was installed.
        """
        if generation is not None and generation != self._issued:
            logger.debug("Dropping stale result (generation %d, latest %d)", generation, self._issued)
            return False

        # Raises before touching state, so the previous graph stays displayed.
        result.graph.check_integrity()
        if generation is None:
            generation = self.next_generation()

        graph = result.graph
        hidden_nodes, hidden_edges = collapse_mask(graph, self._state.collapsed)
        self._state = RenderState(
            result=result,
            layout=self._state.layout,
            collapsed=self._state.collapsed,
            hidden_nodes=hidden_nodes,
            hidden_edges=hidden_edges,
            positions=self._layout(graph, self._state.layout),
            stats_text=format_stats(result),
            generation=generation,
        )
        logger.debug(
            "Installed graph for %s (%d nodes, %d edges)",
            result.command, graph.node_count, graph.edge_count,
        )
        self._emit("draw", elements=self.elements(), positions=dict(self._state.positions))
        self._emit("stats", text=self._state.stats_text)
        return True

    # ── user operations ───────────────────────────────────────

    @staticmethod
    def _layout(graph: CodeGraph, algorithm: LayoutAlgorithm) -> Dict[str, Position]:
        return compute_layout(
            algorithm,
            [node.id for node in graph.nodes],
            [(edge.source, edge.target) for edge in graph.edges],
        )

    def set_layout(self, algorithm: LayoutAlgorithm | str) -> None:
        algorithm = LayoutAlgorithm(algorithm)
        graph = self.graph
        positions = self._layout(graph, algorithm) if graph is not None else {}
        self._state = replace(self._state, layout=algorithm, positions=positions)
        self._emit("layout", algorithm=algorithm.value, positions=dict(positions))

    def set_collapse(self, collapsed: bool) -> None:
        """Hide (or reveal) method and constructor nodes and every edge touching them."""
        graph = self.graph
        hidden_nodes, hidden_edges = collapse_mask(graph, collapsed) if graph is not None else (EMPTY, EMPTY)
        self._state = replace(
            self._state,
            collapsed=collapsed,
            hidden_nodes=hidden_nodes,
            hidden_edges=hidden_edges,
        )
        self._emit(
            "visibility",
            collapsed=collapsed,
            hidden_nodes=sorted(hidden_nodes),
            hidden_edges=sorted(hidden_edges),
        )

    def toggle_collapse(self) -> bool:
        self.set_collapse(not self._state.collapsed)
        return self._state.collapsed

    def on_hover(self, node_id: Optional[str]) -> None:
        graph = self.graph
        if graph is None or node_id not in graph:
            node_id = None
        faded_nodes, faded_edges = hover_fade(graph, node_id) if graph is not None else (EMPTY, EMPTY)
        self._state = replace(
            self._state,
            faded_nodes=faded_nodes,
            faded_edges=faded_edges,
            highlighted=node_id,
        )
        self._emit(
            "highlight",
            node=node_id,
            faded_nodes=sorted(faded_nodes),
            faded_edges=sorted(faded_edges),
        )

    def on_select(self, node_id: str) -> Optional[NavigationIntent]:
        """Navigation intent for a clicked node, or None when it has no source location."""
        graph = self.graph
        node = graph.node_by_id(node_id) if graph is not None else None
        if node is None or not node.has_location:
            return None
        intent = NavigationIntent(file_path=node.file_path, line_number=node.line_number)
        self._emit("navigate", **intent.to_wire())
        return intent

    def fit(self) -> None:
        self._emit("fit")

    def reset(self) -> None:
        self._emit("reset")

    def dispatch(self, event: Mapping[str, Any]) -> Optional[NavigationIntent]:
        """Apply a raw UI event such as ``{"command": "hover", "nodeId": "A"}``."""
        command = event.get("command")
        if command == "hover":
            self.on_hover(event.get("nodeId"))
        elif command == "select":
            return self.on_select(_require(event, "nodeId"))
        elif command == "layout":
            self.set_layout(_require(event, "layout"))
        elif command == "collapse":
            if "collapsed" in event:
                self.set_collapse(bool(event["collapsed"]))
            else:
                self.toggle_collapse()
        elif command == "fit":
            self.fit()
        elif command == "reset":
            self.reset()
        else:
            raise ValueError(f"Unknown UI event: {command!r}")
        return None

    # ── derived views ─────────────────────────────────────────

    def tooltip(self, node_id: str) -> Optional[str]:
        graph = self.graph
        node = graph.node_by_id(node_id) if graph is not None else None
        if node is None:
            return None
        lines = [node.display_name, f"Type: {node.type.value}"]
        lines += [f"{key}: {value}" for key, value in node.metadata.items()]
        if node.file_path:
            lines.append(f"File: {node.file_path}")
        if node.line_number is not None:
            lines.append(f"Line: {node.line_number}")
        return "\n".join(lines)

    def visible_node_ids(self) -> List[str]:
        graph = self.graph
        if graph is None:
            return []
        return [n.id for n in graph.nodes if n.id not in self._state.hidden_nodes]

    def visible_edge_ids(self) -> List[str]:
        graph = self.graph
        if graph is None:
            return []
        return [e.id for e in graph.edges if e.id not in self._state.hidden_edges]

    def elements(self) -> List[Dict[str, Any]]:
        """Styled node and edge elements with their current visibility and fade classes."""
        graph = self.graph
        if graph is None:
            return []
        state = self._state
        elements: List[Dict[str, Any]] = []
        for node in graph.nodes:
            style = node_style(node.type)
            elements.append({
                "group": "nodes",
                "data": {
                    "id": node.id,
                    "label": node.name,
                    "qualifiedName": node.qualified_name,
                    "nodeType": node.type.value,
                    "filePath": node.file_path,
                    "lineNumber": node.line_number,
                    "metadata": dict(node.metadata),
                    "color": style.color,
                    "shape": style.shape,
                },
                "position": _xy(state.positions.get(node.id)),
                "classes": _classes(node.id in state.hidden_nodes, node.id in state.faded_nodes,
                                    node.id == state.highlighted),
            })
        for edge in graph.edges:
            style = edge_style(edge.type)
            elements.append({
                "group": "edges",
                "data": {
                    "id": edge.id,
                    "source": edge.source,
                    "target": edge.target,
                    "edgeType": edge.type.value,
                    "label": edge.type.value.lower(),
                    "color": style.color,
                    "lineStyle": style.line_style,
                },
                "classes": _classes(edge.id in state.hidden_edges, edge.id in state.faded_edges, False),
            })
        return elements

    def snapshot(self) -> Dict[str, Any]:
        state = self._state
        result = state.result
        return {
            "command": result.command if result else None,
            "target": result.target if result else None,
            "layout": state.layout.value,
            "collapsed": state.collapsed,
            "stats": state.stats_text,
            "generation": state.generation,
            "elements": self.elements(),
        }


def _require(event: Mapping[str, Any], key: str) -> Any:
    if key not in event:
        raise ValueError(f"Malformed UI event {dict(event)!r}: missing {key!r}")
    return event[key]


def _xy(position: Optional[Position]) -> Optional[Dict[str, float]]:
    if position is None:
        return None
    return {"x": position[0], "y": position[1]}


def _classes(hidden: bool, faded: bool, highlighted: bool) -> str:
    names = []
    if hidden:
        names.append("hidden")
    if faded:
        names.append("faded")
    if highlighted:
        names.append("highlighted")
    return " ".join(names)
