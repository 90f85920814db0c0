"""Fixed visual styling per node and edge type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from .models import EdgeType, NodeType


@dataclass(frozen=True)
class NodeStyle:
    color: str
    shape: str


@dataclass(frozen=True)
class EdgeStyle:
    color: str
    dashed: bool = False

    @property
    def line_style(self) -> str:
        return "dashed" if self.dashed else "solid"


NODE_STYLES: Dict[NodeType, NodeStyle] = {
    NodeType.CLASS: NodeStyle("#4fc3f7", "round-rectangle"),
    NodeType.INTERFACE: NodeStyle("#81c784", "diamond"),
    NodeType.ENUM: NodeStyle("#ffb74d", "hexagon"),
    NodeType.METHOD: NodeStyle("#ce93d8", "ellipse"),
    NodeType.CONSTRUCTOR: NodeStyle("#f48fb1", "ellipse"),
    NodeType.PACKAGE: NodeStyle("#90a4ae", "rectangle"),
}

EDGE_STYLES: Dict[EdgeType, EdgeStyle] = {
    EdgeType.CALLS: EdgeStyle("#aaaaaa"),
    EdgeType.EXTENDS: EdgeStyle("#4fc3f7"),
    EdgeType.IMPLEMENTS: EdgeStyle("#81c784", dashed=True),
    EdgeType.DEPENDENCY: EdgeStyle("#ffb74d"),
    EdgeType.CONTAINS: EdgeStyle("#555555"),
    EdgeType.IMPORTS: EdgeStyle("#666666"),
    EdgeType.OVERRIDES: EdgeStyle("#ce93d8"),
}

HIGHLIGHT_COLOR = "#ff9800"
FADED_OPACITY = 0.2


def node_style(node_type: NodeType) -> NodeStyle:
    return NODE_STYLES[node_type]


def edge_style(edge_type: EdgeType) -> EdgeStyle:
    return EDGE_STYLES[edge_type]
