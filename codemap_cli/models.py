"""Typed data contract for analysis results produced by the engine.

Field aliases mirror the engine's JSON wire names; Python code uses the
snake_case attribute names.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Dict, List, Optional

import networkx as nx
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    StrictInt,
    field_validator,
    model_validator,
)

from .errors import GraphIntegrityError


class NodeType(StrEnum):
    """Kinds of symbols the engine reports."""
    CLASS = "CLASS"
    INTERFACE = "INTERFACE"
    ENUM = "ENUM"
    METHOD = "METHOD"
    CONSTRUCTOR = "CONSTRUCTOR"
    PACKAGE = "PACKAGE"


class EdgeType(StrEnum):
    """Relationships between symbols."""
    CALLS = "CALLS"
    EXTENDS = "EXTENDS"
    IMPLEMENTS = "IMPLEMENTS"
    DEPENDENCY = "DEPENDENCY"
    IMPORTS = "IMPORTS"
    OVERRIDES = "OVERRIDES"
    CONTAINS = "CONTAINS"


# Node types hidden when the view is collapsed.
MEMBER_NODE_TYPES = frozenset({NodeType.METHOD, NodeType.CONSTRUCTOR})


class _WireModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )


class GraphNode(_WireModel):
    id: str
    name: str
    qualified_name: Optional[str] = Field(default=None, alias="qualifiedName")
    type: NodeType
    file_path: Optional[str] = Field(default=None, alias="filePath")
    line_number: Optional[StrictInt] = Field(default=None, alias="lineNumber", ge=1)
    metadata: Dict[str, str] = Field(default_factory=dict)

    @field_validator("metadata", mode="before")
    @classmethod
    def metadata_none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def is_member(self) -> bool:
        return self.type in MEMBER_NODE_TYPES

    @property
    def has_location(self) -> bool:
        return bool(self.file_path) and self.line_number is not None

    @property
    def display_name(self) -> str:
        return self.qualified_name or self.name


class GraphEdge(_WireModel):
    id: str
    source: str
    target: str
    type: EdgeType
    metadata: Dict[str, str] = Field(default_factory=dict)

    @field_validator("metadata", mode="before")
    @classmethod
    def metadata_none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class CodeGraph(_WireModel):
    """Ordered nodes and edges with referential integrity.

    Construction fails with ``GraphIntegrityError`` when ids repeat or an
    edge points at a node the graph does not contain.
    """

    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)

    _node_index: Optional[Dict[str, GraphNode]] = PrivateAttr(default=None)
    _adjacency: Optional[Dict[str, List[GraphEdge]]] = PrivateAttr(default=None)

    @model_validator(mode="after")
    def verify_integrity(self) -> "CodeGraph":
        self.check_integrity()
        return self

    def check_integrity(self) -> None:
        seen_nodes: set[str] = set()
        duplicates: set[str] = set()
        for node in self.nodes:
            if node.id in seen_nodes:
                duplicates.add(node.id)
            seen_nodes.add(node.id)
        if duplicates:
            raise GraphIntegrityError(
                f"Duplicate node id(s): {', '.join(sorted(duplicates))}", duplicates
            )

        seen_edges: set[str] = set()
        for edge in self.edges:
            if edge.id in seen_edges:
                duplicates.add(edge.id)
            seen_edges.add(edge.id)
        if duplicates:
            raise GraphIntegrityError(
                f"Duplicate edge id(s): {', '.join(sorted(duplicates))}", duplicates
            )

        missing = {
            endpoint
            for edge in self.edges
            for endpoint in (edge.source, edge.target)
            if endpoint not in seen_nodes
        }
        if missing:
            raise GraphIntegrityError(
                f"Edges reference unknown node id(s): {', '.join(sorted(missing))}", missing
            )

    # ── lookups ───────────────────────────────────────────────

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def _index(self) -> Dict[str, GraphNode]:
        if self._node_index is None:
            self._node_index = {node.id: node for node in self.nodes}
        return self._node_index

    def node_by_id(self, node_id: str) -> Optional[GraphNode]:
        return self._index().get(node_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index()

    def incident_edges(self, node_id: str) -> List[GraphEdge]:
        """Edges with ``node_id`` at either end, in graph order."""
        if self._adjacency is None:
            adjacency: Dict[str, List[GraphEdge]] = {node.id: [] for node in self.nodes}
            for edge in self.edges:
                adjacency[edge.source].append(edge)
                if edge.target != edge.source:
                    adjacency[edge.target].append(edge)
            self._adjacency = adjacency
        return list(self._adjacency.get(node_id, []))

    def neighbors(self, node_id: str) -> set[str]:
        """Ids one hop away from ``node_id`` in either direction."""
        result: set[str] = set()
        for edge in self.incident_edges(node_id):
            result.add(edge.target if edge.source == node_id else edge.source)
        return result

    def to_networkx(self) -> nx.MultiDiGraph:
        graph = nx.MultiDiGraph()
        for node in self.nodes:
            graph.add_node(node.id, type=node.type.value, name=node.name)
        for edge in self.edges:
            graph.add_edge(edge.source, edge.target, key=edge.id, type=edge.type.value)
        return graph


class AnalysisStats(_WireModel):
    total_classes_parsed: StrictInt = Field(alias="totalClassesParsed", ge=0)
    total_methods_parsed: StrictInt = Field(alias="totalMethodsParsed", ge=0)
    graph_nodes: StrictInt = Field(alias="graphNodes", ge=0)
    graph_edges: StrictInt = Field(alias="graphEdges", ge=0)


class AnalysisResult(_WireModel):
    command: str
    target: Optional[str] = None
    timestamp: Optional[str] = None
    analysis_time_ms: Optional[float] = Field(default=None, alias="analysisTimeMs", ge=0, allow_inf_nan=False)
    stats: Optional[AnalysisStats] = None
    graph: CodeGraph

    def stats_mismatch(self) -> Optional[str]:
        """Describe disagreement between reported stats and the graph, if any."""
        if self.stats is None:
            return None
        problems = []
        if self.stats.graph_nodes != self.graph.node_count:
            problems.append(f"graphNodes={self.stats.graph_nodes} but graph has {self.graph.node_count} nodes")
        if self.stats.graph_edges != self.graph.edge_count:
            problems.append(f"graphEdges={self.stats.graph_edges} but graph has {self.graph.edge_count} edges")
        return "; ".join(problems) or None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class NavigationIntent(BaseModel):
    """Request for the host to open ``file_path`` at a 1-based line."""

    model_config = ConfigDict(frozen=True)

    file_path: str
    line_number: int = Field(ge=1)

    def to_wire(self) -> Dict[str, Any]:
        return {"filePath": self.file_path, "lineNumber": self.line_number}
