"""Node placement for the graph view.

Layouts only compute positions; they never change which nodes or edges exist.
"""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Dict, Iterable, List, Sequence, Tuple

import networkx as nx

Position = Tuple[float, float]

RANK_SEP = 80
NODE_SEP = 50
NODE_WIDTH = 120
NODE_HEIGHT = 32

FORCE_SEED = 42
FORCE_ITERATIONS = 100


class LayoutAlgorithm(StrEnum):
    HIERARCHICAL = "hierarchical"
    FORCE_DIRECTED = "force-directed"
    BREADTH_FIRST = "breadth-first"
    CIRCLE = "circle"


def _digraph(node_ids: Sequence[str], edges: Iterable[Tuple[str, str]]) -> nx.DiGraph:
    graph = nx.DiGraph()
    graph.add_nodes_from(node_ids)
    graph.add_edges_from((s, t) for s, t in edges if s != t)
    return graph


def _grid(rows: List[List[str]]) -> Dict[str, Position]:
    """Place each row centred on x=0, one row per rank, top to bottom."""
    positions: Dict[str, Position] = {}
    step_x = NODE_WIDTH + NODE_SEP
    step_y = NODE_HEIGHT + RANK_SEP
    for rank, row in enumerate(rows):
        offset = (len(row) - 1) / 2
        for i, node_id in enumerate(row):
            positions[node_id] = (round((i - offset) * step_x, 2), float(rank * step_y))
    return positions


def hierarchical(node_ids: Sequence[str], edges: Iterable[Tuple[str, str]]) -> Dict[str, Position]:
    """Rank nodes by longest path along edge direction.

    Cycles are collapsed into one rank via strongly connected components, so
    the result is deterministic for any input.
    """
    graph = _digraph(node_ids, edges)
    if not graph:
        return {}
    condensed = nx.condensation(graph)
    mapping = condensed.graph["mapping"]

    component_rank: Dict[int, int] = {}
    for component in nx.topological_sort(condensed):
        preds = [component_rank[p] for p in condensed.predecessors(component)]
        component_rank[component] = max(preds) + 1 if preds else 0

    rows: List[List[str]] = [[] for _ in range(max(component_rank.values()) + 1)]
    for node_id in node_ids:
        rows[component_rank[mapping[node_id]]].append(node_id)
    return _grid(rows)


def breadth_first(node_ids: Sequence[str], edges: Iterable[Tuple[str, str]]) -> Dict[str, Position]:
    """Layer nodes by BFS distance from the roots (nodes without incoming edges)."""
    graph = _digraph(node_ids, edges)
    rows: List[List[str]] = []
    placed: set[str] = set()

    roots = [n for n in node_ids if graph.in_degree(n) == 0]
    pending = list(node_ids)
    while len(placed) < len(node_ids):
        sources = [r for r in roots if r not in placed] or [next(n for n in pending if n not in placed)]
        for depth, layer in enumerate(nx.bfs_layers(graph, sources)):
            fresh = [n for n in layer if n not in placed]
            while len(rows) <= depth:
                rows.append([])
            rows[depth].extend(fresh)
            placed.update(fresh)
        roots = []

    order = {node_id: i for i, node_id in enumerate(node_ids)}
    return _grid([sorted(row, key=order.__getitem__) for row in rows if row])


def circle(node_ids: Sequence[str], edges: Iterable[Tuple[str, str]] = ()) -> Dict[str, Position]:
    if not node_ids:
        return {}
    graph = nx.Graph()
    graph.add_nodes_from(node_ids)
    radius = max(NODE_WIDTH, len(node_ids) * (NODE_HEIGHT + NODE_SEP) / (2 * math.pi))
    raw = nx.circular_layout(graph, scale=radius)
    return {n: (round(float(x), 2), round(float(y), 2)) for n, (x, y) in raw.items()}


def force_directed(node_ids: Sequence[str], edges: Iterable[Tuple[str, str]]) -> Dict[str, Position]:
    """Spring embedding with a fixed seed so an idle view settles on one placement."""
    if not node_ids:
        return {}
    graph = _digraph(node_ids, edges).to_undirected()
    scale = max(NODE_WIDTH, math.sqrt(len(node_ids)) * (NODE_WIDTH + NODE_SEP))
    raw = nx.spring_layout(graph, seed=FORCE_SEED, iterations=FORCE_ITERATIONS, scale=scale)
    return {n: (round(float(x), 2), round(float(y), 2)) for n, (x, y) in raw.items()}


LAYOUTS = {
    LayoutAlgorithm.HIERARCHICAL: hierarchical,
    LayoutAlgorithm.FORCE_DIRECTED: force_directed,
    LayoutAlgorithm.BREADTH_FIRST: breadth_first,
    LayoutAlgorithm.CIRCLE: circle,
}


def compute_layout(
    algorithm: LayoutAlgorithm,
    node_ids: Sequence[str],
    edges: Iterable[Tuple[str, str]],
) -> Dict[str, Position]:
    return LAYOUTS[LayoutAlgorithm(algorithm)](list(node_ids), list(edges))
