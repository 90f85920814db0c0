"""Tests for the analysis result data contract."""

import pytest
from pydantic import ValidationError

from codemap_cli.errors import GraphIntegrityError
from codemap_cli.models import (
    AnalysisResult,
    CodeGraph,
    EdgeType,
    GraphNode,
    NavigationIntent,
    NodeType,
)


class TestGraphNode:
    """Tests for GraphNode parsing and helpers."""

    def test_parse_wire_names(self):
        """Test that camelCase wire fields land on snake_case attributes."""
        node = GraphNode.model_validate({
            "id": "n1",
            "name": "placeOrder",
            "qualifiedName": "com.example.OrderService.placeOrder(Order)",
            "type": "METHOD",
            "filePath": "/src/OrderService.java",
            "lineNumber": 12,
        })

        assert node.qualified_name == "com.example.OrderService.placeOrder(Order)"
        assert node.type is NodeType.METHOD
        assert node.file_path == "/src/OrderService.java"
        assert node.line_number == 12
        assert node.metadata == {}

    def test_null_metadata_becomes_empty(self):
        node = GraphNode.model_validate({"id": "n", "name": "X", "type": "CLASS", "metadata": None})
        assert node.metadata == {}

    def test_unknown_fields_ignored(self):
        node = GraphNode.model_validate({"id": "n", "name": "X", "type": "CLASS", "extra": 1})
        assert not hasattr(node, "extra")

    @pytest.mark.parametrize("bad_type", ["FIELD", "class", ""])
    def test_rejects_unknown_type(self, bad_type):
        """Only the uppercase node kinds are accepted."""
        with pytest.raises(ValidationError):
            GraphNode.model_validate({"id": "n", "name": "X", "type": bad_type})

    @pytest.mark.parametrize("line", [0, -3, "12", 1.5])
    def test_rejects_bad_line_number(self, line):
        with pytest.raises(ValidationError):
            GraphNode.model_validate({"id": "n", "name": "X", "type": "METHOD", "lineNumber": line})

    def test_location_and_member_helpers(self, sample_result: AnalysisResult):
        """Test has_location, is_member and display_name."""
        graph = sample_result.graph
        cls = graph.node_by_id("A")
        method = graph.node_by_id("B")
        unlocated = graph.node_by_id("C")
        interface = graph.node_by_id("D")

        assert not cls.is_member
        assert method.is_member
        assert graph.node_by_id("E").is_member
        assert method.has_location
        assert not unlocated.has_location
        assert interface.display_name == "com.example.Service"

        bare = GraphNode(id="z", name="run", type=NodeType.METHOD)
        assert bare.display_name == "run"

    def test_node_is_immutable(self, sample_result: AnalysisResult):
        node = sample_result.graph.node_by_id("A")
        with pytest.raises(ValidationError):
            node.name = "Other"


class TestCodeGraph:
    """Tests for CodeGraph integrity and lookups."""

    def test_dangling_edge_rejected(self):
        """Test that an edge to an unknown node fails with the missing id."""
        with pytest.raises(GraphIntegrityError) as exc_info:
            CodeGraph.model_validate({
                "nodes": [{"id": "A", "name": "A", "type": "CLASS"}],
                "edges": [{"id": "e1", "source": "A", "target": "Z", "type": "CALLS"}],
            })

        assert exc_info.value.missing == ["Z"]
        assert "Z" in str(exc_info.value)

    def test_duplicate_node_ids_rejected(self):
        with pytest.raises(GraphIntegrityError, match="Duplicate node"):
            CodeGraph.model_validate({
                "nodes": [
                    {"id": "A", "name": "A", "type": "CLASS"},
                    {"id": "A", "name": "A2", "type": "CLASS"},
                ],
            })

    def test_duplicate_edge_ids_rejected(self):
        with pytest.raises(GraphIntegrityError, match="Duplicate edge"):
            CodeGraph.model_validate({
                "nodes": [{"id": "A", "name": "A", "type": "CLASS"}, {"id": "B", "name": "B", "type": "CLASS"}],
                "edges": [
                    {"id": "e", "source": "A", "target": "B", "type": "DEPENDENCY"},
                    {"id": "e", "source": "B", "target": "A", "type": "DEPENDENCY"},
                ],
            })

    def test_integrity_error_propagates_through_result(self, sample_result_dict: dict):
        """A dangling edge inside a full result is not wrapped as a validation error."""
        sample_result_dict["graph"]["edges"].append(
            {"id": "e9", "source": "A", "target": "ghost", "type": "CALLS"}
        )
        with pytest.raises(GraphIntegrityError):
            AnalysisResult.model_validate(sample_result_dict)

    def test_empty_graph(self):
        graph = CodeGraph()
        assert graph.node_count == 0
        assert graph.edge_count == 0
        assert "A" not in graph

    def test_order_preserved(self, sample_result: AnalysisResult):
        graph = sample_result.graph
        assert [n.id for n in graph.nodes] == ["A", "B", "C", "D", "E"]
        assert [e.id for e in graph.edges] == ["e1", "e2", "e3", "e4"]

    def test_lookups(self, sample_result: AnalysisResult):
        """Test node_by_id, membership, incident edges and neighbors."""
        graph = sample_result.graph

        assert graph.node_by_id("B").name == "placeOrder"
        assert graph.node_by_id("missing") is None
        assert "D" in graph
        assert [e.id for e in graph.incident_edges("B")] == ["e1", "e2"]
        assert graph.neighbors("A") == {"B", "D", "E"}
        assert graph.neighbors("C") == {"B"}

    def test_to_networkx(self, sample_result: AnalysisResult):
        nx_graph = sample_result.graph.to_networkx()

        assert nx_graph.number_of_nodes() == 5
        assert nx_graph.number_of_edges() == 4
        assert nx_graph.has_edge("A", "D")
        assert nx_graph.nodes["D"]["type"] == "INTERFACE"
        assert nx_graph.edges["B", "C", "e2"]["type"] == EdgeType.CALLS.value


class TestAnalysisResult:
    """Tests for AnalysisResult."""

    def test_parse_sample(self, sample_result: AnalysisResult):
        assert sample_result.command == "callgraph"
        assert sample_result.analysis_time_ms == 42
        assert sample_result.stats.total_classes_parsed == 2
        assert sample_result.stats.graph_nodes == 5
        assert sample_result.graph.node_count == 5

    def test_stats_optional(self, make_result):
        result = make_result(nodes=[{"id": "A", "name": "A", "type": "CLASS"}])
        assert result.stats is None
        assert result.stats_mismatch() is None

    def test_stats_mismatch_reported(self, sample_result_dict: dict):
        """Stats that disagree with the graph are described, not rejected."""
        sample_result_dict["stats"]["graphNodes"] = 3
        result = AnalysisResult.model_validate(sample_result_dict)

        mismatch = result.stats_mismatch()
        assert mismatch is not None
        assert "graphNodes=3" in mismatch
        assert "graphEdges" not in mismatch

    def test_negative_stats_rejected(self, sample_result_dict: dict):
        sample_result_dict["stats"]["totalClassesParsed"] = -1
        with pytest.raises(ValidationError):
            AnalysisResult.model_validate(sample_result_dict)

    @pytest.mark.parametrize("value", [float("inf"), float("nan")])
    def test_non_finite_analysis_time_rejected(self, sample_result_dict: dict, value):
        sample_result_dict["analysisTimeMs"] = value
        with pytest.raises(ValidationError):
            AnalysisResult.model_validate(sample_result_dict)

    def test_to_wire_uses_engine_names(self, sample_result: AnalysisResult):
        wire = sample_result.to_wire()

        assert wire["analysisTimeMs"] == 42
        assert wire["stats"]["totalClassesParsed"] == 2
        node = wire["graph"]["nodes"][1]
        assert node["qualifiedName"] == "com.example.OrderService.placeOrder(Order)"
        assert node["filePath"] == "/src/com/example/OrderService.java"
        assert node["lineNumber"] == 12
        assert node["type"] == "METHOD"
        assert AnalysisResult.model_validate(wire).to_wire() == wire


class TestNavigationIntent:
    """Tests for NavigationIntent."""

    def test_to_wire(self):
        intent = NavigationIntent(file_path="/x.java", line_number=12)
        assert intent.to_wire() == {"filePath": "/x.java", "lineNumber": 12}

    def test_line_must_be_positive(self):
        with pytest.raises(ValidationError):
            NavigationIntent(file_path="/x.java", line_number=0)
