"""Tests for the node graph host: wiring rules, propagation and snapshots."""

import json
import logging

import networkx as nx
import pytest

from exprgraph.core.graph import GraphError, NodeGraph
from exprgraph.core.nodes import ExprNode, NumberNode, SinkNode, StringNode
from exprgraph.core.ports import InPinId, OutPinId


@pytest.fixture
def graph() -> NodeGraph:
    return NodeGraph()


def build_product(graph: NodeGraph):
    """String 'a*b' drives an expression fed by two numbers, shown by a sink."""
    text = graph.insert_node(StringNode("a*b"))
    first = graph.insert_node(NumberNode(2.0))
    second = graph.insert_node(NumberNode(5.0))
    expr = graph.insert_node(ExprNode())
    sink = graph.insert_node(SinkNode())
    graph.connect(OutPinId(text), InPinId(expr, 0))
    graph.refresh()
    graph.connect(OutPinId(first), InPinId(expr, 1))
    graph.connect(OutPinId(second), InPinId(expr, 2))
    graph.connect(OutPinId(expr), InPinId(sink, 0))
    return text, first, second, expr, sink


class TestNodes:
    def test_insert_assigns_increasing_ids(self, graph: NodeGraph) -> None:
        assert graph.insert_node(NumberNode()) == 0
        assert graph.insert_node(NumberNode()) == 1
        assert len(graph) == 2
        assert 1 in graph

    def test_insert_rejects_non_nodes(self, graph: NodeGraph) -> None:
        with pytest.raises(GraphError, match="Expected a node"):
            graph.insert_node("not a node")  # type: ignore[arg-type]

    def test_unknown_node(self, graph: NodeGraph) -> None:
        with pytest.raises(GraphError, match="Unknown node 4"):
            graph.node(4)

    def test_expression_accessor_checks_kind(self, graph: NodeGraph) -> None:
        number = graph.insert_node(NumberNode())
        with pytest.raises(GraphError, match="not an expression"):
            graph.expression(number)

    def test_remove_node_drops_its_wires(self, graph: NodeGraph) -> None:
        _, first, _, expr, sink = build_product(graph)
        graph.remove_node(expr)
        assert expr not in graph
        assert all(expr not in (src.node, dst.node) for src, dst in graph.wires())
        assert graph.store.remotes(InPinId(sink, 0)) == []
        assert graph.store.outputs(OutPinId(first)) == []


class TestWiring:
    def test_number_cannot_feed_text_slot(self, graph: NodeGraph) -> None:
        number = graph.insert_node(NumberNode())
        expr = graph.insert_node(ExprNode())
        with pytest.raises(GraphError, match="Cannot wire number output"):
            graph.connect(OutPinId(number), InPinId(expr, 0))

    def test_text_cannot_feed_binding_slot(self, graph: NodeGraph) -> None:
        text = graph.insert_node(StringNode("x"))
        expr = graph.insert_node(ExprNode("a"))
        with pytest.raises(GraphError, match="Cannot wire text output"):
            graph.connect(OutPinId(text), InPinId(expr, 1))

    def test_missing_binding_slot(self, graph: NodeGraph) -> None:
        number = graph.insert_node(NumberNode())
        expr = graph.insert_node(ExprNode("a"))
        with pytest.raises(GraphError, match="has no input 2"):
            graph.connect(OutPinId(number), InPinId(expr, 2))

    def test_missing_output(self, graph: NodeGraph) -> None:
        sink = graph.insert_node(SinkNode())
        expr = graph.insert_node(ExprNode("a"))
        with pytest.raises(GraphError, match="has no output 0"):
            graph.connect(OutPinId(sink), InPinId(expr, 1))

    def test_sink_accepts_any_kind(self, graph: NodeGraph) -> None:
        text = graph.insert_node(StringNode("hello"))
        sink = graph.insert_node(SinkNode())
        graph.connect(OutPinId(text), InPinId(sink, 0))
        assert graph.refresh()[sink] == "hello"

    def test_input_keeps_a_single_upstream(self, graph: NodeGraph) -> None:
        first = graph.insert_node(NumberNode(1.0))
        second = graph.insert_node(NumberNode(2.0))
        expr = graph.insert_node(ExprNode("a"))
        graph.connect(OutPinId(first), InPinId(expr, 1))
        graph.connect(OutPinId(second), InPinId(expr, 1))
        assert graph.store.remotes(InPinId(expr, 1)) == [OutPinId(second)]

    def test_cycle_is_rejected(self, graph: NodeGraph) -> None:
        left = graph.insert_node(ExprNode("x"))
        right = graph.insert_node(ExprNode("y"))
        graph.connect(OutPinId(left), InPinId(right, 1))
        with pytest.raises(GraphError, match="cycle"):
            graph.connect(OutPinId(right), InPinId(left, 1))

    def test_self_loop_is_rejected(self, graph: NodeGraph) -> None:
        expr = graph.insert_node(ExprNode("x"))
        with pytest.raises(GraphError, match="cycle"):
            graph.connect(OutPinId(expr), InPinId(expr, 1))

    def test_disconnect(self, graph: NodeGraph) -> None:
        number = graph.insert_node(NumberNode())
        sink = graph.insert_node(SinkNode())
        graph.connect(OutPinId(number), InPinId(sink, 0))
        assert graph.disconnect(OutPinId(number), InPinId(sink, 0)) is True
        assert graph.disconnect(OutPinId(number), InPinId(sink, 0)) is False

    def test_networkx_view(self, graph: NodeGraph) -> None:
        text, first, second, expr, sink = build_product(graph)
        view = graph.to_networkx()
        assert isinstance(view, nx.DiGraph)
        assert set(view.successors(expr)) == {sink}
        assert set(view.predecessors(expr)) == {text, first, second}
        assert view.nodes[expr]["kind"] == "expr"


class TestPropagation:
    def test_refresh_computes_outputs(self, graph: NodeGraph) -> None:
        _, first, _, expr, sink = build_product(graph)
        results = graph.refresh()
        assert results[expr] == 10.0
        assert results[sink] == 10.0
        assert results[first] == 2.0

    def test_upstream_text_change_migrates_wires(self, graph: NodeGraph) -> None:
        text, first, second, expr, _ = build_product(graph)
        graph.node(text).text = "b-c"  # type: ignore[attr-defined]

        results = graph.refresh()

        node = graph.expression(expr)
        assert node.bindings == ("b", "c")
        assert graph.store.remotes(InPinId(expr, 1)) == [OutPinId(second)]
        assert graph.store.remotes(InPinId(expr, 2)) == []
        assert graph.store.outputs(OutPinId(first)) == []
        assert results[expr] == 5.0

    def test_invalid_upstream_text_keeps_last_state(
        self, graph: NodeGraph, caplog: pytest.LogCaptureFixture
    ) -> None:
        text, _, _, expr, _ = build_product(graph)
        wires_before = graph.wires()
        graph.node(text).text = "a*"  # type: ignore[attr-defined]

        with caplog.at_level(logging.WARNING, logger="exprgraph.core.graph"):
            results = graph.refresh()

        assert results[expr] == 10.0
        assert graph.expression(expr).text == "a*"
        assert graph.wires() == wires_before
        assert "keeps its last valid state" in caplog.text

    def test_chained_expressions(self, graph: NodeGraph) -> None:
        number = graph.insert_node(NumberNode(3.0))
        inner = graph.insert_node(ExprNode("x*x"))
        outer = graph.insert_node(ExprNode("y+1"))
        graph.connect(OutPinId(number), InPinId(inner, 1))
        graph.connect(OutPinId(inner), InPinId(outer, 1))
        assert graph.refresh()[outer] == 10.0
        assert graph.evaluation_order().index(inner) < graph.evaluation_order().index(outer)

    def test_edit_expression_swaps_wires(self, graph: NodeGraph) -> None:
        first = graph.insert_node(NumberNode(8.0))
        second = graph.insert_node(NumberNode(2.0))
        expr = graph.insert_node(ExprNode("a/b"))
        graph.connect(OutPinId(first), InPinId(expr, 1))
        graph.connect(OutPinId(second), InPinId(expr, 2))

        graph.edit_expression(expr, "b/a")

        assert graph.store.remotes(InPinId(expr, 1)) == [OutPinId(second)]
        assert graph.store.remotes(InPinId(expr, 2)) == [OutPinId(first)]
        assert graph.refresh()[expr] == 0.25


class TestSnapshots:
    def test_round_trip_through_json(self, graph: NodeGraph) -> None:
        _, _, _, expr, sink = build_product(graph)
        graph.refresh()

        restored = NodeGraph.from_dict(json.loads(json.dumps(graph.to_dict())))

        assert sorted(restored.wires()) == sorted(graph.wires())
        results = restored.refresh()
        assert results[expr] == 10.0
        assert results[sink] == 10.0
        assert restored.insert_node(NumberNode()) == 5

    def test_unknown_node_type(self) -> None:
        with pytest.raises(GraphError, match="Unknown node type"):
            NodeGraph.from_dict({"nodes": {"0": {"type": "image"}}})

    def test_stale_bindings_migrate_wires_by_name(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        data = {
            "nodes": {
                "0": {"type": "number", "value": 1.0},
                "1": {"type": "number", "value": 2.0},
                "2": {
                    "type": "expr",
                    "text": "a-b",
                    "bindings": ["b", "a"],
                    "values": [0.0, 0.0],
                },
            },
            "wires": [
                {"src": {"node": 1, "output": 0}, "dst": {"node": 2, "input": 1}},
                {"src": {"node": 0, "output": 0}, "dst": {"node": 2, "input": 2}},
            ],
        }

        with caplog.at_level(logging.WARNING, logger="exprgraph.core.graph"):
            restored = NodeGraph.from_dict(data)

        assert restored.expression(2).bindings == ("a", "b")
        assert restored.store.remotes(InPinId(2, 1)) == [OutPinId(0)]
        assert restored.store.remotes(InPinId(2, 2)) == [OutPinId(1)]
        assert restored.refresh()[2] == -1.0
        assert "Migrated stored wires" in caplog.text

    def test_stale_binding_that_disappeared_drops_its_wire(self) -> None:
        data = {
            "nodes": {
                "0": {"type": "number", "value": 4.0},
                "1": {"type": "number", "value": 9.0},
                "2": {
                    "type": "expr",
                    "text": "a*2",
                    "bindings": ["a", "z"],
                    "values": [4.0, 9.0],
                },
            },
            "wires": [
                {"src": {"node": 0, "output": 0}, "dst": {"node": 2, "input": 1}},
                {"src": {"node": 1, "output": 0}, "dst": {"node": 2, "input": 2}},
            ],
        }

        restored = NodeGraph.from_dict(data)

        assert restored.wires() == [(OutPinId(0), InPinId(2, 1))]
        assert restored.refresh()[2] == 8.0
