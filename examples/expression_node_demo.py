"""
Demonstrate an expression node whose text comes from an upstream string node.

Run with::

    python examples/expression_node_demo.py

It wires two numbers into ``a*b``, then edits the upstream text to ``b/a`` and
shows that the existing wires follow their variables to the new slots.
"""

import json

from exprgraph import (
    ExprNode,
    InPinId,
    NodeGraph,
    NumberNode,
    OutPinId,
    SinkNode,
    StringNode,
)
from exprgraph.dbg import DebuggingContext
from exprgraph.inspect_utils import print_expr_tree, print_graph


def build_graph() -> NodeGraph:
    graph = NodeGraph()
    text = graph.insert_node(StringNode("a*b"))
    first = graph.insert_node(NumberNode(8.0))
    second = graph.insert_node(NumberNode(2.0))
    expr = graph.insert_node(ExprNode())
    sink = graph.insert_node(SinkNode())

    graph.connect(OutPinId(text), InPinId(expr, 0))
    # Binding slots only exist once the text has been pulled in.
    graph.refresh()
    graph.connect(OutPinId(first), InPinId(expr, 1))
    graph.connect(OutPinId(second), InPinId(expr, 2))
    graph.connect(OutPinId(expr), InPinId(sink, 0))
    return graph


def main() -> None:
    graph = build_graph()
    text_id, expr_id = 0, 3

    with DebuggingContext(True):
        outputs = graph.refresh()
        print("=== a*b ===")
        print_graph(graph, title="Product")
        print(f"outputs: {outputs}")

        graph.node(text_id).text = "b/a"
        outputs = graph.refresh()
        print("\n=== b/a ===")
        print_graph(graph, title="Quotient")
        print(f"outputs: {outputs}")

        graph.node(text_id).text = "b/"
        outputs = graph.refresh()
        print("\n=== b/ (rejected) ===")
        print_graph(graph, title="Quotient, pending edit")

    print("\n=== Expression tree ===")
    print_expr_tree(graph.expression(expr_id).ast)

    print("\n=== Serialized Form ===")
    print(json.dumps(graph.to_dict(), indent=2))


if __name__ == "__main__":
    main()
