"""Human-friendly console inspection for expressions, nodes and graphs."""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from ..core.graph import NodeGraph
from ..core.nodes import ExprNode, NodeBase, NumberNode, SinkNode, StringNode
from ..expr.ast import BinaryOp, Expr, UnaryOp, Val, Var, format_number

ASCII_BRANCH_LAST = "+-- "
ASCII_BRANCH_MID = "|-- "
ASCII_PIPE_LAST = "    "
ASCII_PIPE_MID = "|   "


def _label(expr: Expr) -> str:
    if isinstance(expr, Var):
        return f"var {expr.name}"
    if isinstance(expr, Val):
        return format_number(expr.value)
    if isinstance(expr, UnaryOp):
        return f"unary {expr.op.value}"
    if isinstance(expr, BinaryOp):
        return expr.op.value
    return type(expr).__name__


def render_expr_tree(expr: Expr) -> str:
    lines: List[str] = [_label(expr)]
    # (node, prefix, is_last); popped in pre-order so long chains need no recursion.
    stack: List[Tuple[Expr, str, bool]] = []

    def push_children(node: Expr, prefix: str) -> None:
        children = node.children()
        for idx in reversed(range(len(children))):
            stack.append((children[idx], prefix, idx == len(children) - 1))

    push_children(expr, "")
    while stack:
        node, prefix, is_last = stack.pop()
        branch = ASCII_BRANCH_LAST if is_last else ASCII_BRANCH_MID
        lines.append(f"{prefix}{branch}{_label(node)}")
        push_children(node, f"{prefix}{ASCII_PIPE_LAST if is_last else ASCII_PIPE_MID}")
    return "\n".join(lines)


def _format_value(value: object) -> str:
    if isinstance(value, float):
        return format_number(value)
    if value is None:
        return "<none>"
    return repr(value)


def _indent_lines(lines: Iterable[str], indent: str = "  ") -> List[str]:
    return [f"{indent}{line}" for line in lines]


def _node_details(node: NodeBase) -> List[str]:
    lines: List[str] = [f"{node.title()} node"]
    if isinstance(node, NumberNode):
        lines.append(f"Value: {_format_value(float(node.value))}")
    elif isinstance(node, StringNode):
        lines.append(f"Text: {node.text!r}")
    elif isinstance(node, SinkNode):
        lines.append(f"Shows: {_format_value(node.value)}")
    elif isinstance(node, ExprNode):
        lines.append(f"Text: {node.text!r}")
        if node.compiled_text != node.text:
            lines.append(f"Last valid text: {node.compiled_text!r}")
        lines.append(f"Output: {_format_value(node.current_output())}")
        lines.append("Bindings:")
        if node.binding_count():
            lines.extend(
                _indent_lines(
                    f"[{slot}] {node.binding_name(slot)} = "
                    f"{_format_value(node.binding_value(slot))}"
                    for slot in range(1, node.binding_count() + 1)
                )
            )
        else:
            lines.extend(_indent_lines(["<none>"]))
        stats = node.get_stats()
        if stats["parse_count"] or stats["eval_count"]:
            lines.append(
                "Stats: "
                f"parses={stats['parse_count']}, "
                f"avg_parse={stats['avg_parse_time']:.6f}s, "
                f"evals={stats['eval_count']}, "
                f"avg_eval={stats['avg_eval_time']:.6f}s"
            )
    return lines


def render_node(node: NodeBase) -> str:
    return "\n".join(_node_details(node))


def render_graph(graph: NodeGraph, *, title: Optional[str] = None) -> str:
    lines: List[str] = [title or "Graph"]
    order = graph.evaluation_order()
    for idx, node_id in enumerate(order):
        node = graph.node(node_id)
        details = _node_details(node)
        is_last = idx == len(order) - 1
        branch = ASCII_BRANCH_LAST if is_last else ASCII_BRANCH_MID
        pipe = ASCII_PIPE_LAST if is_last else ASCII_PIPE_MID
        lines.append(f"{branch}#{node_id} {details[0]}")
        lines.extend(f"{pipe}{line}" for line in details[1:])
    wires = graph.wires()
    lines.append("Wires:")
    if wires:
        lines.extend(
            _indent_lines(
                f"#{src.node}.out{src.output} -> #{dst.node}.in{dst.input}"
                for src, dst in sorted(wires)
            )
        )
    else:
        lines.extend(_indent_lines(["<none>"]))
    return "\n".join(lines)


def print_expr_tree(expr: Expr) -> None:
    print(render_expr_tree(expr))


def print_node(node: NodeBase) -> None:
    print(render_node(node))


def print_graph(graph: NodeGraph, *, title: Optional[str] = None) -> None:
    print(render_graph(graph, title=title))


__all__ = [
    "render_expr_tree",
    "render_node",
    "render_graph",
    "print_expr_tree",
    "print_node",
    "print_graph",
]
