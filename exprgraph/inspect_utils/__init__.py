"""Inspection helpers for expressions, nodes and graphs."""

from .plain import (
    print_expr_tree,
    print_graph,
    print_node,
    render_expr_tree,
    render_graph,
    render_node,
)

__all__ = [
    "render_expr_tree",
    "print_expr_tree",
    "render_node",
    "print_node",
    "render_graph",
    "print_graph",
]
