"""Convenience exports for the exprgraph package."""

from .core import (
    ConnectionStore,
    ExprNode,
    GraphError,
    InPinId,
    NodeError,
    NodeGraph,
    NumberNode,
    OutPinId,
    SinkNode,
    StringNode,
    reconcile,
)
from .expr import Expr, ExprParseError, ParseErrorKind, parse_expression

__all__ = [
    "ConnectionStore",
    "Expr",
    "ExprNode",
    "ExprParseError",
    "GraphError",
    "InPinId",
    "NodeError",
    "NodeGraph",
    "NumberNode",
    "OutPinId",
    "ParseErrorKind",
    "SinkNode",
    "StringNode",
    "parse_expression",
    "reconcile",
]
