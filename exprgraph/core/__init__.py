"""Node graph core: pins, wire store, binding reconciliation and node kinds."""

from .graph import GraphError, NodeGraph
from .nodes import (
    DEFAULT_TEXT,
    ExprNode,
    NodeBase,
    NodeError,
    NumberNode,
    SinkNode,
    StringNode,
    node_from_dict,
)
from .ports import TEXT_SLOT, InPinId, OutPinId, PinKind
from .reconcile import Reconciliation, collect_bindings, reconcile
from .store import ConnectionStore, NodeConnections

__all__ = [
    "ConnectionStore",
    "DEFAULT_TEXT",
    "ExprNode",
    "GraphError",
    "InPinId",
    "NodeBase",
    "NodeConnections",
    "NodeError",
    "NodeGraph",
    "NumberNode",
    "OutPinId",
    "PinKind",
    "Reconciliation",
    "SinkNode",
    "StringNode",
    "TEXT_SLOT",
    "collect_bindings",
    "node_from_dict",
    "reconcile",
]
