"""
Node graph hosting expression nodes and their numeric and text sources.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import networkx as nx

from ..expr.parser import ExprParseError
from .nodes import ExprNode, Node, NodeBase, NodeError, SinkNode, node_from_dict
from .ports import TEXT_SLOT, InPinId, OutPinId, decode_in_pin, decode_out_pin
from .reconcile import Reconciliation, reconcile
from .store import ConnectionStore

logger = logging.getLogger(__name__)


class GraphError(RuntimeError):
    """Raised when a graph operation is invalid."""


class NodeGraph:
    """Nodes keyed by integer id plus the wires between their pins."""

    def __init__(self, store: Optional[ConnectionStore] = None) -> None:
        self._nodes: Dict[int, Node] = {}
        self._next_id = 0
        self.store = store if store is not None else ConnectionStore()

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._nodes))

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def insert_node(self, node: Node) -> int:
        if not isinstance(node, NodeBase):
            raise GraphError(f"Expected a node, got {type(node)!r}")
        node_id = self._next_id
        self._next_id += 1
        self._nodes[node_id] = node
        return node_id

    def remove_node(self, node_id: int) -> Node:
        node = self.node(node_id)
        dropped = self.store.drop_node(node_id)
        del self._nodes[node_id]
        logger.debug(f"Removed node {node_id} and {dropped} wire(s)")
        return node

    def node(self, node_id: int) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError as exc:
            raise GraphError(f"Unknown node {node_id}") from exc

    def nodes(self) -> Dict[int, Node]:
        return dict(self._nodes)

    def expression(self, node_id: int) -> ExprNode:
        node = self.node(node_id)
        if not isinstance(node, ExprNode):
            raise GraphError(f"Node {node_id} is a {node.type_name} node, not an expression")
        return node

    # ------------------------------------------------------------------
    # Wires
    # ------------------------------------------------------------------

    def connect(self, out_pin: OutPinId, in_pin: InPinId) -> None:
        """
        Wire ``out_pin`` into ``in_pin``, replacing whatever fed ``in_pin``.
        """
        src = self.node(out_pin.node)
        dst = self.node(in_pin.node)
        if not 0 <= out_pin.output < src.outputs():
            raise GraphError(f"Node {out_pin.node} has no output {out_pin.output}")
        if not 0 <= in_pin.input < dst.inputs():
            raise GraphError(f"Node {in_pin.node} has no input {in_pin.input}")
        src_kind = src.output_kind(out_pin.output)
        dst_kind = dst.input_kind(in_pin.input)
        if not dst_kind.accepts(src_kind):
            raise GraphError(
                f"Cannot wire {src_kind.value} output {out_pin} "
                f"into {dst_kind.value} input {in_pin}"
            )
        if out_pin.node == in_pin.node or nx.has_path(
            self.to_networkx(), in_pin.node, out_pin.node
        ):
            raise GraphError(f"Wire {out_pin} -> {in_pin} would create a cycle")

        for remote in self.store.remotes(in_pin):
            if remote != out_pin:
                self.store.disconnect(remote, in_pin)
        self.store.connect(out_pin, in_pin)

    def disconnect(self, out_pin: OutPinId, in_pin: InPinId) -> bool:
        return self.store.disconnect(out_pin, in_pin)

    def wires(self) -> List[Tuple[OutPinId, InPinId]]:
        return self.store.wires()

    # ------------------------------------------------------------------
    # Editing and propagation
    # ------------------------------------------------------------------

    def edit_expression(self, node_id: int, text: str) -> Reconciliation:
        """Apply a text edit to an expression node, migrating its wires."""
        node = self.expression(node_id)
        return node.apply_text_edit(text, self.store.view(node_id))

    def to_networkx(self) -> nx.DiGraph:
        graph = nx.DiGraph()
        for node_id, node in self._nodes.items():
            graph.add_node(node_id, kind=node.type_name)
        for out_pin, in_pin in self.store.wires():
            if graph.has_edge(out_pin.node, in_pin.node):
                graph[out_pin.node][in_pin.node]["pins"].append((out_pin, in_pin))
            else:
                graph.add_edge(out_pin.node, in_pin.node, pins=[(out_pin, in_pin)])
        return graph

    def evaluation_order(self) -> List[int]:
        try:
            return list(nx.lexicographical_topological_sort(self.to_networkx()))
        except nx.NetworkXUnfeasible as exc:
            raise GraphError("Graph contains a cycle and cannot be evaluated") from exc

    def refresh(self) -> Dict[int, Any]:
        """
        Pull upstream values through the graph in dependency order.

        Expression nodes re-parse wired text that changed and copy wired
        numeric inputs into their bindings; sinks take their upstream value.
        Returns the current output of every node that has one and the value
        shown by every sink.
        """
        results: Dict[int, Any] = {}
        for node_id in self.evaluation_order():
            node = self._nodes[node_id]
            if isinstance(node, ExprNode):
                self._pull_expression(node_id, node)
            elif isinstance(node, SinkNode):
                node.value = self.upstream_value(InPinId(node_id, 0))
                results[node_id] = node.value
                continue
            if node.outputs():
                results[node_id] = node.output_value(0)
        return results

    def upstream_value(self, in_pin: InPinId) -> Any:
        remotes = self.store.remotes(in_pin)
        if not remotes:
            return None
        remote = remotes[0]
        return self._nodes[remote.node].output_value(remote.output)

    def _pull_expression(self, node_id: int, node: ExprNode) -> None:
        text = self.upstream_value(InPinId(node_id, TEXT_SLOT))
        if text is not None and text != node.text:
            try:
                node.apply_text_edit(text, self.store.view(node_id))
            except ExprParseError as exc:
                logger.warning(f"Expression node {node_id} keeps its last valid state: {exc}")
        for slot in range(1, node.binding_count() + 1):
            value = self.upstream_value(InPinId(node_id, slot))
            if value is not None:
                node.set_binding_value(slot, value)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": {str(node_id): node.to_dict() for node_id, node in self._nodes.items()},
            "wires": [
                {"src": out_pin.to_dict(), "dst": in_pin.to_dict()}
                for out_pin, in_pin in self.store.wires()
            ],
            "next_id": self._next_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NodeGraph":
        """
        Rebuild a graph from ``to_dict`` output.

        Stored wires address binding slots of the stored binding list. When an
        expression node re-derives different bindings on restore, its wires
        are migrated by variable name exactly as for a text edit; wires whose
        variable no longer exists are dropped.
        """
        graph = cls()
        stored_bindings: Dict[int, Tuple[List[str], List[float]]] = {}
        for key, node_data in data.get("nodes", {}).items():
            node_id = int(key)
            try:
                node = node_from_dict(node_data)
            except NodeError as exc:
                raise GraphError(f"Cannot restore node {key}: {exc}") from exc
            graph._nodes[node_id] = node
            if isinstance(node, ExprNode):
                bindings = [str(name) for name in node_data.get("bindings", [])]
                if bindings != list(node.bindings):
                    values = [float(value) for value in node_data.get("values", [])]
                    stored_bindings[node_id] = (bindings, values)
        graph._next_id = max(
            int(data.get("next_id", 0)),
            max(graph._nodes, default=-1) + 1,
        )

        pending = ConnectionStore()
        for wire in data.get("wires", []):
            pending.connect(decode_out_pin(wire["src"]), decode_in_pin(wire["dst"]))
        for node_id, (bindings, values) in stored_bindings.items():
            node = graph.expression(node_id)
            connections = pending.view(node_id)
            plan = reconcile(node.ast, bindings, values, connections.remotes)
            plan.apply(connections)
            logger.warning(
                f"Migrated stored wires of expression node {node_id} "
                f"from {bindings} to {list(node.bindings)}"
            )
        for out_pin, in_pin in pending.wires():
            graph.connect(out_pin, in_pin)
        return graph


__all__ = [
    "GraphError",
    "NodeGraph",
]
