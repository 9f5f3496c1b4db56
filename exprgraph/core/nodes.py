"""
Node kinds hosted by the graph, including the expression node controller.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Dict, Mapping, Optional, Tuple, Type, Union

from ..dbg import Debug, get_debug_state
from ..expr.ast import Expr, Val
from ..expr.parser import ExprParseError, parse_expression
from .ports import TEXT_SLOT, PinKind, binding_index
from .reconcile import Reconciliation, reconcile
from .store import NodeConnections

logger = logging.getLogger(__name__)

DEFAULT_TEXT = "0"


class NodeError(Exception):
    """Base class for node-related failures."""


class NodeBase:
    """Pin layout shared by every node kind."""

    type_name = "node"

    def inputs(self) -> int:
        return 0

    def outputs(self) -> int:
        return 0

    def input_kind(self, slot: int) -> PinKind:
        raise NodeError(f"{self.title()} node has no input {slot}")

    def output_kind(self, output: int) -> PinKind:
        raise NodeError(f"{self.title()} node has no output {output}")

    def output_value(self, output: int = 0) -> Any:
        raise NodeError(f"{self.title()} node has no output {output}")

    def title(self) -> str:
        return self.type_name.capitalize()

    def to_dict(self) -> Dict[str, Any]:  # pragma: no cover - abstract
        raise NotImplementedError


@dataclass
class NumberNode(NodeBase):
    """Constant numeric source."""

    value: float = 0.0
    type_name = "number"

    def outputs(self) -> int:
        return 1

    def output_kind(self, output: int) -> PinKind:
        if output != 0:
            return super().output_kind(output)
        return PinKind.NUMBER

    def output_value(self, output: int = 0) -> float:
        self.output_kind(output)
        return float(self.value)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_name, "value": float(self.value)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NumberNode":
        return cls(value=float(data.get("value", 0.0)))


@dataclass
class StringNode(NodeBase):
    """Text source; typically wired into an expression node's text slot."""

    text: str = ""
    type_name = "string"

    def outputs(self) -> int:
        return 1

    def output_kind(self, output: int) -> PinKind:
        if output != 0:
            return super().output_kind(output)
        return PinKind.TEXT

    def output_value(self, output: int = 0) -> str:
        self.output_kind(output)
        return self.text

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_name, "text": self.text}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StringNode":
        return cls(text=str(data.get("text", "")))


@dataclass
class SinkNode(NodeBase):
    """Single input of any kind; shows whatever was last pulled into it."""

    value: Any = None
    type_name = "sink"

    def inputs(self) -> int:
        return 1

    def input_kind(self, slot: int) -> PinKind:
        if slot != 0:
            return super().input_kind(slot)
        return PinKind.ANY

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_name}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SinkNode":
        return cls()


class ExprNode(NodeBase, Debug):
    """
    Expression node controller.

    Input slot 0 takes the source text; slot ``i`` (``1 <= i <= binding_count()``)
    feeds the variable ``binding_name(i)``. Semantic state (tree, bindings,
    values) only advances when an edit parses; the raw text buffer always
    holds the latest edit.
    """

    type_name = "expr"

    def __init__(self, text: str = DEFAULT_TEXT):
        Debug.__init__(self)
        self._text = DEFAULT_TEXT
        self._compiled_text = DEFAULT_TEXT
        self._ast: Expr = Val(0.0)
        self._bindings: Tuple[str, ...] = ()
        self._values: Tuple[float, ...] = ()
        if text != DEFAULT_TEXT:
            self.apply_text_edit(text)

    def __repr__(self) -> str:
        return (
            f"ExprNode(text={self._text!r}, bindings={list(self._bindings)!r}, "
            f"values={list(self._values)!r})"
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def text(self) -> str:
        return self._text

    @property
    def compiled_text(self) -> str:
        return self._compiled_text

    @property
    def ast(self) -> Expr:
        return self._ast

    @property
    def bindings(self) -> Tuple[str, ...]:
        return self._bindings

    @property
    def values(self) -> Tuple[float, ...]:
        return self._values

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def apply_text_edit(
        self,
        text: str,
        connections: Optional[NodeConnections] = None,
    ) -> Reconciliation:
        """
        Re-parse after a text change and migrate the binding wires.

        Raises ``ExprParseError`` when ``text`` does not parse; in that case
        only the text buffer changes.
        """
        self._text = text
        ast = self._parse(text)
        remotes_of = connections.remotes if connections is not None else None
        plan = reconcile(ast, self._bindings, self._values, remotes_of)
        if connections is not None:
            plan.apply(connections)
        self._ast = ast
        self._bindings = plan.bindings
        self._values = plan.values
        self._compiled_text = text
        logger.debug(f"Committed expression {text!r} with bindings {list(plan.bindings)}")
        return plan

    def _parse(self, text: str) -> Expr:
        timed = get_debug_state()
        if timed:
            self._start_timer()
        try:
            return parse_expression(text)
        finally:
            if timed:
                self._stop_timer("parse")

    # ------------------------------------------------------------------
    # Host accessors
    # ------------------------------------------------------------------

    def current_output(self) -> float:
        timed = get_debug_state()
        if timed:
            self._start_timer()
        result = self._ast.evaluate(self._bindings, self._values)
        if timed:
            self._stop_timer("eval")
        return result

    def binding_count(self) -> int:
        return len(self._bindings)

    def binding_name(self, slot: int) -> str:
        return self._bindings[self._binding_index(slot)]

    def binding_value(self, slot: int) -> float:
        return self._values[self._binding_index(slot)]

    def set_binding_value(self, slot: int, value: float) -> None:
        index = self._binding_index(slot)
        values = list(self._values)
        values[index] = float(value)
        self._values = tuple(values)

    def binding_slot_of(self, name: str) -> int:
        try:
            return self._bindings.index(name) + 1
        except ValueError as exc:
            raise NodeError(f"Expression has no variable '{name}'") from exc

    def _binding_index(self, slot: int) -> int:
        if not 1 <= slot <= len(self._bindings):
            raise IndexError(
                f"Binding slot {slot} out of range 1..{len(self._bindings)}"
            )
        return binding_index(slot)

    # ------------------------------------------------------------------
    # Pins
    # ------------------------------------------------------------------

    def inputs(self) -> int:
        return 1 + len(self._bindings)

    def outputs(self) -> int:
        return 1

    def input_kind(self, slot: int) -> PinKind:
        if slot == TEXT_SLOT:
            return PinKind.TEXT
        self._binding_index(slot)
        return PinKind.NUMBER

    def output_kind(self, output: int) -> PinKind:
        if output != 0:
            return super().output_kind(output)
        return PinKind.NUMBER

    def output_value(self, output: int = 0) -> float:
        self.output_kind(output)
        return self.current_output()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type_name,
            "text": self._text,
            "compiled_text": self._compiled_text,
            "bindings": list(self._bindings),
            "values": list(self._values),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExprNode":
        """
        Restore a node from persisted state.

        The compiled text is re-parsed and the bindings re-derived from the
        fresh tree, so a grammar change can never leave stored slot indices
        out of step with the expression. Stored values are matched by name.
        """
        text = str(data.get("text", DEFAULT_TEXT))
        compiled_text = str(data.get("compiled_text", text))
        bindings = list(data.get("bindings", []))
        values = [float(value) for value in data.get("values", [])]
        if len(bindings) != len(values):
            raise NodeError(
                f"Persisted expression has {len(bindings)} bindings "
                f"but {len(values)} values"
            )
        if len(set(bindings)) != len(bindings):
            raise NodeError(f"Persisted expression has duplicate bindings: {bindings}")

        ast = parse_expression(compiled_text)
        plan = reconcile(ast, bindings, values)
        if list(plan.bindings) != bindings:
            logger.warning(
                f"Stored bindings {bindings} do not match expression "
                f"{compiled_text!r}; using {list(plan.bindings)}"
            )

        node = cls()
        node._text = text
        node._compiled_text = compiled_text
        node._ast = ast
        node._bindings = plan.bindings
        node._values = plan.values
        return node


Node = Union[NumberNode, StringNode, SinkNode, ExprNode]

NODE_TYPES: Dict[str, Type[NodeBase]] = {
    NumberNode.type_name: NumberNode,
    StringNode.type_name: StringNode,
    SinkNode.type_name: SinkNode,
    ExprNode.type_name: ExprNode,
}


def node_from_dict(data: Mapping[str, Any]) -> Node:
    type_name = data.get("type")
    try:
        node_cls = NODE_TYPES[type_name]
    except KeyError as exc:
        raise NodeError(f"Unknown node type {type_name!r}") from exc
    return node_cls.from_dict(data)  # type: ignore[attr-defined]


__all__ = [
    "DEFAULT_TEXT",
    "ExprNode",
    "ExprParseError",
    "Node",
    "NodeBase",
    "NodeError",
    "NODE_TYPES",
    "NumberNode",
    "SinkNode",
    "StringNode",
    "node_from_dict",
]
