"""AST node definitions and evaluation for node expressions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import math
from typing import Any, Callable, Iterator, List, Mapping, Sequence, Tuple, TypeVar

T = TypeVar("T")


class UnaryOperator(Enum):
    POS = "+"
    NEG = "-"


class BinaryOperator(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"

    @property
    def precedence(self) -> int:
        if self in (BinaryOperator.MUL, BinaryOperator.DIV):
            return 2
        return 1


# Unary operands and leaves bind tighter than any binary operator.
_ATOM_PRECEDENCE = 3


class Expr:
    """
    Base class for expression tree nodes.

    Traversals use an explicit stack rather than recursion: a left-associative
    chain such as ``a+a+...+a`` is as deep as it is long.
    """

    def evaluate(self, bindings: Sequence[str], values: Sequence[float]) -> float:
        """
        Compute the expression for the given binding set.

        ``bindings[i]`` names the variable whose current value is ``values[i]``.
        Bindings are always derived from the tree being evaluated, so every
        ``Var`` finds its value.
        """
        env = dict(zip(bindings, values))
        return self.fold(lambda node, operands: node._apply(operands, env))

    def children(self) -> Tuple["Expr", ...]:
        return ()

    def _apply(self, operands: Sequence[float], env: Mapping[str, float]) -> float:  # pragma: no cover - abstract
        raise NotImplementedError

    def _format(self, parts: Sequence[str]) -> str:  # pragma: no cover - abstract
        raise NotImplementedError

    def fold(self, visit: Callable[["Expr", List[Any]], T]) -> T:
        """
        Post-order reduction: ``visit(node, results)`` receives the results of
        the node's children, left to right.
        """
        results: List[Any] = []
        stack: List[Tuple[Expr, bool]] = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            children = node.children()
            if children and not expanded:
                stack.append((node, True))
                stack.extend((child, False) for child in reversed(children))
                continue
            operands: List[Any] = []
            if children:
                operands = results[-len(children):]
                del results[-len(children):]
            results.append(visit(node, operands))
        return results[0]

    def walk(self) -> Iterator["Expr"]:
        """Pre-order traversal, left operand before right."""
        stack: List[Expr] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children()))

    def variables(self) -> Iterator[str]:
        for node in self.walk():
            if isinstance(node, Var):
                yield node.name

    @property
    def precedence(self) -> int:
        return _ATOM_PRECEDENCE

    def __str__(self) -> str:
        return self.fold(lambda node, parts: node._format(parts))


@dataclass(frozen=True)
class Var(Expr):
    name: str

    def _apply(self, operands: Sequence[float], env: Mapping[str, float]) -> float:
        return env[self.name]

    def _format(self, parts: Sequence[str]) -> str:
        return self.name


@dataclass(frozen=True)
class Val(Expr):
    value: float

    def _apply(self, operands: Sequence[float], env: Mapping[str, float]) -> float:
        return self.value

    def _format(self, parts: Sequence[str]) -> str:
        return format_number(self.value)


@dataclass(frozen=True)
class UnaryOp(Expr):
    op: UnaryOperator
    operand: Expr

    def children(self) -> Tuple[Expr, ...]:
        return (self.operand,)

    def _apply(self, operands: Sequence[float], env: Mapping[str, float]) -> float:
        (value,) = operands
        if self.op is UnaryOperator.NEG:
            return -value
        return value

    def _format(self, parts: Sequence[str]) -> str:
        (inner,) = parts
        if not isinstance(self.operand, (Var, Val)) or inner.startswith("-"):
            inner = f"({inner})"
        return f"{self.op.value}{inner}"


@dataclass(frozen=True)
class BinaryOp(Expr):
    op: BinaryOperator
    left: Expr
    right: Expr

    def children(self) -> Tuple[Expr, ...]:
        return (self.left, self.right)

    def _apply(self, operands: Sequence[float], env: Mapping[str, float]) -> float:
        lhs, rhs = operands
        if self.op is BinaryOperator.ADD:
            return lhs + rhs
        if self.op is BinaryOperator.SUB:
            return lhs - rhs
        if self.op is BinaryOperator.MUL:
            return lhs * rhs
        return ieee_divide(lhs, rhs)

    @property
    def precedence(self) -> int:
        return self.op.precedence

    def _format(self, parts: Sequence[str]) -> str:
        left, right = parts
        if self.left.precedence < self.precedence:
            left = f"({left})"
        # Left associativity: an equal-precedence right operand was grouped explicitly.
        if self.right.precedence <= self.precedence:
            right = f"({right})"
        return f"{left} {self.op.value} {right}"


def ieee_divide(dividend: float, divisor: float) -> float:
    """Float division that follows IEEE-754 for a zero divisor instead of raising."""
    try:
        return dividend / divisor
    except ZeroDivisionError:
        if dividend == 0.0 or math.isnan(dividend):
            return math.nan
        return math.copysign(math.inf, dividend) * math.copysign(1.0, divisor)


def format_number(value: float) -> str:
    value = float(value)
    if math.isfinite(value) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def evaluate(expr: Expr, bindings: Sequence[str], values: Sequence[float]) -> float:
    return expr.evaluate(bindings, values)


__all__ = [
    "BinaryOp",
    "BinaryOperator",
    "Expr",
    "UnaryOp",
    "UnaryOperator",
    "Val",
    "Var",
    "evaluate",
    "format_number",
    "ieee_divide",
]
