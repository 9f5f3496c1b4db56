"""Public entrypoints for the expression language."""

from __future__ import annotations

from .ast import (
    BinaryOp,
    BinaryOperator,
    Expr,
    UnaryOp,
    UnaryOperator,
    Val,
    Var,
    evaluate,
)
from .parser import ExprParseError, ParseErrorKind, parse_expression

__all__ = [
    "BinaryOp",
    "BinaryOperator",
    "Expr",
    "ExprParseError",
    "ParseErrorKind",
    "UnaryOp",
    "UnaryOperator",
    "Val",
    "Var",
    "evaluate",
    "parse_expression",
]
