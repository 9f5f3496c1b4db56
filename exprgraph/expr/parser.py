"""Tokenizer and precedence-climbing parser for node expressions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
import re
from typing import List, Optional

from .ast import BinaryOp, BinaryOperator, Expr, UnaryOp, UnaryOperator, Val, Var


class ParseErrorKind(Enum):
    EMPTY_INPUT = auto()
    UNEXPECTED_TOKEN = auto()
    UNCLOSED_PAREN = auto()
    TRAILING_INPUT = auto()


class ExprParseError(SyntaxError):
    """Raised when expression text cannot be parsed; ``kind`` tells why."""

    def __init__(self, kind: ParseErrorKind, message: str, position: int):
        super().__init__(f"{message} (column {position + 1})")
        self.kind = kind
        self.position = position


class TokenType(Enum):
    NUMBER = auto()
    IDENT = auto()
    OPERATOR = auto()
    LPAREN = auto()
    RPAREN = auto()
    EOF = auto()


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    position: int

    def describe(self) -> str:
        if self.type is TokenType.EOF:
            return "end of input"
        return repr(self.value)


_TOKEN_SPEC = [
    (TokenType.NUMBER, r"\d+(?:\.\d+)?|\.\d+"),
    (TokenType.IDENT, r"[A-Za-z_][A-Za-z0-9_]*"),
    (TokenType.OPERATOR, r"[+\-*/]"),
    (TokenType.LPAREN, r"\("),
    (TokenType.RPAREN, r"\)"),
]

_MASTER_RE = re.compile(
    "|".join(f"(?P<T{i}>{pattern})" for i, (_, pattern) in enumerate(_TOKEN_SPEC)),
    re.ASCII,
)
_WHITESPACE_RE = re.compile(r"\s+")

_BINARY_OPERATORS = {op.value: op for op in BinaryOperator}
_UNARY_OPERATORS = {op.value: op for op in UnaryOperator}

# Each parenthesis level costs a few parser frames; stay well inside the
# interpreter's recursion limit.
MAX_NESTING_DEPTH = 100


def tokenize(text: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    length = len(text)
    while pos < length:
        m = _WHITESPACE_RE.match(text, pos)
        if m:
            pos = m.end()
            continue
        m = _MASTER_RE.match(text, pos)
        if not m:
            raise ExprParseError(
                ParseErrorKind.UNEXPECTED_TOKEN,
                f"Unexpected character {text[pos]!r}",
                pos,
            )
        tok_type = _TOKEN_SPEC[int(m.lastgroup[1:])][0]
        tokens.append(Token(tok_type, m.group(0), pos))
        pos = m.end()
    tokens.append(Token(TokenType.EOF, "", length))
    return tokens


class _ExprParser:
    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0
        self.depth = 0

    def parse(self) -> Expr:
        if self._peek().type is TokenType.EOF:
            raise self._error(
                ParseErrorKind.EMPTY_INPUT, "Expression is empty", self._peek()
            )
        expr = self._parse_expr()
        tok = self._peek()
        if tok.type is not TokenType.EOF:
            raise self._error(
                ParseErrorKind.TRAILING_INPUT,
                f"Unexpected {tok.describe()} after complete expression",
                tok,
            )
        return expr

    def _parse_expr(self) -> Expr:
        return self._climb(self._parse_factor(), 1)

    def _climb(self, left: Expr, min_precedence: int) -> Expr:
        op = self._peek_binary()
        while op is not None and op.precedence >= min_precedence:
            self._advance()
            right = self._parse_factor()
            following = self._peek_binary()
            while following is not None and following.precedence > op.precedence:
                right = self._climb(right, op.precedence + 1)
                following = self._peek_binary()
            left = BinaryOp(op, left, right)
            op = self._peek_binary()
        return left

    def _parse_factor(self) -> Expr:
        tok = self._peek()
        if tok.type is TokenType.OPERATOR and tok.value in _UNARY_OPERATORS:
            self._advance()
            return UnaryOp(_UNARY_OPERATORS[tok.value], self._parse_primary())
        return self._parse_primary()

    def _parse_primary(self) -> Expr:
        tok = self._advance()
        if tok.type is TokenType.NUMBER:
            return Val(float(tok.value))
        if tok.type is TokenType.IDENT:
            return Var(tok.value)
        if tok.type is TokenType.LPAREN:
            if self.depth >= MAX_NESTING_DEPTH:
                raise self._error(
                    ParseErrorKind.UNEXPECTED_TOKEN,
                    f"Parentheses nested deeper than {MAX_NESTING_DEPTH} levels",
                    tok,
                )
            self.depth += 1
            inner = self._parse_expr()
            self.depth -= 1
            closing = self._peek()
            if closing.type is TokenType.RPAREN:
                self._advance()
                return inner
            if closing.type is TokenType.EOF:
                raise self._error(
                    ParseErrorKind.UNCLOSED_PAREN,
                    "Missing ')' for '('",
                    tok,
                )
            raise self._error(
                ParseErrorKind.UNEXPECTED_TOKEN,
                f"Expected ')' but found {closing.describe()}",
                closing,
            )
        raise self._error(
            ParseErrorKind.UNEXPECTED_TOKEN,
            f"Expected a number, variable or '(' but found {tok.describe()}",
            tok,
        )

    def _peek(self) -> Token:
        return self.tokens[self.index]

    def _peek_binary(self) -> Optional[BinaryOperator]:
        tok = self._peek()
        if tok.type is TokenType.OPERATOR:
            return _BINARY_OPERATORS[tok.value]
        return None

    def _advance(self) -> Token:
        tok = self.tokens[self.index]
        if tok.type is not TokenType.EOF:
            self.index += 1
        return tok

    @staticmethod
    def _error(kind: ParseErrorKind, message: str, tok: Token) -> ExprParseError:
        return ExprParseError(kind, message, tok.position)


def parse_expression(text: str) -> Expr:
    """Parse ``text`` into an expression tree; the whole input must be consumed."""
    return _ExprParser(text).parse()


__all__ = [
    "ExprParseError",
    "MAX_NESTING_DEPTH",
    "ParseErrorKind",
    "Token",
    "TokenType",
    "parse_expression",
    "tokenize",
]
