"""Tests for expression tree evaluation and rendering."""

import dataclasses
import math

import pytest

from exprgraph.expr import BinaryOp, BinaryOperator, Val, Var, evaluate, parse_expression
from exprgraph.expr.ast import format_number, ieee_divide


class TestEvaluate:
    def test_bound_variables(self) -> None:
        expr = parse_expression("a*b+c")
        assert expr.evaluate(["a", "b", "c"], [2.0, 3.0, 4.0]) == 10.0

    def test_binding_order_is_positional(self) -> None:
        expr = parse_expression("a-b")
        assert evaluate(expr, ["b", "a"], [1.0, 10.0]) == 9.0

    def test_shared_variable(self) -> None:
        assert parse_expression("a+a").evaluate(["a"], [3.0]) == 6.0

    def test_constant(self) -> None:
        assert Val(2.5).evaluate([], []) == 2.5

    def test_repeated_queries_see_new_values(self) -> None:
        expr = parse_expression("x*2")
        assert expr.evaluate(["x"], [1.0]) == 2.0
        assert expr.evaluate(["x"], [4.0]) == 8.0


class TestDivision:
    def test_positive_over_zero(self) -> None:
        assert parse_expression("1/0").evaluate([], []) == math.inf

    def test_negative_over_zero(self) -> None:
        assert parse_expression("-1/0").evaluate([], []) == -math.inf

    def test_zero_over_zero(self) -> None:
        assert math.isnan(parse_expression("0/0").evaluate([], []))

    def test_negative_zero_divisor(self) -> None:
        assert ieee_divide(1.0, -0.0) == -math.inf

    def test_nan_over_zero(self) -> None:
        assert math.isnan(ieee_divide(math.nan, 0.0))

    def test_ordinary_division(self) -> None:
        assert ieee_divide(7.0, 2.0) == 3.5


class TestStructure:
    def test_variables_in_traversal_order(self) -> None:
        assert list(parse_expression("b+a*b").variables()) == ["b", "a", "b"]

    def test_unary_operand_is_visited(self) -> None:
        assert list(parse_expression("-(c+a)*d").variables()) == ["c", "a", "d"]

    def test_nodes_are_immutable(self) -> None:
        expr = Var("a")
        with pytest.raises(dataclasses.FrozenInstanceError):
            expr.name = "b"  # type: ignore[misc]

    def test_structural_equality(self) -> None:
        assert parse_expression("a + 1") == BinaryOp(BinaryOperator.ADD, Var("a"), Val(1.0))


class TestRender:
    @pytest.mark.parametrize(
        ("text", "rendered"),
        [
            ("2+3*4", "2 + 3 * 4"),
            ("(2+3)*4", "(2 + 3) * 4"),
            ("2-(3-4)", "2 - (3 - 4)"),
            ("2-3-4", "2 - 3 - 4"),
            ("-(a+b)", "-(a + b)"),
            ("-a*b", "-a * b"),
            ("1.5/x", "1.5 / x"),
        ],
    )
    def test_str(self, text: str, rendered: str) -> None:
        assert str(parse_expression(text)) == rendered

    @pytest.mark.parametrize("text", ["a-(b-c)", "(a+b)*(c-d)/e", "-(x)*+y", "8/(4/2)"])
    def test_rendering_reparses_to_same_tree(self, text: str) -> None:
        expr = parse_expression(text)
        assert parse_expression(str(expr)) == expr

    def test_format_number(self) -> None:
        assert format_number(3.0) == "3"
        assert format_number(0.25) == "0.25"
        assert format_number(math.inf) == "inf"


class TestLongExpressions:
    TERMS = 1500

    def test_long_sum_evaluates(self) -> None:
        expr = parse_expression("+".join(["a"] * self.TERMS))
        assert expr.evaluate(["a"], [2.0]) == 2.0 * self.TERMS

    def test_long_chain_variables_keep_order(self) -> None:
        names = [f"v{i}" for i in range(self.TERMS)]
        expr = parse_expression("-".join(names))
        assert list(expr.variables()) == names

    def test_long_chain_renders(self) -> None:
        expr = parse_expression("*".join(["x"] * self.TERMS))
        assert str(expr) == " * ".join(["x"] * self.TERMS)

    def test_walk_is_pre_order(self) -> None:
        nodes = list(parse_expression("a*b+-c").walk())
        assert [type(node).__name__ for node in nodes] == [
            "BinaryOp",
            "BinaryOp",
            "Var",
            "Var",
            "UnaryOp",
            "Var",
        ]

    def test_fold_sees_children_left_to_right(self) -> None:
        expr = parse_expression("a-(b-c)")
        names = expr.fold(
            lambda node, parts: node.name if isinstance(node, Var) else "".join(parts)
        )
        assert names == "abc"
