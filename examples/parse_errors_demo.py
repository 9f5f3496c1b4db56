"""
Show how malformed expression text is reported.

Run with::

    python examples/parse_errors_demo.py
"""

from exprgraph.expr import ExprParseError, parse_expression

SAMPLES = ["1 + 2 * 3", "(a - b) / -c", "", "2 +", "(1 + 2", "1 2", "x $ y"]


def main() -> None:
    for text in SAMPLES:
        try:
            expr = parse_expression(text)
        except ExprParseError as exc:
            print(f"{text!r:16} -> {exc.kind.name}: {exc}")
        else:
            print(f"{text!r:16} -> {expr}  (variables: {list(expr.variables())})")


if __name__ == "__main__":
    main()
