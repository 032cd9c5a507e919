"""Arithmetic-only expression evaluator for the calculator tool."""

from __future__ import annotations

import ast
import math
import operator
from typing import Any, Callable, Union

from mcp_bridge.errors import ToolExecutionError

Number = Union[int, float]

_BINARY_OPS: dict[type[ast.operator], Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS: dict[type[ast.unaryop], Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

MAX_EXPRESSION_LENGTH = 500
MAX_EXPONENT = 1000
MAX_INT_BITS = 100_000


def evaluate(expression: str) -> Number:
    """
    Evaluate *expression* as plain arithmetic.

    Only numeric literals, ``+ - * / // % **``, unary ``+``/``-`` and
    parentheses are allowed. Names, calls, attribute access and every other
    construct are rejected before anything is evaluated.

    Raises:
        ToolExecutionError: On syntax errors, disallowed constructs, division
            by zero or results that are not finite.
    """
    if not isinstance(expression, str) or not expression.strip():
        raise ToolExecutionError("expression must be a non-empty string")
    if len(expression) > MAX_EXPRESSION_LENGTH:
        raise ToolExecutionError(f"expression longer than {MAX_EXPRESSION_LENGTH} characters")

    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as exc:
        raise ToolExecutionError(f"invalid expression: {exc.msg}") from exc
    except ValueError as exc:
        raise ToolExecutionError(f"invalid expression: {exc}") from exc

    try:
        result = _eval(tree.body)
    except ZeroDivisionError as exc:
        raise ToolExecutionError("division by zero") from exc
    except OverflowError as exc:
        raise ToolExecutionError("result too large") from exc

    if isinstance(result, complex):
        raise ToolExecutionError("result is not a real number")
    if isinstance(result, float) and not math.isfinite(result):
        raise ToolExecutionError("result is not a finite number")
    return result


def _eval(node: ast.AST) -> Number:
    if isinstance(node, ast.Constant):
        # bool is an int subclass; keep it out
        if isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
            return node.value
        raise ToolExecutionError(f"unsupported literal: {node.value!r}")

    if isinstance(node, ast.BinOp):
        op = _BINARY_OPS.get(type(node.op))
        if op is None:
            raise ToolExecutionError(f"unsupported operator: {type(node.op).__name__}")
        left = _eval(node.left)
        right = _eval(node.right)
        if isinstance(node.op, ast.Pow):
            if abs(right) > MAX_EXPONENT:
                raise ToolExecutionError(f"exponent larger than {MAX_EXPONENT}")
            if isinstance(left, int) and isinstance(right, int) and left.bit_length() * abs(right) > MAX_INT_BITS:
                raise ToolExecutionError("result too large")
        return _check_size(op(left, right))

    if isinstance(node, ast.UnaryOp):
        op = _UNARY_OPS.get(type(node.op))
        if op is None:
            raise ToolExecutionError(f"unsupported operator: {type(node.op).__name__}")
        return op(_eval(node.operand))

    raise ToolExecutionError(f"unsupported expression element: {type(node).__name__}")


def _check_size(value: Number) -> Number:
    if isinstance(value, int) and value.bit_length() > MAX_INT_BITS:
        raise ToolExecutionError("result too large")
    return value
