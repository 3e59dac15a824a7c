"""
Tree interpreter - evaluates an expression tree against a scope.

The interpreter is closed: it only reads names from the scope mapping
and only calls callables found there. Nothing is compiled or executed
from text.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from chuk_mcp_tokens.errors import EvaluationError
from chuk_mcp_tokens.expressions.ast import (
    Assignment,
    BinaryOp,
    FunctionCall,
    Group,
    Index,
    ListLiteral,
    Literal,
    Node,
    UnaryOp,
    VariableRef,
)

ARITHMETIC_OPERATORS = ("+", "-", "*", "/", "%", "^")
COMPARISON_OPERATORS = ("==", "!=", "<", "<=", ">", ">=")


def is_number(value: Any) -> bool:
    """True for int/float values (booleans are not numbers here)."""
    return isinstance(value, int | float) and not isinstance(value, bool)


def truthy(value: Any) -> bool:
    """Truthiness used by !, && and || and by conditions."""
    if isinstance(value, bool):
        return value
    if is_number(value):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return value is not None


def _type_name(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "list"
    return type(value).__name__


def evaluate_tree(node: Node, scope: Mapping[str, Any]) -> Any:
    """
    Evaluate a tree.

    For an Assignment the value of the right-hand side is returned;
    binding it is the caller's job.

    Raises:
        EvaluationError: On unresolved names, type errors, division by
            zero, math domain errors, overflow, a failing function or a
            tree nested too deeply to walk
    """
    try:
        return _evaluate(node, scope)
    except RecursionError as e:
        raise EvaluationError("Expression nested too deeply") from e


def _evaluate(node: Node, scope: Mapping[str, Any]) -> Any:
    if isinstance(node, Literal):
        return node.value

    if isinstance(node, VariableRef):
        if node.name not in scope:
            raise EvaluationError(f"Undefined variable: {node.name}")
        value = scope[node.name]
        if callable(value):
            raise EvaluationError(f"'{node.name}' is a function and cannot be used as a value")
        return value

    if isinstance(node, Group | Assignment):
        return _evaluate(node.expression, scope)

    if isinstance(node, UnaryOp):
        return _evaluate_unary(node.operator, _evaluate(node.operand, scope))

    if isinstance(node, BinaryOp):
        if node.operator == "&&":
            left = _evaluate(node.left, scope)
            return _evaluate(node.right, scope) if truthy(left) else left
        if node.operator == "||":
            left = _evaluate(node.left, scope)
            return left if truthy(left) else _evaluate(node.right, scope)
        return apply_binary(
            node.operator, _evaluate(node.left, scope), _evaluate(node.right, scope)
        )

    if isinstance(node, FunctionCall):
        function = scope.get(node.name)
        if function is None or not callable(function):
            raise EvaluationError(f"Unknown function: {node.name}")
        args = [_evaluate(a, scope) for a in node.arguments]
        try:
            return function(*args)
        except (TypeError, ValueError, OverflowError, ZeroDivisionError) as e:
            raise EvaluationError(f"{node.name}(): {e}") from e

    if isinstance(node, Index):
        return _evaluate_index(_evaluate(node.target, scope), _evaluate(node.index, scope))

    if isinstance(node, ListLiteral):
        return [_evaluate(e, scope) for e in node.elements]

    raise EvaluationError(f"Unsupported node: {type(node).__name__}")


def _evaluate_unary(operator: str, value: Any) -> Any:
    if operator == "!":
        return not truthy(value)
    if not is_number(value):
        raise EvaluationError(f"Unary '{operator}' expects a number, got {_type_name(value)}")
    return -value if operator == "-" else value


def apply_binary(operator: str, left: Any, right: Any) -> Any:
    """
    Apply an arithmetic or comparison operator to two evaluated operands.

    Raises:
        EvaluationError: On a type mismatch or an invalid numeric operation
    """
    if operator in COMPARISON_OPERATORS:
        return _compare(operator, left, right)

    if operator == "+":
        if is_number(left) and is_number(right):
            return _arithmetic(operator, left, right)
        if isinstance(left, str) and isinstance(right, str):
            return left + right
        if isinstance(left, list) and isinstance(right, list):
            return left + right
        raise EvaluationError(
            f"Cannot apply '+' to {_type_name(left)} and {_type_name(right)}"
        )

    if operator not in ARITHMETIC_OPERATORS:
        raise EvaluationError(f"Unknown operator: {operator}")

    if not (is_number(left) and is_number(right)):
        raise EvaluationError(
            f"Cannot apply '{operator}' to {_type_name(left)} and {_type_name(right)}"
        )

    return _arithmetic(operator, left, right)


def _arithmetic(operator: str, left: int | float, right: int | float) -> int | float:
    """Numeric operators; mixed int/float overflow is an EvaluationError."""
    if operator in ("/", "%") and right == 0:
        raise EvaluationError("Division by zero" if operator == "/" else "Modulo by zero")

    try:
        if operator == "+":
            return left + right
        if operator == "-":
            return left - right
        if operator == "*":
            return left * right
        if operator == "/":
            return left / right
        if operator == "%":
            # Remainder takes the sign of the dividend
            result = math.fmod(left, right)
            return int(result) if isinstance(left, int) and isinstance(right, int) else result
        return math.pow(left, right)
    except OverflowError as e:
        raise EvaluationError(f"Numeric overflow in '{operator}': {e}") from e
    except (ValueError, ZeroDivisionError) as e:
        raise EvaluationError(f"Invalid operation '{operator}': {e}") from e


def _compare(operator: str, left: Any, right: Any) -> bool:
    if operator == "==":
        return _equal(left, right)
    if operator == "!=":
        return not _equal(left, right)

    comparable = (is_number(left) and is_number(right)) or (
        isinstance(left, str) and isinstance(right, str)
    )
    if not comparable:
        raise EvaluationError(
            f"Cannot compare {_type_name(left)} and {_type_name(right)} with '{operator}'"
        )
    if operator == "<":
        return left < right
    if operator == "<=":
        return left <= right
    if operator == ">":
        return left > right
    return left >= right


def _equal(left: Any, right: Any) -> bool:
    # true == 1 is false here, unlike loose equality
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return bool(left == right)


def _evaluate_index(target: Any, index: Any) -> Any:
    if not isinstance(target, list | str):
        raise EvaluationError(f"Cannot index into {_type_name(target)}")
    if not is_number(index) or (isinstance(index, float) and not index.is_integer()):
        raise EvaluationError(f"Index must be an integer, got {index!r}")
    position = int(index)
    if not 0 <= position < len(target):
        raise EvaluationError(f"Index {position} out of range (length {len(target)})")
    return target[position]
