"""
Static analysis of expression trees.

Provides:
- extract_variables: names an expression reads
- complexity_score / complexity_level: rough size measure
- check_tree: advisory warnings (never block execution)
- simplify: constant folding and identity removal
"""

from __future__ import annotations

import math
from enum import Enum

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
    walk,
)
from chuk_mcp_tokens.expressions.functions import STANDARD_FUNCTIONS, is_function_name
from chuk_mcp_tokens.expressions.interpreter import apply_binary, is_number

# Complexity above this produces a warning
COMPLEXITY_WARNING_THRESHOLD = 5


class ComplexityLevel(str, Enum):
    """Coarse complexity buckets."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def extract_variables(node: Node) -> list[str]:
    """Names read by the expression, in first-use order, without duplicates."""
    names: list[str] = []
    for child in walk(node):
        if isinstance(child, VariableRef) and child.name not in names:
            names.append(child.name)
    return names


def extract_functions(node: Node) -> list[str]:
    names: list[str] = []
    for child in walk(node):
        if isinstance(child, FunctionCall) and child.name not in names:
            names.append(child.name)
    return names


def complexity_score(node: Node) -> int:
    """One point per node, two extra per function call."""
    score = 0
    for child in walk(node):
        score += 1
        if isinstance(child, FunctionCall):
            score += 2
    return score


def complexity_level(node: Node) -> ComplexityLevel:
    score = complexity_score(node)
    if score <= 3:
        return ComplexityLevel.LOW
    if score <= 8:
        return ComplexityLevel.MEDIUM
    return ComplexityLevel.HIGH


def check_tree(node: Node) -> list[str]:
    """
    Advisory warnings for a tree.

    Flags division or modulo by a literal zero, high complexity and
    calls to functions outside the standard library.
    """
    warnings: list[str] = []

    for child in walk(node):
        if (
            isinstance(child, BinaryOp)
            and child.operator in ("/", "%")
            and isinstance(child.right, Literal)
            and is_number(child.right.value)
            and child.right.value == 0
        ):
            warnings.append("Warning: Division by zero detected")
        if isinstance(child, FunctionCall) and not is_function_name(child.name):
            warnings.append(f"Warning: Unknown function '{child.name}'")

    score = complexity_score(node)
    if score > COMPLEXITY_WARNING_THRESHOLD:
        warnings.append(f"Warning: Expression is complex (score {score})")

    return warnings


def simplify(node: Node) -> Node:
    """
    Return a simplified copy of the tree.

    Folds arithmetic on numeric literals and calls with literal
    arguments, and removes identities (x + 0, x * 1, x ^ 1, x ^ 0 -> 1,
    --x). Identity removal assumes numeric operands. Operations that
    would fail at run time are left in place so the failure still
    surfaces when the expression is evaluated.
    """
    if isinstance(node, Assignment):
        return Assignment(node.target, simplify(node.expression))

    if isinstance(node, Group):
        inner = simplify(node.expression)
        if isinstance(inner, VariableRef | Literal | FunctionCall | Group):
            return inner
        return Group(inner)

    if isinstance(node, UnaryOp):
        operand = simplify(node.operand)
        if node.operator == "-":
            if isinstance(operand, UnaryOp) and operand.operator == "-":
                return operand.operand
            if isinstance(operand, Literal) and is_number(operand.value):
                return Literal(-operand.value)
        if node.operator == "+" and isinstance(operand, Literal) and is_number(operand.value):
            return operand
        return UnaryOp(node.operator, operand)

    if isinstance(node, BinaryOp):
        return _simplify_binary(node.operator, simplify(node.left), simplify(node.right))

    if isinstance(node, FunctionCall):
        args = tuple(simplify(a) for a in node.arguments)
        function = STANDARD_FUNCTIONS.get(node.name)
        if function and args and all(_numeric_literal(a) for a in args):
            try:
                value = function(*(a.value for a in args))  # type: ignore[union-attr]
            except (TypeError, ValueError, OverflowError):
                return FunctionCall(node.name, args)
            if is_number(value) and (isinstance(value, int) or math.isfinite(value)):
                return Literal(value)
        return FunctionCall(node.name, args)

    if isinstance(node, Index):
        return Index(simplify(node.target), simplify(node.index))

    if isinstance(node, ListLiteral):
        return ListLiteral(tuple(simplify(e) for e in node.elements))

    return node


def _numeric_literal(node: Node) -> bool:
    return isinstance(node, Literal) and is_number(node.value)


def _is_value(node: Node, value: float) -> bool:
    return _numeric_literal(node) and node.value == value  # type: ignore[union-attr]


def _simplify_binary(operator: str, left: Node, right: Node) -> Node:
    if _numeric_literal(left) and _numeric_literal(right) and operator not in ("&&", "||"):
        try:
            value = apply_binary(operator, left.value, right.value)  # type: ignore[union-attr]
        except EvaluationError:
            return BinaryOp(operator, left, right)
        if isinstance(value, bool | int) or (isinstance(value, float) and math.isfinite(value)):
            return Literal(value)
        return BinaryOp(operator, left, right)

    if operator == "+":
        if _is_value(right, 0):
            return left
        if _is_value(left, 0):
            return right
    elif operator == "-":
        if _is_value(right, 0):
            return left
    elif operator == "*":
        if _is_value(right, 1):
            return left
        if _is_value(left, 1):
            return right
    elif operator == "/":
        if _is_value(right, 1):
            return left
    elif operator == "^":
        if _is_value(right, 1):
            return left
        if _is_value(right, 0):
            return Literal(1)

    return BinaryOp(operator, left, right)
