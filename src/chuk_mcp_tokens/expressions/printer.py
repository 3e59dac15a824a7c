"""
Printer - renders an expression tree back to linear text.

Parentheses are inserted wherever operator precedence requires them,
so the output always re-parses to an equivalent tree. A power whose
base or exponent is a plain variable is written as pow(base, exponent).
"""

from __future__ import annotations

import json
import math

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

# Binding strength; higher binds tighter
BINARY_PRECEDENCE: dict[str, int] = {
    "||": 1,
    "&&": 2,
    "==": 3,
    "!=": 3,
    "<": 3,
    "<=": 3,
    ">": 3,
    ">=": 3,
    "+": 4,
    "-": 4,
    "*": 5,
    "/": 5,
    "%": 5,
    "^": 7,
}
UNARY_PRECEDENCE = 6
POWER_PRECEDENCE = 7
POSTFIX_PRECEDENCE = 8
ATOM_PRECEDENCE = 9


def precedence(node: Node) -> int:
    """Binding strength of a node's outermost operator."""
    if isinstance(node, BinaryOp):
        return BINARY_PRECEDENCE.get(node.operator, ATOM_PRECEDENCE)
    elif isinstance(node, UnaryOp):
        return UNARY_PRECEDENCE
    elif isinstance(node, Literal):
        if _is_number(node.value) and node.value < 0:
            return UNARY_PRECEDENCE
        return ATOM_PRECEDENCE
    elif isinstance(node, Index):
        return POSTFIX_PRECEDENCE
    elif isinstance(node, Assignment):
        return 0
    return ATOM_PRECEDENCE


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def format_number(value: int | float) -> str:
    """Format a numeric literal so it re-parses to the same value."""
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Cannot render non-finite number: {value}")
        if value.is_integer() and abs(value) < 1e16:
            return str(int(value))
        return repr(value)
    return str(value)


def format_literal(value: float | int | str | bool) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return json.dumps(value)
    return format_number(value)


def build_from_tree(node: Node) -> str:
    """
    Render a tree as linear expression text.

    Args:
        node: Root of the expression tree

    Returns:
        Text that parse_to_tree() maps back to an equivalent tree
    """
    if isinstance(node, Assignment):
        return f"{node.target} = {build_from_tree(node.expression)}"

    if isinstance(node, VariableRef):
        return node.name

    if isinstance(node, Literal):
        return format_literal(node.value)

    if isinstance(node, Group):
        return f"({build_from_tree(node.expression)})"

    if isinstance(node, UnaryOp):
        operand = _wrap(node.operand, precedence(node.operand) < UNARY_PRECEDENCE)
        # Keep "- -x" from reading as a single token in other notations
        if node.operator == "-" and operand.startswith("-"):
            return f"-({operand})"
        return f"{node.operator}{operand}"

    if isinstance(node, BinaryOp):
        if node.operator == "^":
            return _build_power(node)
        prec = BINARY_PRECEDENCE.get(node.operator, ATOM_PRECEDENCE)
        left = _wrap(node.left, precedence(node.left) < prec)
        right = _wrap(node.right, precedence(node.right) <= prec)
        return f"{left} {node.operator} {right}"

    if isinstance(node, FunctionCall):
        args = ", ".join(build_from_tree(a) for a in node.arguments)
        return f"{node.name}({args})"

    if isinstance(node, Index):
        target = _wrap(node.target, precedence(node.target) < POSTFIX_PRECEDENCE)
        return f"{target}[{build_from_tree(node.index)}]"

    if isinstance(node, ListLiteral):
        return "[" + ", ".join(build_from_tree(e) for e in node.elements) + "]"

    raise TypeError(f"Unknown node: {node!r}")


def _build_power(node: BinaryOp) -> str:
    if isinstance(node.left, VariableRef) or isinstance(node.right, VariableRef):
        return f"pow({build_from_tree(node.left)}, {build_from_tree(node.right)})"
    base = _wrap(node.left, precedence(node.left) <= POWER_PRECEDENCE)
    # Exponent is parsed at unary level, so only looser operators need parens
    exponent = _wrap(node.right, precedence(node.right) < UNARY_PRECEDENCE)
    return f"{base} ^ {exponent}"


def _wrap(node: Node, needs_parens: bool) -> str:
    text = build_from_tree(node)
    return f"({text})" if needs_parens else text
