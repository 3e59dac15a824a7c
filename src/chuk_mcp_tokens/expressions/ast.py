"""
Expression tree - the canonical representation of a formula.

Linear text and display notation are both parsed into, and rendered
from, these nodes. Nodes are immutable; transformations build new trees.

Serialized form (to_dict/from_dict) uses the document JSON shape:

    {"type": "binary", "operator": "*",
     "left": {"type": "variable", "variableName": "base"},
     "right": {"type": "literal", "value": 2}}
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class VariableRef:
    """Reference to a name in scope."""

    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "variable", "variableName": self.name}


@dataclass(frozen=True)
class Literal:
    """A number, string or boolean constant."""

    value: float | int | str | bool

    def to_dict(self) -> dict[str, Any]:
        return {"type": "literal", "value": self.value}


@dataclass(frozen=True)
class UnaryOp:
    """Prefix operator: -, + or !."""

    operator: str
    operand: Node

    def to_dict(self) -> dict[str, Any]:
        return {"type": "unary", "operator": self.operator, "operand": self.operand.to_dict()}


@dataclass(frozen=True)
class BinaryOp:
    """Infix operator, including comparisons and logical and/or."""

    operator: str
    left: Node
    right: Node

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "binary",
            "operator": self.operator,
            "left": self.left.to_dict(),
            "right": self.right.to_dict(),
        }


@dataclass(frozen=True)
class FunctionCall:
    """Call of a standard library function."""

    name: str
    arguments: tuple[Node, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "function",
            "functionName": self.name,
            "arguments": [a.to_dict() for a in self.arguments],
        }


@dataclass(frozen=True)
class Group:
    """Explicit parenthesized sub-expression."""

    expression: Node

    def to_dict(self) -> dict[str, Any]:
        return {"type": "group", "body": self.expression.to_dict()}


@dataclass(frozen=True)
class Index:
    """Sequence subscript: target[index]."""

    target: Node
    index: Node

    def to_dict(self) -> dict[str, Any]:
        return {"type": "index", "object": self.target.to_dict(), "index": self.index.to_dict()}


@dataclass(frozen=True)
class ListLiteral:
    """Bracketed list of expressions: [a, b, c]."""

    elements: tuple[Node, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"type": "array", "elements": [e.to_dict() for e in self.elements]}


@dataclass(frozen=True)
class Assignment:
    """Top-level `target = expression`; only valid as a tree root."""

    target: str
    expression: Node

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "assignment",
            "variableName": self.target,
            "expression": self.expression.to_dict(),
        }


Node = Union[
    VariableRef, Literal, UnaryOp, BinaryOp, FunctionCall, Group, Index, ListLiteral, Assignment
]


def node_from_dict(d: dict[str, Any]) -> Node:
    """
    Build a tree from its serialized form.

    Raises:
        ValueError: If a node type is unknown or a required field is missing
    """
    node_type = d.get("type")

    if node_type == "variable":
        return VariableRef(_required(d, "variableName"))
    elif node_type == "literal":
        if "value" not in d:
            raise ValueError("Literal node missing 'value'")
        return Literal(d["value"])
    elif node_type == "unary":
        return UnaryOp(_required(d, "operator"), node_from_dict(_required(d, "operand")))
    elif node_type == "binary":
        return BinaryOp(
            _required(d, "operator"),
            node_from_dict(_required(d, "left")),
            node_from_dict(_required(d, "right")),
        )
    elif node_type == "function":
        name = _required(d, "functionName")
        if name.startswith("Math."):
            name = name[len("Math.") :]
        return FunctionCall(name, tuple(node_from_dict(a) for a in d.get("arguments", [])))
    elif node_type == "group":
        body = d.get("body") or d.get("expression")
        if body is None:
            raise ValueError("Invalid group: missing body expression")
        return Group(node_from_dict(body))
    elif node_type == "index":
        return Index(node_from_dict(_required(d, "object")), node_from_dict(_required(d, "index")))
    elif node_type == "array":
        return ListLiteral(tuple(node_from_dict(e) for e in d.get("elements", [])))
    elif node_type == "assignment":
        # "body" is accepted for assignments written with the group key
        body = d.get("expression") or d.get("body")
        if body is None:
            raise ValueError("Invalid assignment: missing expression")
        return Assignment(_required(d, "variableName"), node_from_dict(body))

    raise ValueError(f"Unknown node type: {node_type!r}")


def _required(d: dict[str, Any], key: str) -> Any:
    if d.get(key) is None:
        raise ValueError(f"{d.get('type', 'node')} node missing '{key}'")
    return d[key]


def children(node: Node) -> tuple[Node, ...]:
    """Direct child nodes, left to right."""
    if isinstance(node, UnaryOp):
        return (node.operand,)
    elif isinstance(node, BinaryOp):
        return (node.left, node.right)
    elif isinstance(node, FunctionCall):
        return node.arguments
    elif isinstance(node, Group | Assignment):
        return (node.expression,)
    elif isinstance(node, Index):
        return (node.target, node.index)
    elif isinstance(node, ListLiteral):
        return node.elements
    return ()


def walk(node: Node) -> Iterator[Node]:
    """Yield every node in the tree, pre-order."""
    yield node
    for child in children(node):
        yield from walk(child)


def count_nodes(node: Node) -> int:
    return sum(1 for _ in walk(node))


def depth(node: Node) -> int:
    kids = children(node)
    if not kids:
        return 1
    return 1 + max(depth(k) for k in kids)
