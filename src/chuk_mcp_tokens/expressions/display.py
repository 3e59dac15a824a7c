"""
Display notation - typeset (LaTeX-style) rendering of expressions.

Rendering maps the tree to human-readable notation:

    base * ratio ^ n      ->  {base} \\times {ratio}^{{n}}
    sqrt(x) / 2           ->  \\sqrt{{x}} \\div 2
    floor(a % 3)          ->  \\lfloor {a} \\bmod 3 \\rfloor

Variables are always wrapped in a grouping marker ({name}) so that
multi-character names survive the trip. Parsing accepts the rendered
forms plus common alternatives (\\mathit{name}, bare identifiers,
\\cdot, \\frac{a}{b}, |x|, \\le/\\ge/\\ne).

Only meaning is preserved across a round trip, not exact text.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from dataclasses import dataclass

from chuk_mcp_tokens.errors import ExpressionSyntaxError
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
from chuk_mcp_tokens.expressions.parser import parse_to_tree
from chuk_mcp_tokens.expressions.printer import (
    ATOM_PRECEDENCE,
    BINARY_PRECEDENCE,
    POSTFIX_PRECEDENCE,
    POWER_PRECEDENCE,
    UNARY_PRECEDENCE,
    build_from_tree,
    format_number,
    precedence,
)

BINARY_SYMBOLS: dict[str, str] = {
    "*": r"\times",
    "/": r"\div",
    "%": r"\bmod",
    "+": "+",
    "-": "-",
    "==": r"\equiv",
    "!=": r"\neq",
    "<": "<",
    ">": ">",
    "<=": r"\leq",
    ">=": r"\geq",
    "&&": r"\land",
    "||": r"\lor",
}

# Functions rendered as a named operator followed by (args)
NAMED_FUNCTIONS: dict[str, str] = {
    "min": r"\min",
    "max": r"\max",
    "sin": r"\sin",
    "cos": r"\cos",
    "tan": r"\tan",
    "log": r"\ln",
    "log10": r"\log_{10}",
}

# Commands accepted as binary operators when parsing
_COMMAND_OPERATORS: dict[str, str] = {
    "times": "*",
    "cdot": "*",
    "div": "/",
    "bmod": "%",
    "mod": "%",
    "equiv": "==",
    "neq": "!=",
    "ne": "!=",
    "leq": "<=",
    "le": "<=",
    "geq": ">=",
    "ge": ">=",
    "lt": "<",
    "gt": ">",
    "land": "&&",
    "wedge": "&&",
    "lor": "||",
    "vee": "||",
}

_COMMAND_FUNCTIONS: dict[str, str] = {
    "min": "min",
    "max": "max",
    "sin": "sin",
    "cos": "cos",
    "tan": "tan",
    "ln": "log",
    "log": "log",
    "exp": "exp",
}

_SPACING_COMMANDS = {",", ";", ":", "!", " ", "quad", "qquad", "left", "right"}

# Commands whose braced argument is literal text rather than an expression
_RAW_TEXT_COMMANDS = {"mathit", "mathrm", "text", "texttt", "operatorname"}


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_display(node: Node) -> str:
    """Render a tree in display notation."""
    if isinstance(node, Assignment):
        return f"{{{node.target}}} = {render_display(node.expression)}"

    if isinstance(node, VariableRef):
        return f"{{{node.name}}}"

    if isinstance(node, Literal):
        value = node.value
        if isinstance(value, bool):
            return r"\text{true}" if value else r"\text{false}"
        if isinstance(value, str):
            return r"\texttt{" + _escape_text(value) + "}"
        return format_number(value)

    if isinstance(node, Group):
        return f"({render_display(node.expression)})"

    if isinstance(node, UnaryOp):
        operand = _wrap(node.operand, _display_precedence(node.operand) < UNARY_PRECEDENCE)
        if node.operator == "!":
            return rf"\lnot {operand}"
        if operand.startswith(("-", "+")):
            operand = f"({operand})"
        return f"{node.operator}{operand}"

    if isinstance(node, BinaryOp):
        if node.operator == "^":
            return _render_power(node.left, node.right)
        prec = BINARY_PRECEDENCE.get(node.operator, ATOM_PRECEDENCE)
        left = _wrap(node.left, _display_precedence(node.left) < prec)
        right = _wrap(node.right, _display_precedence(node.right) <= prec)
        return f"{left} {BINARY_SYMBOLS.get(node.operator, node.operator)} {right}"

    if isinstance(node, FunctionCall):
        return _render_function(node)

    if isinstance(node, Index):
        target = _wrap(node.target, _display_precedence(node.target) < POSTFIX_PRECEDENCE)
        return f"{target}[{render_display(node.index)}]"

    if isinstance(node, ListLiteral):
        return "[" + ", ".join(render_display(e) for e in node.elements) + "]"

    raise TypeError(f"Unknown node: {node!r}")


def _render_power(base: Node, exponent: Node) -> str:
    base_text = _wrap(base, _display_precedence(base) <= POWER_PRECEDENCE)
    return f"{base_text}^{{{render_display(exponent)}}}"


def _render_function(node: FunctionCall) -> str:
    name = node.name
    args = node.arguments

    if len(args) == 1:
        arg = render_display(args[0])
        if name == "sqrt":
            return rf"\sqrt{{{arg}}}"
        if name == "abs":
            return rf"\left| {arg} \right|"
        if name == "floor":
            return rf"\lfloor {arg} \rfloor"
        if name == "ceil":
            return rf"\lceil {arg} \rceil"
        if name == "round":
            return rf"\text{{round}}({arg})"
        if name == "exp":
            return f"e^{{{arg}}}"
    if len(args) == 2 and name == "pow":
        return _render_power(args[0], args[1])

    rendered = ", ".join(render_display(a) for a in args)
    if name in NAMED_FUNCTIONS:
        return f"{NAMED_FUNCTIONS[name]}({rendered})"
    return rf"\operatorname{{{name}}}({rendered})"


def _display_precedence(node: Node) -> int:
    """Like precedence(), but e^{x} and pow() render as powers."""
    if isinstance(node, FunctionCall):
        if (node.name == "exp" and len(node.arguments) == 1) or (
            node.name == "pow" and len(node.arguments) == 2
        ):
            return POWER_PRECEDENCE
    return precedence(node)


def _wrap(node: Node, needs_parens: bool) -> str:
    text = render_display(node)
    return f"({text})" if needs_parens else text


def _escape_text(value: str) -> str:
    return value.replace("\\", "\\\\").replace("{", "\\{").replace("}", "\\}")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DisplayToken:
    """A token of display notation."""

    kind: str  # command, text, ident, number, op, punct, eof
    value: str
    position: int


_NUMBER_RE = re.compile(r"\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+")
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_COMMAND_RE = re.compile(r"\\([A-Za-z]+|.)")
_DISPLAY_OPERATORS = (
    "<=",
    ">=",
    "==",
    "!=",
    "&&",
    "||",
    "+",
    "-",
    "*",
    "/",
    "%",
    "^",
    "<",
    ">",
    "=",
    "!",
)


def _read_raw_group(text: str, pos: int) -> tuple[str, int]:
    """Read `{...}` verbatim starting at pos, honoring backslash escapes."""
    while pos < len(text) and text[pos].isspace():
        pos += 1
    if pos >= len(text) or text[pos] != "{":
        raise ExpressionSyntaxError("Expected '{'", text, pos)
    start = pos
    pos += 1
    chars: list[str] = []
    while pos < len(text):
        ch = text[pos]
        if ch == "\\" and pos + 1 < len(text):
            chars.append(text[pos + 1])
            pos += 2
            continue
        if ch == "}":
            return "".join(chars), pos + 1
        chars.append(ch)
        pos += 1
    raise ExpressionSyntaxError("Unterminated group", text, start)


def tokenize_display(text: str) -> list[DisplayToken]:
    """Tokenize display notation, dropping spacing and sizing commands."""
    tokens: list[DisplayToken] = []
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch.isspace():
            pos += 1
            continue

        if ch == "\\":
            match = _COMMAND_RE.match(text, pos)
            if not match:
                raise ExpressionSyntaxError("Dangling backslash", text, pos)
            name = match.group(1)
            if name not in _SPACING_COMMANDS:
                tokens.append(DisplayToken("command", name, pos))
            pos = match.end()
            if name in _RAW_TEXT_COMMANDS:
                raw, pos = _read_raw_group(text, pos)
                tokens.append(DisplayToken("text", raw, match.end()))
            continue

        if ch in "{}()[],|" and not text.startswith("||", pos):
            tokens.append(DisplayToken("punct", ch, pos))
            pos += 1
            continue

        match = _NUMBER_RE.match(text, pos)
        if match:
            tokens.append(DisplayToken("number", match.group(0), pos))
            pos = match.end()
            continue

        match = _IDENT_RE.match(text, pos)
        if match:
            tokens.append(DisplayToken("ident", match.group(0), pos))
            pos = match.end()
            continue

        for op in _DISPLAY_OPERATORS:
            if text.startswith(op, pos):
                tokens.append(DisplayToken("op", op, pos))
                pos += len(op)
                break
        else:
            raise ExpressionSyntaxError(f"Unexpected character {ch!r}", text, pos)

    tokens.append(DisplayToken("eof", "", len(text)))
    return tokens


class DisplayParser:
    """Parses display notation into an expression tree."""

    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize_display(text)
        self.index = 0

    def parse(self) -> Node:
        """
        Parse the whole input.

        Raises:
            ExpressionSyntaxError: If the notation is malformed
        """
        if self._peek().kind == "eof":
            raise ExpressionSyntaxError("Empty expression", self.text, 0)

        target = self._try_assignment_target()
        if target is not None:
            node: Node = Assignment(target, self._parse_or())
        else:
            node = self._parse_or()

        token = self._peek()
        if token.kind != "eof":
            raise ExpressionSyntaxError(
                f"Unexpected token {token.value!r}", self.text, token.position
            )
        return node

    # Token helpers

    def _peek(self, offset: int = 0) -> DisplayToken:
        return self.tokens[min(self.index + offset, len(self.tokens) - 1)]

    def _advance(self) -> DisplayToken:
        token = self._peek()
        if token.kind != "eof":
            self.index += 1
        return token

    def _is(self, kind: str, value: str | None = None, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token.kind == kind and (value is None or token.value == value)

    def _expect(self, kind: str, value: str) -> DisplayToken:
        if not self._is(kind, value):
            token = self._peek()
            found = token.value or "end of input"
            raise ExpressionSyntaxError(
                f"Expected {value!r} but found {found!r}", self.text, token.position
            )
        return self._advance()

    def _binary_operator(self, allowed: set[str]) -> str | None:
        """Return the linear operator at the cursor if it is in `allowed`."""
        token = self._peek()
        if token.kind == "op" and token.value in allowed:
            return token.value
        if token.kind == "command":
            op = _COMMAND_OPERATORS.get(token.value)
            if op in allowed:
                return op
        return None

    def _try_assignment_target(self) -> str | None:
        """Recognize `{x} =`, `\\mathit{x} =` or `x =` at the root."""
        if self._is("punct", "{") and self._is("ident", offset=1) and self._is("punct", "}", 2):
            if self._is("op", "=", 3):
                name = self._peek(1).value
                self.index += 4
                return name
        if (
            self._is("command")
            and self._peek().value in ("mathit", "mathrm")
            and self._is("text", offset=1)
            and self._is("op", "=", 2)
        ):
            name = self._peek(1).value
            self.index += 3
            return name
        if self._is("ident") and self._is("op", "=", 1):
            name = self._peek().value
            self.index += 2
            return name
        return None

    # Precedence levels

    def _parse_level(self, allowed: set[str], next_level: Callable[[], Node]) -> Node:
        left = next_level()
        while True:
            op = self._binary_operator(allowed)
            if op is None:
                return left
            self._advance()
            left = BinaryOp(op, left, next_level())

    def _parse_or(self) -> Node:
        return self._parse_level({"||"}, self._parse_and)

    def _parse_and(self) -> Node:
        return self._parse_level({"&&"}, self._parse_comparison)

    def _parse_comparison(self) -> Node:
        return self._parse_level({"==", "!=", "<", "<=", ">", ">="}, self._parse_additive)

    def _parse_additive(self) -> Node:
        return self._parse_level({"+", "-"}, self._parse_multiplicative)

    def _parse_multiplicative(self) -> Node:
        return self._parse_level({"*", "/", "%"}, self._parse_unary)

    def _parse_unary(self) -> Node:
        if self._is("op", "-") or self._is("op", "+") or self._is("op", "!"):
            op = self._advance().value
            return UnaryOp(op, self._parse_unary())
        if self._is("command", "lnot") or self._is("command", "neg"):
            self._advance()
            return UnaryOp("!", self._parse_unary())
        return self._parse_power()

    def _parse_power(self) -> Node:
        base = self._parse_postfix()
        if self._is("op", "^"):
            self._advance()
            return BinaryOp("^", base, self._parse_exponent())
        return base

    def _parse_exponent(self) -> Node:
        if self._is("punct", "{"):
            self._advance()
            node = self._parse_or()
            self._expect("punct", "}")
            return node
        return self._parse_unary()

    def _parse_postfix(self) -> Node:
        node = self._parse_primary()
        while self._is("punct", "["):
            self._advance()
            index = self._parse_or()
            self._expect("punct", "]")
            node = Index(node, index)
        return node

    def _parse_primary(self) -> Node:
        token = self._peek()

        if token.kind == "number":
            self._advance()
            text = token.value
            return Literal(float(text) if any(c in text for c in ".eE") else int(text))

        if token.kind == "ident":
            self._advance()
            if token.value == "e" and self._is("op", "^"):
                self._advance()
                return FunctionCall("exp", (self._parse_exponent(),))
            if token.value in ("true", "false"):
                return Literal(token.value == "true")
            if self._is("punct", "("):
                return FunctionCall(token.value, tuple(self._parse_call_arguments()))
            return VariableRef(token.value)

        if token.kind == "punct":
            if token.value == "{":
                self._advance()
                node = self._parse_or()
                self._expect("punct", "}")
                return node
            if token.value == "(":
                self._advance()
                node = self._parse_or()
                self._expect("punct", ")")
                return Group(node)
            if token.value == "[":
                self._advance()
                return ListLiteral(tuple(self._parse_sequence("]")))
            if token.value == "|":
                self._advance()
                node = self._parse_or()
                self._expect("punct", "|")
                return FunctionCall("abs", (node,))

        if token.kind == "command":
            return self._parse_command()

        if token.kind == "eof":
            raise ExpressionSyntaxError("Unexpected end of expression", self.text, token.position)
        raise ExpressionSyntaxError(f"Unexpected token {token.value!r}", self.text, token.position)

    def _parse_command(self) -> Node:
        token = self._advance()
        name = token.value

        if name in ("mathit", "mathrm"):
            return VariableRef(self._read_braced_text())

        if name == "text":
            word = self._read_braced_text()
            if word in ("true", "false"):
                return Literal(word == "true")
            if self._is("punct", "("):
                return FunctionCall(word, tuple(self._parse_call_arguments()))
            return VariableRef(word)

        if name == "texttt":
            return Literal(self._read_braced_text())

        if name == "operatorname":
            function = self._read_braced_text()
            return FunctionCall(function, tuple(self._parse_call_arguments()))

        if name == "sqrt":
            return FunctionCall("sqrt", (self._parse_command_argument(),))

        if name == "frac":
            numerator = self._parse_braced()
            denominator = self._parse_braced()
            return BinaryOp("/", numerator, denominator)

        if name in ("lfloor", "lceil"):
            node = self._parse_or()
            closing = "rfloor" if name == "lfloor" else "rceil"
            self._expect("command", closing)
            return FunctionCall("floor" if name == "lfloor" else "ceil", (node,))

        if name in ("lvert", "vert"):
            node = self._parse_or()
            if self._is("command", "rvert") or self._is("command", "vert"):
                self._advance()
            else:
                self._expect("punct", "|")
            return FunctionCall("abs", (node,))

        if name in _COMMAND_FUNCTIONS:
            function = _COMMAND_FUNCTIONS[name]
            if name == "log" and self._subscript_ten():
                function = "log10"
            if self._is("punct", "("):
                return FunctionCall(function, tuple(self._parse_call_arguments()))
            return FunctionCall(function, (self._parse_command_argument(),))

        if name == "pi":
            return Literal(math.pi)

        raise ExpressionSyntaxError(f"Unknown command \\{name}", self.text, token.position)

    def _subscript_ten(self) -> bool:
        """Consume a `_{10}` or `_10` subscript if present."""
        token = self._peek()
        if token.kind == "ident" and token.value == "_10":
            self._advance()
            return True
        if token.kind == "ident" and token.value == "_":
            braced = (
                self._is("punct", "{", 1)
                and self._is("number", "10", 2)
                and self._is("punct", "}", 3)
            )
            if braced:
                self.index += 4
                return True
            if self._is("number", "10", 1):
                self.index += 2
                return True
        return False

    def _parse_command_argument(self) -> Node:
        if self._is("punct", "{"):
            return self._parse_braced()
        if self._is("punct", "("):
            self._advance()
            node = self._parse_or()
            self._expect("punct", ")")
            return node
        return self._parse_power()

    def _parse_braced(self) -> Node:
        self._expect("punct", "{")
        node = self._parse_or()
        self._expect("punct", "}")
        return node

    def _parse_call_arguments(self) -> list[Node]:
        self._expect("punct", "(")
        return self._parse_sequence(")")

    def _parse_sequence(self, closing: str) -> list[Node]:
        items: list[Node] = []
        if self._is("punct", closing):
            self._advance()
            return items
        while True:
            items.append(self._parse_or())
            if self._is("punct", ","):
                self._advance()
                continue
            self._expect("punct", closing)
            return items

    def _read_braced_text(self) -> str:
        token = self._peek()
        if token.kind != "text":
            raise ExpressionSyntaxError("Expected a braced argument", self.text, token.position)
        return self._advance().value


def parse_display(text: str) -> Node:
    """Parse display notation into a tree."""
    try:
        return DisplayParser(text).parse()
    except RecursionError as e:
        raise ExpressionSyntaxError("Expression nested too deeply", text) from e


def to_display_notation(text: str) -> str:
    """
    Convert linear expression text to display notation.

    Raises:
        ExpressionSyntaxError: If the linear text is malformed
    """
    return render_display(parse_to_tree(text))


def from_display_notation(display: str) -> str:
    """
    Convert display notation to linear expression text.

    Raises:
        ExpressionSyntaxError: If the display notation is malformed
    """
    return build_from_tree(parse_display(display))
