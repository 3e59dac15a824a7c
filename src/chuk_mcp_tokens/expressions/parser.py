"""
Recursive-descent parser for linear expression text.

Precedence, loosest to tightest:

    ||
    &&
    == != < <= > >=
    + -
    * / %
    unary - + !
    ^ **            (right associative)
    postfix [index]
    primary

An assignment `name = expr` is only recognized at the root.
"""

from __future__ import annotations

from collections.abc import Callable

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
from chuk_mcp_tokens.expressions.lexer import Lexer, Token, TokenKind

COMPARISON_OPERATORS = ("==", "!=", "<", "<=", ">", ">=")
POWER_OPERATORS = ("^", "**")


class Parser:
    """Builds an expression tree from a token stream."""

    def __init__(self, tokens: list[Token], text: str = ""):
        self.tokens = tokens
        self.text = text
        self.index = 0

    def parse(self) -> Node:
        """
        Parse a complete expression, optionally an assignment.

        Raises:
            ExpressionSyntaxError: If the input is empty or malformed
        """
        if self._peek().kind == TokenKind.EOF:
            raise ExpressionSyntaxError("Empty expression", self.text, 0)

        if (
            self._peek().kind == TokenKind.IDENT
            and self._peek(1).kind == TokenKind.OPERATOR
            and self._peek(1).value == "="
        ):
            target = self._advance().value
            self._advance()
            node: Node = Assignment(target, self._parse_or())
        else:
            node = self._parse_or()

        token = self._peek()
        if token.kind != TokenKind.EOF:
            raise ExpressionSyntaxError(
                f"Unexpected token {token.value!r}", self.text, token.position
            )
        return node

    # Token helpers

    def _peek(self, offset: int = 0) -> Token:
        i = min(self.index + offset, len(self.tokens) - 1)
        return self.tokens[i]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        if token.kind != TokenKind.EOF:
            self.index += 1
        return token

    def _at_operator(self, *ops: str) -> bool:
        token = self._peek()
        return token.kind == TokenKind.OPERATOR and token.value in ops

    def _expect(self, kind: TokenKind) -> Token:
        token = self._peek()
        if token.kind != kind:
            found = token.value or "end of input"
            raise ExpressionSyntaxError(
                f"Expected {kind.value!r} but found {found!r}", self.text, token.position
            )
        return self._advance()

    # Precedence levels

    def _parse_binary_level(
        self, operators: tuple[str, ...], next_level: Callable[[], Node]
    ) -> Node:
        left = next_level()
        while self._at_operator(*operators):
            op = self._advance().value
            left = BinaryOp(op, left, next_level())
        return left

    def _parse_or(self) -> Node:
        return self._parse_binary_level(("||",), self._parse_and)

    def _parse_and(self) -> Node:
        return self._parse_binary_level(("&&",), self._parse_comparison)

    def _parse_comparison(self) -> Node:
        return self._parse_binary_level(COMPARISON_OPERATORS, self._parse_additive)

    def _parse_additive(self) -> Node:
        return self._parse_binary_level(("+", "-"), self._parse_multiplicative)

    def _parse_multiplicative(self) -> Node:
        return self._parse_binary_level(("*", "/", "%"), self._parse_unary)

    def _parse_unary(self) -> Node:
        if self._at_operator("-", "+", "!"):
            op = self._advance().value
            return UnaryOp(op, self._parse_unary())
        return self._parse_power()

    def _parse_power(self) -> Node:
        base = self._parse_postfix()
        if self._at_operator(*POWER_OPERATORS):
            self._advance()
            # Exponent may carry its own sign: 2 ^ -1
            return BinaryOp("^", base, self._parse_unary())
        return base

    def _parse_postfix(self) -> Node:
        node = self._parse_primary()
        while self._peek().kind == TokenKind.LBRACKET:
            self._advance()
            index = self._parse_or()
            self._expect(TokenKind.RBRACKET)
            node = Index(node, index)
        return node

    def _parse_primary(self) -> Node:
        token = self._peek()

        if token.kind == TokenKind.NUMBER:
            self._advance()
            return Literal(_parse_number(token.value))

        if token.kind == TokenKind.STRING:
            self._advance()
            return Literal(token.value)

        if token.kind == TokenKind.FUNCTION:
            self._advance()
            self._expect(TokenKind.LPAREN)
            args = self._parse_sequence(TokenKind.RPAREN)
            return FunctionCall(token.value, tuple(args))

        if token.kind == TokenKind.IDENT:
            self._advance()
            if token.value == "true":
                return Literal(True)
            if token.value == "false":
                return Literal(False)
            return VariableRef(token.value)

        if token.kind == TokenKind.LPAREN:
            self._advance()
            inner = self._parse_or()
            self._expect(TokenKind.RPAREN)
            return Group(inner)

        if token.kind == TokenKind.LBRACKET:
            self._advance()
            return ListLiteral(tuple(self._parse_sequence(TokenKind.RBRACKET)))

        if token.kind == TokenKind.EOF:
            raise ExpressionSyntaxError("Unexpected end of expression", self.text, token.position)
        raise ExpressionSyntaxError(f"Unexpected token {token.value!r}", self.text, token.position)

    def _parse_sequence(self, closing: TokenKind) -> list[Node]:
        """Parse comma separated expressions up to the closing bracket."""
        items: list[Node] = []
        if self._peek().kind == closing:
            self._advance()
            return items
        while True:
            items.append(self._parse_or())
            if self._peek().kind == TokenKind.COMMA:
                self._advance()
                continue
            self._expect(closing)
            return items


def _parse_number(text: str) -> int | float:
    if any(c in text for c in ".eE"):
        return float(text)
    return int(text)


def parse_to_tree(text: str) -> Node:
    """
    Parse linear expression text into a tree.

    Args:
        text: Expression such as "base * ratio ^ n" or "size = base * 2"

    Returns:
        Root node (an Assignment for assignment form)

    Raises:
        ExpressionSyntaxError: If the text is malformed or nested too deeply
    """
    try:
        return Parser(Lexer(text).tokenize(), text).parse()
    except RecursionError as e:
        raise ExpressionSyntaxError("Expression nested too deeply", text) from e
