"""
Lexer for linear expression text.

Scans left to right, skipping whitespace, and at each position tries:
a (possibly Math.-prefixed) function name, an operator (longest match
first), a bracket or comma, then an identifier, number or string.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from chuk_mcp_tokens.constants import LEGACY_FUNCTION_PREFIX
from chuk_mcp_tokens.errors import ExpressionSyntaxError


class TokenKind(str, Enum):
    """Lexical token kinds."""

    NUMBER = "number"
    STRING = "string"
    IDENT = "ident"
    FUNCTION = "function"
    OPERATOR = "operator"
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    COMMA = ","
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    """A lexical token with its source position."""

    kind: TokenKind
    value: str
    position: int


# Longest first so that '**' wins over '*', '<=' over '<', etc.
OPERATORS = (
    "===",
    "!==",
    "**",
    "==",
    "!=",
    "<=",
    ">=",
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
    "!",
    "=",
)

# Strict-equality spellings are accepted and normalized
OPERATOR_ALIASES = {"===": "==", "!==": "!="}

_FUNCTION_RE = re.compile(r"(?:Math\.)?([A-Za-z_][A-Za-z0-9_]*)\s*(?=\()")
_IDENT_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_NUMBER_RE = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_PUNCTUATION = {
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ",": TokenKind.COMMA,
}
_ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", "'": "'", '"': '"'}


class Lexer:
    """Tokenizes linear expression text."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.used_legacy_prefix = False

    def tokenize(self) -> list[Token]:
        """
        Tokenize the whole input.

        Returns:
            Tokens, terminated by an EOF token

        Raises:
            ExpressionSyntaxError: On an unexpected character or unterminated string
        """
        tokens: list[Token] = []
        text = self.text

        while True:
            while self.pos < len(text) and text[self.pos].isspace():
                self.pos += 1
            if self.pos >= len(text):
                break

            start = self.pos
            ch = text[start]

            match = _FUNCTION_RE.match(text, start)
            if match:
                if match.group(0).startswith(LEGACY_FUNCTION_PREFIX):
                    self.used_legacy_prefix = True
                tokens.append(Token(TokenKind.FUNCTION, match.group(1), start))
                self.pos = match.end()
                continue

            op = self._match_operator(start)
            if op:
                tokens.append(Token(TokenKind.OPERATOR, OPERATOR_ALIASES.get(op, op), start))
                self.pos += len(op)
                continue

            if ch in _PUNCTUATION:
                tokens.append(Token(_PUNCTUATION[ch], ch, start))
                self.pos += 1
                continue

            match = _IDENT_RE.match(text, start)
            if match:
                tokens.append(Token(TokenKind.IDENT, match.group(0), start))
                self.pos = match.end()
                continue

            match = _NUMBER_RE.match(text, start)
            if match:
                tokens.append(Token(TokenKind.NUMBER, match.group(0), start))
                self.pos = match.end()
                continue

            if ch in ("'", '"'):
                tokens.append(Token(TokenKind.STRING, self._read_string(ch), start))
                continue

            raise ExpressionSyntaxError(f"Unexpected character {ch!r}", text, start)

        tokens.append(Token(TokenKind.EOF, "", len(text)))
        return tokens

    def _match_operator(self, start: int) -> str | None:
        for op in OPERATORS:
            if self.text.startswith(op, start):
                return op
        return None

    def _read_string(self, quote: str) -> str:
        start = self.pos
        self.pos += 1
        chars: list[str] = []
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == "\\" and self.pos + 1 < len(self.text):
                nxt = self.text[self.pos + 1]
                chars.append(_ESCAPES.get(nxt, nxt))
                self.pos += 2
                continue
            if ch == quote:
                self.pos += 1
                return "".join(chars)
            chars.append(ch)
            self.pos += 1
        raise ExpressionSyntaxError("Unterminated string literal", self.text, start)


def tokenize(text: str) -> list[Token]:
    """Convenience wrapper around Lexer.tokenize()."""
    return Lexer(text).tokenize()
