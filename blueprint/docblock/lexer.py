"""Tokenizer for PHPDoc type expressions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from ..errors import AnnotationParseError

END = "end"
IDENTIFIER = "identifier"
VARIABLE = "variable"
THIS = "this"
INTEGER = "integer"
FLOAT = "float"
STRING = "string"
SYMBOL = "symbol"

_LETTER = "A-Za-z_\x80-\U0010ffff"

_TOKEN_RE = re.compile(
    rf"""
    (?P<ws>\s+)
    |(?P<symbol>\.\.\.|::|[|&?()<>\[\]{{}},:=*])
    |(?P<float>-?(?:\d[\d_]*\.\d*|\.\d+)(?:[eE][+-]?\d+)?)
    |(?P<integer>-?(?:0[xX][0-9a-fA-F_]+|0[bB][01_]+|\d[\d_]*))
    |(?P<string>'(?:\\.|[^'\\])*'|"(?:\\.|[^"\\])*")
    |(?P<this>\$this(?![\w\x80-\U0010ffff]))
    |(?P<variable>\$[{_LETTER}][\w\x80-\U0010ffff]*)
    |(?P<identifier>(?:\\?[{_LETTER}][\w\x80-\U0010ffff-]*)+)
    |(?P<other>.)
    """,
    re.X | re.S,
)


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    start: int


def tokenize(text: str) -> List[Token]:
    """Split ``text`` into tokens, dropping whitespace and appending an END token."""
    tokens: List[Token] = []
    for match in _TOKEN_RE.finditer(text):
        kind = match.lastgroup or "other"
        if kind == "ws":
            continue
        tokens.append(Token(kind=kind, value=match.group(0), start=match.start()))
    tokens.append(Token(kind=END, value="", start=len(text)))
    return tokens


class TokenStream:
    """Cursor over a token list with save/restore for backtracking."""

    def __init__(self, text: str) -> None:
        self.text = text
        self._tokens = tokenize(text)
        self._index = 0

    @property
    def current(self) -> Token:
        return self._tokens[self._index]

    def peek(self, offset: int = 1) -> Token:
        index = min(self._index + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def advance(self) -> Token:
        token = self._tokens[self._index]
        if token.kind != END:
            self._index += 1
        return token

    def is_symbol(self, value: str) -> bool:
        return self.current.kind == SYMBOL and self.current.value == value

    def accept(self, value: str) -> bool:
        if self.is_symbol(value):
            self.advance()
            return True
        return False

    def expect(self, value: str) -> None:
        if not self.accept(value):
            raise AnnotationParseError(
                f"expected '{value}' but found {self.describe()} in '{self.text}'"
            )

    def expect_kind(self, kind: str) -> Token:
        if self.current.kind != kind:
            raise AnnotationParseError(f"expected {kind} but found {self.describe()} in '{self.text}'")
        return self.advance()

    def describe(self) -> str:
        token = self.current
        return "end of tag" if token.kind == END else f"'{token.value}'"

    def rest(self) -> str:
        """Raw text from the current token to the end."""
        return self.text[self.current.start :]

    def mark(self) -> int:
        return self._index

    def reset(self, mark: int) -> None:
        self._index = mark


__all__ = [
    "END",
    "FLOAT",
    "IDENTIFIER",
    "INTEGER",
    "STRING",
    "SYMBOL",
    "THIS",
    "Token",
    "TokenStream",
    "VARIABLE",
    "tokenize",
]
