"""PHPDoc tag parser."""

from __future__ import annotations

import re
from typing import Iterator, List, Optional, Tuple

from ..errors import AnnotationParseError
from .base import AnnotationParser
from .lexer import END, SYMBOL, VARIABLE, TokenStream
from .models import AnnotationTagSet, ParamTag
from .types import TypeParser

_TAG_RE = re.compile(r"^@(?P<name>[\w\\:-]+)(?P<value>.*)$", re.S)
_OPEN_RE = re.compile(r"^\s*/\*\*+")
_CLOSE_RE = re.compile(r"\*+/\s*$")
_LINE_RE = re.compile(r"^\s*\*(?!/)\s?")


def docblock_lines(doc_comment: str) -> List[str]:
    """Return the comment's lines with ``/**``, ``*/`` and leading ``*`` removed."""
    text = _OPEN_RE.sub("", doc_comment, count=1)
    text = _CLOSE_RE.sub("", text, count=1)
    return [_LINE_RE.sub("", line, count=1).rstrip() for line in text.splitlines()]


def iter_tags(doc_comment: str) -> Iterator[Tuple[str, str]]:
    """Yield ``(tag, value)`` pairs; continuation lines are joined with spaces."""
    name: Optional[str] = None
    parts: List[str] = []
    for line in docblock_lines(doc_comment):
        stripped = line.strip()
        match = _TAG_RE.match(stripped)
        if match:
            if name is not None:
                yield name, " ".join(parts)
            name = match.group("name")
            parts = [match.group("value").strip()]
        elif not stripped:
            if name is not None:
                yield name, " ".join(parts)
            name = None
            parts = []
        elif name is not None:
            parts.append(stripped)
    if name is not None:
        yield name, " ".join(parts)


class PhpDocAnnotationParser(AnnotationParser):
    """Reads ``@param``, ``@return``, ``@throws`` and ``@var`` tags.

    A single malformed tag makes the whole comment unusable: the parser raises
    AnnotationParseError and callers fall back to native declarations.
    """

    def __init__(self) -> None:
        self._types = TypeParser()

    def parse(self, doc_comment: Optional[str]) -> AnnotationTagSet:
        tags = AnnotationTagSet()
        if not doc_comment:
            return tags
        for name, value in iter_tags(doc_comment):
            if name == "param":
                param_name, param = self._parse_param(value)
                tags.params[param_name] = param
            elif name == "return":
                type_text = self._parse_leading_type("@return", value)
                if tags.return_type is None:
                    tags.return_type = type_text
            elif name == "throws":
                tags.add_throws(self._parse_leading_type("@throws", value))
            elif name == "var":
                type_text = self._parse_leading_type("@var", value)
                if tags.var_type is None:
                    tags.var_type = type_text
        return tags

    def _parse_leading_type(self, tag: str, value: str) -> str:
        tokens = TokenStream(value)
        if tokens.current.kind == END:
            raise AnnotationParseError(f"{tag} tag without a type")
        node = self._types.parse(tokens)
        self._expect_separator(tag, tokens)
        return str(node)

    def _parse_param(self, value: str) -> Tuple[str, ParamTag]:
        tokens = TokenStream(value)
        type_text: Optional[str] = None
        if not self._at_parameter_name(tokens):
            if tokens.current.kind == END:
                raise AnnotationParseError("@param tag without a type or name")
            type_text = str(self._types.parse(tokens))
        tokens.accept("&")
        tokens.accept("...")
        if tokens.current.kind != VARIABLE:
            raise AnnotationParseError(f"@param tag without a parameter name in '{value}'")
        name = tokens.advance().value.lstrip("$")
        self._expect_separator("@param", tokens)
        return name, ParamTag(type=type_text, description=tokens.rest().strip())

    @staticmethod
    def _at_parameter_name(tokens: TokenStream) -> bool:
        index = 0
        while tokens.peek(index).kind == SYMBOL and tokens.peek(index).value in ("&", "..."):
            index += 1
        return tokens.peek(index).kind == VARIABLE

    @staticmethod
    def _expect_separator(tag: str, tokens: TokenStream) -> None:
        """A type must be followed by whitespace or the end of the tag."""
        token = tokens.current
        if token.kind == END or token.start == 0:
            return
        if not tokens.text[token.start - 1].isspace():
            raise AnnotationParseError(f"{tag} type is followed by '{token.value}' in '{tokens.text}'")


__all__ = ["PhpDocAnnotationParser", "docblock_lines", "iter_tags"]
