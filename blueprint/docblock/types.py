"""PHPDoc type expressions: node classes and a recursive-descent parser.

Nodes render themselves with the conventional PHPDoc printer layout so that
``string|resource`` becomes ``(string | resource)`` and generics, shapes and
callables come out normalised regardless of the spacing in the source.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..errors import AnnotationParseError
from .lexer import FLOAT, IDENTIFIER, INTEGER, STRING, SYMBOL, THIS, VARIABLE, TokenStream

_SHAPE_KINDS = {"array", "list", "non-empty-array", "non-empty-list"}
_CALLABLE_NAMES = {"callable", "closure", "\\closure", "pure-callable", "pure-closure"}
_VARIANCE = {"covariant", "contravariant"}


class TypeNode:
    """Base class for parsed PHPDoc types."""


@dataclass(frozen=True)
class IdentifierType(TypeNode):
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ThisType(TypeNode):
    def __str__(self) -> str:
        return "$this"


@dataclass(frozen=True)
class ConstType(TypeNode):
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class NullableType(TypeNode):
    type: TypeNode

    def __str__(self) -> str:
        return f"?{self.type}"


@dataclass(frozen=True)
class UnionType(TypeNode):
    types: Tuple[TypeNode, ...]

    def __str__(self) -> str:
        return "(" + " | ".join(str(item) for item in self.types) + ")"


@dataclass(frozen=True)
class IntersectionType(TypeNode):
    types: Tuple[TypeNode, ...]

    def __str__(self) -> str:
        return "(" + " & ".join(str(item) for item in self.types) + ")"


@dataclass(frozen=True)
class ArrayType(TypeNode):
    type: TypeNode

    def __str__(self) -> str:
        if isinstance(self.type, (CallableType, ConstType, NullableType)):
            return f"({self.type})[]"
        return f"{self.type}[]"


@dataclass(frozen=True)
class OffsetAccessType(TypeNode):
    type: TypeNode
    offset: TypeNode

    def __str__(self) -> str:
        return f"{self.type}[{self.offset}]"


@dataclass(frozen=True)
class GenericType(TypeNode):
    type: IdentifierType
    arguments: Tuple[str, ...]

    def __str__(self) -> str:
        return f"{self.type}<{', '.join(self.arguments)}>"


@dataclass(frozen=True)
class ShapeItem:
    key: Optional[str]
    optional: bool
    value: TypeNode

    def __str__(self) -> str:
        if self.key is None:
            return str(self.value)
        return f"{self.key}{'?' if self.optional else ''}: {self.value}"


@dataclass(frozen=True)
class ShapeType(TypeNode):
    kind: str
    items: Tuple[ShapeItem, ...]
    sealed: bool = True
    unsealed_type: str = ""

    def __str__(self) -> str:
        parts = [str(item) for item in self.items]
        if not self.sealed:
            parts.append("..." + self.unsealed_type)
        return f"{self.kind}{{{', '.join(parts)}}}"


@dataclass(frozen=True)
class CallableParameter:
    type: TypeNode
    by_reference: bool = False
    variadic: bool = False
    name: str = ""
    optional: bool = False

    def __str__(self) -> str:
        suffix = (
            ("&" if self.by_reference else "")
            + ("..." if self.variadic else "")
            + self.name
            + ("=" if self.optional else "")
        )
        return f"{self.type} {suffix}".strip()


@dataclass(frozen=True)
class CallableType(TypeNode):
    identifier: IdentifierType
    parameters: Tuple[CallableParameter, ...]
    return_type: TypeNode

    def __str__(self) -> str:
        params = ", ".join(str(param) for param in self.parameters)
        return f"{self.identifier}({params}): {self.return_type}"


@dataclass(frozen=True)
class ConditionalType(TypeNode):
    subject: str
    target: TypeNode
    if_type: TypeNode
    else_type: TypeNode
    negated: bool = False

    def __str__(self) -> str:
        keyword = "is not" if self.negated else "is"
        return f"({self.subject} {keyword} {self.target} ? {self.if_type} : {self.else_type})"


class TypeParser:
    """Parses one type expression from a token stream, leaving the rest untouched."""

    def parse(self, tokens: TokenStream) -> TypeNode:
        if tokens.is_symbol("?"):
            return self._parse_nullable(tokens)
        node = self._parse_atomic(tokens)
        if tokens.is_symbol("|"):
            return self._parse_compound(tokens, node, "|")
        if tokens.is_symbol("&") and self._continues_intersection(tokens):
            return self._parse_compound(tokens, node, "&")
        return node

    def _sub_parse(self, tokens: TokenStream) -> TypeNode:
        """Parse the inside of a parenthesised type, where conditionals are allowed."""
        if tokens.is_symbol("?"):
            return self._parse_nullable(tokens)
        if tokens.current.kind == VARIABLE:
            subject = tokens.advance().value
            return self._parse_conditional(tokens, subject)
        node = self._parse_atomic(tokens)
        if tokens.current.kind == IDENTIFIER and tokens.current.value == "is":
            return self._parse_conditional(tokens, str(node))
        if tokens.is_symbol("|"):
            return self._parse_compound(tokens, node, "|")
        if tokens.is_symbol("&"):
            return self._parse_compound(tokens, node, "&")
        return node

    def _parse_nullable(self, tokens: TokenStream) -> TypeNode:
        tokens.expect("?")
        return NullableType(self._parse_atomic(tokens))

    def _parse_compound(self, tokens: TokenStream, first: TypeNode, separator: str) -> TypeNode:
        types: List[TypeNode] = [first]
        while tokens.is_symbol(separator):
            if separator == "&" and not self._continues_intersection(tokens):
                break
            tokens.advance()
            types.append(self._parse_atomic(tokens))
        if separator == "|":
            return UnionType(tuple(types))
        return IntersectionType(tuple(types))

    @staticmethod
    def _continues_intersection(tokens: TokenStream) -> bool:
        # "Type &$param" marks a by-reference parameter, not an intersection.
        following = tokens.peek()
        return following.kind not in (VARIABLE,) and not (
            following.kind == SYMBOL and following.value == "..."
        )

    def _parse_conditional(self, tokens: TokenStream, subject: str) -> TypeNode:
        if not (tokens.current.kind == IDENTIFIER and tokens.current.value == "is"):
            raise AnnotationParseError(f"expected 'is' but found {tokens.describe()} in '{tokens.text}'")
        tokens.advance()
        negated = False
        if tokens.current.kind == IDENTIFIER and tokens.current.value == "not":
            negated = True
            tokens.advance()
        target = self.parse(tokens)
        tokens.expect("?")
        if_type = self.parse(tokens)
        tokens.expect(":")
        else_type = self.parse(tokens)
        return ConditionalType(subject, target, if_type, else_type, negated)

    def _parse_atomic(self, tokens: TokenStream) -> TypeNode:
        token = tokens.current
        if token.kind == SYMBOL and token.value == "(":
            tokens.advance()
            node = self._sub_parse(tokens)
            tokens.expect(")")
            return self._parse_postfix(tokens, node)
        if token.kind == THIS:
            tokens.advance()
            return self._parse_postfix(tokens, ThisType())
        if token.kind in (INTEGER, FLOAT, STRING):
            tokens.advance()
            return self._parse_postfix(tokens, ConstType(token.value))
        if token.kind != IDENTIFIER:
            raise AnnotationParseError(f"unexpected {tokens.describe()} in type '{tokens.text}'")

        tokens.advance()
        identifier = IdentifierType(token.value)
        node: TypeNode = identifier
        if tokens.is_symbol("::"):
            node = self._parse_const_fetch(tokens, token.value)
        elif tokens.is_symbol("<"):
            node = self._parse_generic(tokens, identifier)
            if identifier.name.lower() in _SHAPE_KINDS and tokens.is_symbol("{"):
                node = self._parse_shape(tokens, str(node))
        elif tokens.is_symbol("(") and identifier.name.lower() in _CALLABLE_NAMES:
            node = self._try_parse_callable(tokens, identifier)
        elif tokens.is_symbol("{") and (
            identifier.name.lower() in _SHAPE_KINDS or identifier.name.lower() == "object"
        ):
            node = self._parse_shape(tokens, identifier.name)
        return self._parse_postfix(tokens, node)

    def _parse_postfix(self, tokens: TokenStream, node: TypeNode) -> TypeNode:
        while tokens.is_symbol("["):
            tokens.advance()
            if tokens.accept("]"):
                node = ArrayType(node)
                continue
            offset = self.parse(tokens)
            tokens.expect("]")
            node = OffsetAccessType(node, offset)
        return node

    def _parse_const_fetch(self, tokens: TokenStream, class_name: str) -> TypeNode:
        tokens.expect("::")
        parts = [class_name, "::"]
        if tokens.current.kind == IDENTIFIER:
            parts.append(tokens.advance().value)
            if tokens.is_symbol("*"):
                parts.append(tokens.advance().value)
        elif tokens.is_symbol("*"):
            parts.append(tokens.advance().value)
        else:
            raise AnnotationParseError(f"expected constant name after '::' in '{tokens.text}'")
        return ConstType("".join(parts))

    def _parse_generic(self, tokens: TokenStream, identifier: IdentifierType) -> GenericType:
        tokens.expect("<")
        arguments: List[str] = []
        while True:
            arguments.append(self._parse_generic_argument(tokens))
            if not tokens.accept(","):
                break
            if tokens.is_symbol(">"):
                break
        tokens.expect(">")
        return GenericType(identifier, tuple(arguments))

    def _parse_generic_argument(self, tokens: TokenStream) -> str:
        if tokens.accept("*"):
            return "*"
        if tokens.current.kind == IDENTIFIER and tokens.current.value in _VARIANCE:
            following = tokens.peek()
            if following.kind in (IDENTIFIER, THIS) or (
                following.kind == SYMBOL and following.value in ("(", "?")
            ):
                variance = tokens.advance().value
                return f"{variance} {self.parse(tokens)}"
        return str(self.parse(tokens))

    def _parse_shape(self, tokens: TokenStream, kind: str) -> ShapeType:
        tokens.expect("{")
        items: List[ShapeItem] = []
        sealed = True
        unsealed_type = ""
        while not tokens.is_symbol("}"):
            if tokens.accept("..."):
                sealed = False
                if tokens.is_symbol("<"):
                    unsealed_type = str(self._parse_generic(tokens, IdentifierType(""))).lstrip()
                tokens.accept(",")
                break
            items.append(self._parse_shape_item(tokens))
            if not tokens.accept(","):
                break
        tokens.expect("}")
        return ShapeType(kind, tuple(items), sealed, unsealed_type)

    def _parse_shape_item(self, tokens: TokenStream) -> ShapeItem:
        token = tokens.current
        if token.kind in (IDENTIFIER, INTEGER, STRING):
            following = tokens.peek()
            after = tokens.peek(2)
            if following.kind == SYMBOL and following.value == ":":
                tokens.advance()
                tokens.advance()
                return ShapeItem(token.value, False, self.parse(tokens))
            if (
                following.kind == SYMBOL
                and following.value == "?"
                and after.kind == SYMBOL
                and after.value == ":"
            ):
                tokens.advance()
                tokens.advance()
                tokens.advance()
                return ShapeItem(token.value, True, self.parse(tokens))
        return ShapeItem(None, False, self.parse(tokens))

    def _try_parse_callable(self, tokens: TokenStream, identifier: IdentifierType) -> TypeNode:
        mark = tokens.mark()
        try:
            return self._parse_callable(tokens, identifier)
        except AnnotationParseError:
            tokens.reset(mark)
            return identifier

    def _parse_callable(self, tokens: TokenStream, identifier: IdentifierType) -> CallableType:
        tokens.expect("(")
        parameters: List[CallableParameter] = []
        while not tokens.is_symbol(")"):
            parameters.append(self._parse_callable_parameter(tokens))
            if not tokens.accept(","):
                break
        tokens.expect(")")
        tokens.expect(":")
        if tokens.is_symbol("?"):
            return_type = self._parse_nullable(tokens)
        else:
            return_type = self._parse_atomic(tokens)
        return CallableType(identifier, tuple(parameters), return_type)

    def _parse_callable_parameter(self, tokens: TokenStream) -> CallableParameter:
        param_type = self.parse(tokens)
        by_reference = tokens.accept("&")
        variadic = tokens.accept("...")
        name = tokens.advance().value if tokens.current.kind == VARIABLE else ""
        optional = tokens.accept("=")
        return CallableParameter(param_type, by_reference, variadic, name, optional)


def parse_type(text: str) -> str:
    """Parse a complete type expression and return its normalised rendering."""
    tokens = TokenStream(text)
    node = TypeParser().parse(tokens)
    if tokens.current.kind != "end":
        raise AnnotationParseError(f"unexpected {tokens.describe()} after type in '{text}'")
    return str(node)


__all__ = [
    "ArrayType",
    "CallableType",
    "ConditionalType",
    "ConstType",
    "GenericType",
    "IdentifierType",
    "IntersectionType",
    "NullableType",
    "OffsetAccessType",
    "ShapeType",
    "ThisType",
    "TypeNode",
    "TypeParser",
    "UnionType",
    "parse_type",
]
