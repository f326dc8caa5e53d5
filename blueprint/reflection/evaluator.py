"""Static evaluation of PHP constant expressions from tree-sitter nodes."""

from __future__ import annotations

import math
import re
from typing import Callable, Optional, Set, Union

from tree_sitter import Node

from ..errors import ValueResolutionError
from ..values import (
    ArrayBuilder,
    PhpValue,
    ValueKind,
    array_key_from_value,
    format_number,
    to_php_bool,
    to_php_number,
    to_php_string,
)
from .models import ClassDeclaration, ClassKind, ConstantDeclaration
from .names import NameScope

PHP_INT_MAX = 9223372036854775807
PHP_INT_MIN = -PHP_INT_MAX - 1

# Engine constants commonly used in class constant and default expressions.
_GLOBAL_CONSTANTS = {
    "PHP_EOL": PhpValue.of_string("\n"),
    "PHP_INT_MAX": PhpValue.of_number(PHP_INT_MAX),
    "PHP_INT_MIN": PhpValue.of_number(PHP_INT_MIN),
    "PHP_INT_SIZE": PhpValue.of_number(8),
    "PHP_FLOAT_EPSILON": PhpValue.of_number(2.220446049250313e-16),
    "PHP_FLOAT_MAX": PhpValue.of_number(1.7976931348623157e308),
    "PHP_FLOAT_MIN": PhpValue.of_number(2.2250738585072014e-308),
    "PHP_FLOAT_DIG": PhpValue.of_number(15),
    "DIRECTORY_SEPARATOR": PhpValue.of_string("/"),
    "PATH_SEPARATOR": PhpValue.of_string(":"),
    "M_PI": PhpValue.of_number(math.pi),
    "M_E": PhpValue.of_number(math.e),
    "INF": PhpValue.of_number(math.inf),
    "NAN": PhpValue.of_number(math.nan),
    "E_ERROR": PhpValue.of_number(1),
    "E_WARNING": PhpValue.of_number(2),
    "E_NOTICE": PhpValue.of_number(8),
    "E_STRICT": PhpValue.of_number(2048),
    "E_DEPRECATED": PhpValue.of_number(8192),
    "E_USER_ERROR": PhpValue.of_number(256),
    "E_USER_WARNING": PhpValue.of_number(512),
    "E_USER_NOTICE": PhpValue.of_number(1024),
    "E_USER_DEPRECATED": PhpValue.of_number(16384),
    "E_ALL": PhpValue.of_number(32767),
    "JSON_HEX_TAG": PhpValue.of_number(1),
    "JSON_HEX_AMP": PhpValue.of_number(2),
    "JSON_HEX_APOS": PhpValue.of_number(4),
    "JSON_HEX_QUOT": PhpValue.of_number(8),
    "JSON_FORCE_OBJECT": PhpValue.of_number(16),
    "JSON_NUMERIC_CHECK": PhpValue.of_number(32),
    "JSON_UNESCAPED_SLASHES": PhpValue.of_number(64),
    "JSON_PRETTY_PRINT": PhpValue.of_number(128),
    "JSON_UNESCAPED_UNICODE": PhpValue.of_number(256),
    "JSON_PRESERVE_ZERO_FRACTION": PhpValue.of_number(1024),
    "JSON_THROW_ON_ERROR": PhpValue.of_number(4194304),
    "JSON_OBJECT_AS_ARRAY": PhpValue.of_number(1),
    "JSON_BIGINT_AS_STRING": PhpValue.of_number(2),
    "SORT_REGULAR": PhpValue.of_number(0),
    "SORT_NUMERIC": PhpValue.of_number(1),
    "SORT_STRING": PhpValue.of_number(2),
    "SORT_FLAG_CASE": PhpValue.of_number(8),
    "COUNT_RECURSIVE": PhpValue.of_number(1),
    "ENT_QUOTES": PhpValue.of_number(3),
    "ENT_HTML5": PhpValue.of_number(48),
    "PREG_SPLIT_NO_EMPTY": PhpValue.of_number(1),
    "LC_ALL": PhpValue.of_number(6),
}

_DOUBLE_QUOTE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "v": "\v",
    "e": "\x1b",
    "f": "\f",
    "\\": "\\",
    "$": "$",
}

_HEREDOC_RE = re.compile(r"^<<<[ \t]*(?P<quote>['\"]?)(?P<label>\w+)(?P=quote)[^\n]*\n(?P<body>.*)$", re.S)

Lookup = Callable[[str], Optional[ClassDeclaration]]


class ExpressionEvaluator:
    """Evaluates constant expressions in the context of one class declaration."""

    def __init__(
        self,
        source: bytes,
        scope: NameScope,
        *,
        class_name: Optional[str] = None,
        parent_name: Optional[str] = None,
        lookup: Optional[Lookup] = None,
    ) -> None:
        self._source = source
        self._scope = scope
        self._class_name = class_name
        self._parent_name = parent_name
        self._lookup = lookup

    def getter(self, node: Node) -> Callable[[], PhpValue]:
        return lambda: self.evaluate(node)

    def evaluate(self, node: Node) -> PhpValue:
        handler = getattr(self, f"_eval_{node.type}", None)
        if handler is None:
            raise ValueResolutionError(f"unsupported expression '{self._text(node)}'")
        return handler(node)

    # ------------------------------------------------------------------
    # Literals

    def _eval_integer(self, node: Node) -> PhpValue:
        return PhpValue.of_number(parse_integer(self._text(node)))

    def _eval_float(self, node: Node) -> PhpValue:
        text = self._text(node).replace("_", "")
        try:
            return PhpValue.of_number(float(text))
        except ValueError as exc:
            raise ValueResolutionError(f"invalid float literal {text!r}") from exc

    def _eval_boolean(self, node: Node) -> PhpValue:
        return PhpValue.of_bool(self._text(node).strip().lower() == "true")

    def _eval_null(self, node: Node) -> PhpValue:
        return PhpValue.null()

    def _eval_string(self, node: Node) -> PhpValue:
        return PhpValue.of_string(decode_string_literal(self._text(node)))

    _eval_encapsed_string = _eval_string

    def _eval_heredoc(self, node: Node) -> PhpValue:
        return PhpValue.of_string(decode_heredoc(self._text(node)))

    _eval_nowdoc = _eval_heredoc

    def _eval_array_creation_expression(self, node: Node) -> PhpValue:
        builder = ArrayBuilder()
        for element in node.named_children:
            if element.type != "array_element_initializer":
                continue
            self._add_element(builder, element)
        return builder.build()

    def _add_element(self, builder: ArrayBuilder, element: Node) -> None:
        named = [child for child in element.named_children if child.type != "comment"]
        if not named:
            return
        token_types = {child.type for child in element.children if not child.is_named}
        if named[0].type == "variadic_unpacking" or "..." in token_types:
            target = named[0].named_children[0] if named[0].type == "variadic_unpacking" else named[-1]
            spread = self.evaluate(target)
            if spread.kind is not ValueKind.ARRAY:
                raise ValueResolutionError("only arrays can be unpacked")
            for key, value in spread.items:
                if isinstance(key, int):
                    builder.append(value)
                else:
                    builder.set(key, value)
            return
        if "=>" in token_types and len(named) >= 2:
            key = array_key_from_value(self.evaluate(named[0]))
            builder.set(key, self.evaluate(named[-1]))
            return
        if named[-1].type == "by_ref":
            raise ValueResolutionError("references are not constant")
        builder.append(self.evaluate(named[-1]))

    # ------------------------------------------------------------------
    # Operators

    def _eval_parenthesized_expression(self, node: Node) -> PhpValue:
        inner = [child for child in node.named_children if child.type != "comment"]
        if len(inner) != 1:
            raise ValueResolutionError("malformed parenthesized expression")
        return self.evaluate(inner[0])

    def _eval_unary_op_expression(self, node: Node) -> PhpValue:
        operator_node = node.child_by_field_name("operator") or node.children[0]
        operator = self._text(operator_node).strip()
        operand_node = node.child_by_field_name("argument") or node.named_children[-1]
        operand = self.evaluate(operand_node)
        if operator == "!":
            return PhpValue.of_bool(not to_php_bool(operand))
        number = to_php_number(operand)
        if operator == "-":
            return PhpValue.of_number(_integer_result(-number) if isinstance(number, int) else -number)
        if operator == "+":
            return PhpValue.of_number(number)
        if operator == "~":
            return PhpValue.of_number(~_to_integer(number))
        raise ValueResolutionError(f"unsupported unary operator {operator!r}")

    def _eval_binary_expression(self, node: Node) -> PhpValue:
        left_node = node.child_by_field_name("left")
        right_node = node.child_by_field_name("right")
        operator_node = node.child_by_field_name("operator")
        if left_node is None or right_node is None or operator_node is None:
            if len(node.children) != 3:
                raise ValueResolutionError("malformed binary expression")
            left_node, operator_node, right_node = node.children
        operator = self._text(operator_node).strip().lower()

        if operator in ("&&", "and"):
            return PhpValue.of_bool(
                to_php_bool(self.evaluate(left_node)) and to_php_bool(self.evaluate(right_node))
            )
        if operator in ("||", "or"):
            return PhpValue.of_bool(
                to_php_bool(self.evaluate(left_node)) or to_php_bool(self.evaluate(right_node))
            )
        left = self.evaluate(left_node)
        if operator == "??":
            return self.evaluate(right_node) if left.kind is ValueKind.NULL else left
        right = self.evaluate(right_node)
        return binary_operation(operator, left, right)

    def _eval_conditional_expression(self, node: Node) -> PhpValue:
        condition = node.child_by_field_name("condition")
        body = node.child_by_field_name("body")
        alternative = node.child_by_field_name("alternative")
        if condition is None or alternative is None:
            named = [child for child in node.named_children if child.type != "comment"]
            if len(named) == 3:
                condition, body, alternative = named
            elif len(named) == 2:
                condition, alternative = named
                body = None
            else:
                raise ValueResolutionError("malformed conditional expression")
        tested = self.evaluate(condition)
        if to_php_bool(tested):
            return tested if body is None else self.evaluate(body)
        return self.evaluate(alternative)

    # ------------------------------------------------------------------
    # Constant references

    def _eval_name(self, node: Node) -> PhpValue:
        text = self._text(node).strip()
        lower = text.lower().lstrip("\\")
        if lower == "true":
            return PhpValue.of_bool(True)
        if lower == "false":
            return PhpValue.of_bool(False)
        if lower == "null":
            return PhpValue.null()
        short = text.lstrip("\\").rsplit("\\", 1)[-1]
        if short in _GLOBAL_CONSTANTS:
            return _GLOBAL_CONSTANTS[short]
        raise ValueResolutionError(f"unknown constant {text}")

    _eval_qualified_name = _eval_name

    def _eval_class_constant_access_expression(self, node: Node) -> PhpValue:
        text = self._text(node)
        qualifier, _, member = text.rpartition("::")
        qualifier = qualifier.strip()
        member = member.strip()
        if not qualifier or qualifier.startswith("$") or not re.fullmatch(r"\w+", member):
            raise ValueResolutionError(f"dynamic class constant access '{text}'")
        target = self._resolve_qualifier(qualifier)
        if member.lower() == "class":
            return PhpValue.of_string(target)
        if self._lookup is None:
            raise ValueResolutionError(f"cannot look up {target}")
        declaration = self._lookup(target)
        if declaration is None:
            raise ValueResolutionError(f"class {target} not found")
        if declaration.kind is ClassKind.ENUM and any(case.name == member for case in declaration.cases):
            raise ValueResolutionError(f"{target}::{member} is an enum case")
        constant = self._find_constant(declaration, member, set())
        if constant is None:
            raise ValueResolutionError(f"constant {target}::{member} not found")
        return constant.get_value()

    def _resolve_qualifier(self, qualifier: str) -> str:
        lower = qualifier.lower()
        if lower in ("self", "static"):
            if self._class_name is None:
                raise ValueResolutionError(f"'{qualifier}' used outside of a class")
            return self._class_name
        if lower == "parent":
            if self._parent_name is None:
                raise ValueResolutionError("'parent' used in a class without a parent")
            return self._parent_name
        return self._scope.resolve_class(qualifier)

    def _find_constant(
        self, declaration: ClassDeclaration, name: str, seen: Set[str]
    ) -> Optional[ConstantDeclaration]:
        key = declaration.name.lower()
        if key in seen:
            return None
        seen.add(key)
        constant = declaration.constant(name)
        if constant is not None:
            return constant
        if self._lookup is None:
            return None
        ancestors = ([declaration.parent] if declaration.parent else []) + declaration.interfaces
        for ancestor_name in ancestors:
            ancestor = self._lookup(ancestor_name)
            if ancestor is None:
                continue
            found = self._find_constant(ancestor, name, seen)
            if found is not None:
                return found
        return None

    def _text(self, node: Node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def parse_integer(text: str) -> Union[int, float]:
    """Parse a PHP integer literal (decimal, hex, octal, binary; underscores allowed)."""
    cleaned = text.strip().replace("_", "").lower()
    try:
        if cleaned.startswith("0x"):
            value = int(cleaned[2:], 16)
        elif cleaned.startswith("0b"):
            value = int(cleaned[2:], 2)
        elif cleaned.startswith("0o"):
            value = int(cleaned[2:], 8)
        elif len(cleaned) > 1 and cleaned.startswith("0"):
            value = int(cleaned, 8)
        else:
            value = int(cleaned)
    except ValueError as exc:
        raise ValueResolutionError(f"invalid integer literal {text!r}") from exc
    # Integer literals beyond the platform range become floats.
    if value > PHP_INT_MAX:
        try:
            return float(value)
        except OverflowError:
            return math.inf
    return value


def decode_string_literal(text: str) -> str:
    """Decode a single- or double-quoted PHP string literal."""
    literal = text.strip()
    if literal[:1] in ("b", "B"):
        literal = literal[1:]
    if len(literal) < 2 or literal[0] != literal[-1] or literal[0] not in ("'", '"'):
        raise ValueResolutionError(f"unrecognised string literal {text!r}")
    body = literal[1:-1]
    if literal[0] == "'":
        return _decode_single_quoted(body)
    return _decode_double_quoted(body, quote='"')


def decode_heredoc(text: str) -> str:
    """Decode a heredoc or nowdoc literal, removing the closing-marker indentation."""
    match = _HEREDOC_RE.match(text.strip())
    if match is None:
        raise ValueResolutionError("unrecognised heredoc literal")
    label = match.group("label")
    lines = match.group("body").split("\n")
    while lines and not lines[-1].strip():
        lines.pop()
    if not lines or not lines[-1].strip().startswith(label):
        raise ValueResolutionError("unterminated heredoc literal")
    closing = lines.pop()
    indent = len(closing) - len(closing.lstrip(" \t"))
    body = "\n".join(line[indent:] if line[:indent].strip() == "" else line.lstrip(" \t") for line in lines)
    if match.group("quote") == "'":
        return body
    return _decode_double_quoted(body, quote=None)


def _decode_single_quoted(body: str) -> str:
    out = []
    index = 0
    while index < len(body):
        char = body[index]
        if char == "\\" and index + 1 < len(body) and body[index + 1] in ("\\", "'"):
            out.append(body[index + 1])
            index += 2
            continue
        out.append(char)
        index += 1
    return "".join(out)


def _decode_double_quoted(body: str, *, quote: Optional[str]) -> str:
    out = []
    index = 0
    length = len(body)
    while index < length:
        char = body[index]
        nxt = body[index + 1] if index + 1 < length else ""
        if char == "$" and (nxt.isalpha() or nxt in ("_", "{") or (nxt and ord(nxt) >= 0x80)):
            raise ValueResolutionError("string interpolation is not constant")
        if char == "{" and nxt == "$":
            raise ValueResolutionError("string interpolation is not constant")
        if char != "\\" or not nxt:
            out.append(char)
            index += 1
            continue
        if nxt in _DOUBLE_QUOTE_ESCAPES:
            out.append(_DOUBLE_QUOTE_ESCAPES[nxt])
            index += 2
        elif quote is not None and nxt == quote:
            out.append(quote)
            index += 2
        elif nxt in "01234567":
            digits = re.match(r"[0-7]{1,3}", body[index + 1 :]).group(0)  # type: ignore[union-attr]
            out.append(chr(int(digits, 8) & 0xFF))
            index += 1 + len(digits)
        elif nxt == "x" and re.match(r"[0-9A-Fa-f]", body[index + 2 : index + 3]):
            digits = re.match(r"[0-9A-Fa-f]{1,2}", body[index + 2 :]).group(0)  # type: ignore[union-attr]
            out.append(chr(int(digits, 16)))
            index += 2 + len(digits)
        elif nxt == "u" and body[index + 2 : index + 3] == "{":
            end = body.find("}", index + 3)
            if end == -1:
                raise ValueResolutionError("unterminated unicode escape")
            try:
                out.append(chr(int(body[index + 3 : end], 16)))
            except ValueError as exc:
                raise ValueResolutionError("invalid unicode escape") from exc
            index = end + 1
        else:
            out.append(char)
            index += 1
    return "".join(out)


def binary_operation(operator: str, left: PhpValue, right: PhpValue) -> PhpValue:
    """Apply a PHP binary operator to two evaluated operands."""
    if operator == ".":
        return PhpValue.of_string(to_php_string(left) + to_php_string(right))
    if operator == "+" and left.kind is ValueKind.ARRAY and right.kind is ValueKind.ARRAY:
        builder = ArrayBuilder()
        for key, value in left.items:
            builder.set(key, value)
        existing = {key for key, _ in left.items}
        for key, value in right.items:
            if key not in existing:
                builder.set(key, value)
        return builder.build()
    if operator in ("===", "!=="):
        same = left.kind is right.kind and type(left.payload) is type(right.payload) and left.payload == right.payload
        return PhpValue.of_bool(same if operator == "===" else not same)
    if operator in ("==", "!=", "<>"):
        equal = _loose_equals(left, right)
        return PhpValue.of_bool(equal if operator == "==" else not equal)
    if operator == "xor":
        return PhpValue.of_bool(to_php_bool(left) != to_php_bool(right))

    a = to_php_number(left)
    b = to_php_number(right)
    if operator in ("<", ">", "<=", ">=", "<=>"):
        if operator == "<":
            return PhpValue.of_bool(a < b)
        if operator == ">":
            return PhpValue.of_bool(a > b)
        if operator == "<=":
            return PhpValue.of_bool(a <= b)
        if operator == ">=":
            return PhpValue.of_bool(a >= b)
        return PhpValue.of_number((a > b) - (a < b))
    if operator in ("+", "-", "*"):
        if operator == "+":
            result = a + b
        elif operator == "-":
            result = a - b
        else:
            result = a * b
        return PhpValue.of_number(_integer_result(result) if isinstance(result, int) else result)
    if operator == "/":
        if b == 0:
            raise ValueResolutionError("division by zero")
        if isinstance(a, int) and isinstance(b, int) and a % b == 0:
            return PhpValue.of_number(_integer_result(a // b))
        return PhpValue.of_number(a / b)
    if operator == "%":
        x, y = _to_integer(a), _to_integer(b)
        if y == 0:
            raise ValueResolutionError("modulo by zero")
        # The remainder takes the sign of the dividend.
        remainder = abs(x) % abs(y)
        return PhpValue.of_number(-remainder if x < 0 else remainder)
    if operator == "**":
        return PhpValue.of_number(_power(a, b))
    if operator in ("|", "&", "^", "<<", ">>"):
        x, y = _to_integer(a), _to_integer(b)
        if operator == "|":
            return PhpValue.of_number(x | y)
        if operator == "&":
            return PhpValue.of_number(x & y)
        if operator == "^":
            return PhpValue.of_number(x ^ y)
        if y < 0:
            raise ValueResolutionError("negative bit shift")
        if operator == "<<":
            return PhpValue.of_number(0 if y >= 64 else _wrap_int64(x << y))
        return PhpValue.of_number(x >> min(y, 63))
    raise ValueResolutionError(f"unsupported binary operator {operator!r}")


def _integer_result(value: int) -> Union[int, float]:
    """Integer arithmetic that leaves the 64-bit range continues as a float."""
    if PHP_INT_MIN <= value <= PHP_INT_MAX:
        return value
    return float(value)


def _to_integer(number: Union[int, float]) -> int:
    if isinstance(number, float):
        if not math.isfinite(number):
            raise ValueResolutionError(f"{format_number(number)} cannot be used as an integer")
        number = int(number)
    if not PHP_INT_MIN <= number <= PHP_INT_MAX:
        raise ValueResolutionError(f"{number} is out of integer range")
    return number


def _wrap_int64(value: int) -> int:
    return (value - PHP_INT_MIN) % (1 << 64) + PHP_INT_MIN


def _power(base: Union[int, float], exponent: Union[int, float]) -> Union[int, float]:
    if isinstance(base, int) and isinstance(exponent, int) and exponent >= 0:
        if base in (0, 1, -1) or exponent * math.log2(abs(base)) < 64:
            return _integer_result(base**exponent)
    try:
        result = float(base) ** float(exponent)
    except ZeroDivisionError:
        return math.inf
    except OverflowError:
        odd = float(exponent).is_integer() and int(exponent) % 2 == 1
        return -math.inf if base < 0 and odd else math.inf
    if isinstance(result, complex):
        return math.nan
    return result


def _loose_equals(left: PhpValue, right: PhpValue) -> bool:
    if ValueKind.BOOL in (left.kind, right.kind) or ValueKind.NULL in (left.kind, right.kind):
        return to_php_bool(left) == to_php_bool(right)
    if left.kind is ValueKind.STRING and right.kind is ValueKind.STRING:
        return left.payload == right.payload
    if left.kind is ValueKind.ARRAY or right.kind is ValueKind.ARRAY:
        return left == right
    return to_php_number(left) == to_php_number(right)


__all__ = [
    "ExpressionEvaluator",
    "binary_operation",
    "decode_heredoc",
    "decode_string_literal",
    "parse_integer",
]
