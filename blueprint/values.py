"""Statically evaluated PHP values and their canonical text renderings."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Tuple, Union

from .errors import ValueResolutionError
from .logging import get_logger

logger = get_logger("values")

ArrayKey = Union[int, str]

UNRESOLVED_CONSTANT = "<expr>"
UNRESOLVED_DEFAULT = "..."


class ValueKind(Enum):
    """Closed set of value shapes the renderer understands."""

    NULL = "null"
    BOOL = "bool"
    STRING = "string"
    NUMBER = "number"
    ARRAY = "array"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class PhpValue:
    """A PHP literal value produced by static evaluation."""

    kind: ValueKind
    payload: Any = None

    @classmethod
    def null(cls) -> "PhpValue":
        return cls(ValueKind.NULL)

    @classmethod
    def of_bool(cls, value: bool) -> "PhpValue":
        return cls(ValueKind.BOOL, bool(value))

    @classmethod
    def of_string(cls, value: str) -> "PhpValue":
        return cls(ValueKind.STRING, value)

    @classmethod
    def of_number(cls, value: Union[int, float]) -> "PhpValue":
        return cls(ValueKind.NUMBER, value)

    @classmethod
    def of_array(cls, items: List[Tuple[ArrayKey, "PhpValue"]]) -> "PhpValue":
        return cls(ValueKind.ARRAY, tuple(items))

    @classmethod
    def unresolved(cls, reason: str = "") -> "PhpValue":
        return cls(ValueKind.UNRESOLVED, reason)

    @property
    def items(self) -> Tuple[Tuple[ArrayKey, "PhpValue"], ...]:
        if self.kind is not ValueKind.ARRAY:
            raise TypeError(f"{self.kind.value} value has no items")
        return self.payload


class ArrayBuilder:
    """Accumulates array entries with PHP key semantics."""

    def __init__(self) -> None:
        self._entries: Dict[ArrayKey, PhpValue] = {}
        self._next_index = 0

    def append(self, value: PhpValue) -> None:
        self.set(self._next_index, value)

    def set(self, key: ArrayKey, value: PhpValue) -> None:
        key = normalise_key(key)
        self._entries[key] = value
        if isinstance(key, int) and key >= self._next_index:
            self._next_index = key + 1

    def build(self) -> PhpValue:
        return PhpValue.of_array(list(self._entries.items()))


def normalise_key(key: Any) -> ArrayKey:
    """Coerce an array key the way PHP does (numeric strings, bools, floats)."""
    if isinstance(key, bool):
        return int(key)
    if isinstance(key, int):
        return key
    if isinstance(key, float):
        if math.isnan(key) or math.isinf(key):
            raise ValueResolutionError("non-finite float used as array key")
        return int(key)
    if key is None:
        return ""
    if isinstance(key, str):
        if key == "0" or (key[:1] != "0" and key.lstrip("-").isdigit() and not key.startswith("-0")):
            try:
                return int(key)
            except ValueError:
                return key
        return key
    raise ValueResolutionError(f"illegal array key type: {type(key).__name__}")


def array_key_from_value(value: PhpValue) -> ArrayKey:
    """Turn an evaluated key expression into an array key."""
    if value.kind is ValueKind.NULL:
        return ""
    if value.kind in (ValueKind.BOOL, ValueKind.NUMBER, ValueKind.STRING):
        return normalise_key(value.payload)
    raise ValueResolutionError(f"{value.kind.value} value cannot be used as an array key")


def is_list(items: Tuple[Tuple[ArrayKey, Any], ...] | List[Tuple[ArrayKey, Any]]) -> bool:
    """Return True when keys are exactly 0..n-1 in order."""
    return all(key == index for index, (key, _) in enumerate(items))


def resolve_value(getter: Callable[[], PhpValue], *, subject: str) -> PhpValue:
    """Evaluate a lazy value, degrading to UNRESOLVED on failure."""
    try:
        return getter()
    except ValueResolutionError as exc:
        logger.debug("Could not resolve %s: %s", subject, exc)
        return PhpValue.unresolved(str(exc))


def to_plain(value: PhpValue) -> Any:
    """Convert a value into JSON/YAML-friendly Python data."""
    if value.kind is ValueKind.NULL:
        return None
    if value.kind is ValueKind.BOOL:
        return bool(value.payload)
    if value.kind is ValueKind.STRING:
        return value.payload
    if value.kind is ValueKind.NUMBER:
        if isinstance(value.payload, float) and (math.isnan(value.payload) or math.isinf(value.payload)):
            return format_number(value.payload)
        return value.payload
    if value.kind is ValueKind.ARRAY:
        if is_list(value.items):
            return [to_plain(item) for _, item in value.items]
        return {key: to_plain(item) for key, item in value.items}
    if value.kind is ValueKind.UNRESOLVED:
        return UNRESOLVED_CONSTANT
    raise AssertionError(f"unhandled value kind {value.kind}")


def render_default(value: PhpValue) -> str:
    """Render a parameter default value as compact PHP-like text."""
    if value.kind is ValueKind.NULL:
        return "null"
    if value.kind is ValueKind.BOOL:
        return "true" if value.payload else "false"
    if value.kind is ValueKind.STRING:
        return f"'{addslashes(value.payload)}'"
    if value.kind is ValueKind.NUMBER:
        return format_number(value.payload)
    if value.kind is ValueKind.ARRAY:
        return "[]"
    if value.kind is ValueKind.UNRESOLVED:
        return UNRESOLVED_DEFAULT
    raise AssertionError(f"unhandled value kind {value.kind}")


def addslashes(text: str) -> str:
    """Escape quotes, backslashes and NUL bytes with a backslash."""
    out = []
    for char in text:
        if char in ("\\", "'", '"'):
            out.append("\\" + char)
        elif char == "\0":
            out.append("\\0")
        else:
            out.append(char)
    return "".join(out)


def format_number(number: Union[int, float]) -> str:
    """Return the textual form PHP uses when casting a number to string."""
    if isinstance(number, bool):
        return "1" if number else ""
    if isinstance(number, int):
        return str(number)
    if math.isnan(number):
        return "NAN"
    if math.isinf(number):
        return "INF" if number > 0 else "-INF"
    text = repr(number)
    if "e" in text:
        mantissa, exponent = text.split("e")
        if "." not in mantissa:
            mantissa += ".0"
        exp = int(exponent)
        return f"{mantissa}E{'+' if exp >= 0 else '-'}{abs(exp)}"
    if text.endswith(".0"):
        return text[:-2]
    return text


def to_php_string(value: PhpValue) -> str:
    """Apply PHP's string conversion rules to a scalar value."""
    if value.kind is ValueKind.NULL:
        return ""
    if value.kind is ValueKind.BOOL:
        return "1" if value.payload else ""
    if value.kind is ValueKind.STRING:
        return value.payload
    if value.kind is ValueKind.NUMBER:
        return format_number(value.payload)
    raise ValueResolutionError(f"cannot convert {value.kind.value} to string")


def to_php_bool(value: PhpValue) -> bool:
    if value.kind is ValueKind.NULL:
        return False
    if value.kind is ValueKind.BOOL:
        return value.payload
    if value.kind is ValueKind.STRING:
        return value.payload not in ("", "0")
    if value.kind is ValueKind.NUMBER:
        return value.payload != 0
    if value.kind is ValueKind.ARRAY:
        return len(value.items) > 0
    raise ValueResolutionError("cannot convert unresolved value to bool")


def to_php_number(value: PhpValue) -> Union[int, float]:
    if value.kind is ValueKind.NULL:
        return 0
    if value.kind is ValueKind.BOOL:
        return int(value.payload)
    if value.kind is ValueKind.NUMBER:
        return value.payload
    if value.kind is ValueKind.STRING:
        text = value.payload.strip()
        if not any(char.isdigit() for char in text):
            raise ValueResolutionError(f"non-numeric string {value.payload!r}")
        try:
            number = int(text)
        except ValueError:
            pass
        else:
            if -(2**63) <= number < 2**63:
                return number
        try:
            return float(text)
        except ValueError as exc:
            raise ValueResolutionError(f"non-numeric string {value.payload!r}") from exc
    raise ValueResolutionError(f"cannot convert {value.kind.value} to number")


__all__ = [
    "ArrayBuilder",
    "PhpValue",
    "UNRESOLVED_CONSTANT",
    "UNRESOLVED_DEFAULT",
    "ValueKind",
    "addslashes",
    "array_key_from_value",
    "format_number",
    "is_list",
    "normalise_key",
    "render_default",
    "resolve_value",
    "to_php_bool",
    "to_php_number",
    "to_php_string",
    "to_plain",
]
