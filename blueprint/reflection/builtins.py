"""Reference-only declarations for classes shipped with the PHP engine."""

from __future__ import annotations

from typing import Dict, Optional

from .models import ClassDeclaration, ClassKind

_INTERFACES = (
    "ArrayAccess",
    "BackedEnum",
    "Countable",
    "DateTimeInterface",
    "Iterator",
    "IteratorAggregate",
    "JsonSerializable",
    "Serializable",
    "Stringable",
    "Throwable",
    "Traversable",
    "UnitEnum",
)

_CLASSES = (
    "ArgumentCountError",
    "ArithmeticError",
    "ArrayIterator",
    "ArrayObject",
    "Attribute",
    "BadFunctionCallException",
    "BadMethodCallException",
    "Closure",
    "DateInterval",
    "DateTime",
    "DateTimeImmutable",
    "DateTimeZone",
    "DivisionByZeroError",
    "DomainException",
    "Error",
    "ErrorException",
    "Exception",
    "Generator",
    "InvalidArgumentException",
    "JsonException",
    "LengthException",
    "LogicException",
    "OutOfBoundsException",
    "OutOfRangeException",
    "OverflowException",
    "RangeException",
    "RuntimeException",
    "SplFileInfo",
    "SplObjectStorage",
    "TypeError",
    "UnderflowException",
    "UnexpectedValueException",
    "ValueError",
    "WeakMap",
    "stdClass",
)

_BUILTINS: Dict[str, ClassDeclaration] = {}
for _name in _INTERFACES:
    _BUILTINS[_name.lower()] = ClassDeclaration(name=_name, kind=ClassKind.INTERFACE)
for _name in _CLASSES:
    _BUILTINS[_name.lower()] = ClassDeclaration(name=_name, kind=ClassKind.CLASS)


def builtin_declaration(name: str) -> Optional[ClassDeclaration]:
    """Return the engine declaration for ``name`` (case-insensitive), if known."""
    return _BUILTINS.get(name.lstrip("\\").lower())


__all__ = ["builtin_declaration"]
