"""Declarations exposed by definition providers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

from ..errors import ValueResolutionError
from ..values import PhpValue


class ClassKind(Enum):
    """Kinds of class-like definitions."""

    CLASS = "class"
    INTERFACE = "interface"
    TRAIT = "trait"
    ENUM = "enum"


class Visibility(Enum):
    """Member visibility, ordered from most to least visible."""

    PUBLIC = 0
    PROTECTED = 1
    PRIVATE = 2

    @property
    def is_public(self) -> bool:
        return self is Visibility.PUBLIC


@dataclass(frozen=True)
class NativeType:
    """A type declared in source: a named type, a union or an intersection."""

    kind: str
    name: str = ""
    members: Tuple["NativeType", ...] = ()
    nullable: bool = False

    @classmethod
    def named(cls, name: str, *, nullable: bool = False) -> "NativeType":
        return cls(kind="named", name=name, nullable=nullable)

    @classmethod
    def union(cls, members: List["NativeType"]) -> "NativeType":
        return cls(kind="union", members=tuple(members))

    @classmethod
    def intersection(cls, members: List["NativeType"]) -> "NativeType":
        return cls(kind="intersection", members=tuple(members))

    def with_nullable(self) -> "NativeType":
        if self.kind == "named":
            return NativeType.named(self.name, nullable=True)
        if self.kind == "union":
            if any(m.kind == "named" and m.name == "null" for m in self.members):
                return self
            return NativeType.union([*self.members, NativeType.named("null")])
        return NativeType.union([self, NativeType.named("null")])


ValueGetter = Callable[[], PhpValue]


class _LazyValue:
    """Caches a value getter and guards against self-referencing expressions."""

    def __init__(self, getter: Optional[ValueGetter]) -> None:
        self._getter = getter
        self._value: Optional[PhpValue] = None
        self._error: Optional[ValueResolutionError] = None
        self._evaluating = False

    @property
    def available(self) -> bool:
        return self._getter is not None

    def get(self, subject: str) -> PhpValue:
        if self._getter is None:
            raise ValueResolutionError(f"{subject} has no value expression")
        if self._value is not None:
            return self._value
        if self._error is not None:
            raise self._error
        if self._evaluating:
            raise ValueResolutionError(f"{subject} refers to itself")
        self._evaluating = True
        try:
            self._value = self._getter()
        except ValueResolutionError as exc:
            self._error = exc
            raise
        finally:
            self._evaluating = False
        return self._value


@dataclass
class ConstantDeclaration:
    """A class constant."""

    name: str
    visibility: Visibility = Visibility.PUBLIC
    getter: Optional[ValueGetter] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._lazy = _LazyValue(self.getter)

    def get_value(self) -> PhpValue:
        return self._lazy.get(f"constant {self.name}")


@dataclass
class CaseDeclaration:
    """An enum case, with an optional backing value expression."""

    name: str
    getter: Optional[ValueGetter] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._lazy = _LazyValue(self.getter)

    @property
    def has_value(self) -> bool:
        return self._lazy.available

    def get_value(self) -> PhpValue:
        return self._lazy.get(f"case {self.name}")


@dataclass
class PropertyDeclaration:
    """A declared or constructor-promoted property."""

    name: str
    visibility: Visibility = Visibility.PUBLIC
    is_static: bool = False
    is_readonly: bool = False
    type: Optional[NativeType] = None
    doc_comment: Optional[str] = None


@dataclass
class ParameterDeclaration:
    """A formal parameter of a method."""

    name: str
    type: Optional[NativeType] = None
    is_variadic: bool = False
    is_optional: bool = False
    getter: Optional[ValueGetter] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._lazy = _LazyValue(self.getter)

    @property
    def has_default(self) -> bool:
        return self._lazy.available

    def get_default_value(self) -> PhpValue:
        return self._lazy.get(f"default of ${self.name}")


@dataclass
class MethodDeclaration:
    """A method declared directly on a class-like definition."""

    name: str
    visibility: Visibility = Visibility.PUBLIC
    is_static: bool = False
    parameters: List[ParameterDeclaration] = field(default_factory=list)
    return_type: Optional[NativeType] = None
    doc_comment: Optional[str] = None


@dataclass
class ClassDeclaration:
    """A class, interface, trait or enum as seen by a definition provider."""

    name: str
    kind: ClassKind = ClassKind.CLASS
    is_abstract: bool = False
    is_final: bool = False
    is_readonly: bool = False
    doc_comment: Optional[str] = None
    parent: Optional[str] = None
    interfaces: List[str] = field(default_factory=list)
    traits: List[str] = field(default_factory=list)
    backing_type: Optional[str] = None
    constants: List[ConstantDeclaration] = field(default_factory=list)
    cases: List[CaseDeclaration] = field(default_factory=list)
    properties: List[PropertyDeclaration] = field(default_factory=list)
    methods: List[MethodDeclaration] = field(default_factory=list)
    file: Optional[str] = None

    @property
    def short_name(self) -> str:
        return self.name.rsplit("\\", 1)[-1]

    @property
    def is_backed(self) -> bool:
        return self.kind is ClassKind.ENUM and (
            self.backing_type is not None or any(case.has_value for case in self.cases)
        )

    def constant(self, name: str) -> Optional[ConstantDeclaration]:
        for constant in self.constants:
            if constant.name == name:
                return constant
        return None


__all__ = [
    "CaseDeclaration",
    "ClassDeclaration",
    "ClassKind",
    "ConstantDeclaration",
    "MethodDeclaration",
    "NativeType",
    "ParameterDeclaration",
    "PropertyDeclaration",
    "ValueGetter",
    "Visibility",
]
