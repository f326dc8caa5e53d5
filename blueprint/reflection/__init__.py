"""Static reflection over PHP source trees."""

from .base import DefinitionProvider
from .models import (
    CaseDeclaration,
    ClassDeclaration,
    ClassKind,
    ConstantDeclaration,
    MethodDeclaration,
    NativeType,
    ParameterDeclaration,
    PropertyDeclaration,
    Visibility,
)
from .tree_sitter import TreeSitterDefinitionProvider

__all__ = [
    "CaseDeclaration",
    "ClassDeclaration",
    "ClassKind",
    "ConstantDeclaration",
    "DefinitionProvider",
    "MethodDeclaration",
    "NativeType",
    "ParameterDeclaration",
    "PropertyDeclaration",
    "TreeSitterDefinitionProvider",
    "Visibility",
]
