"""Namespace-aware name resolution and native type parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .models import NativeType

_BUILTIN_TYPES = {
    "array",
    "bool",
    "callable",
    "false",
    "float",
    "int",
    "iterable",
    "mixed",
    "never",
    "null",
    "object",
    "parent",
    "self",
    "static",
    "string",
    "true",
    "void",
}

_SPECIAL_CLASS_NAMES = {"self", "static", "parent"}

_COMMENT_RE = re.compile(r"/\*.*?\*/|//[^\n]*|#(?!\[)[^\n]*", re.S)
_CLAUSE_RE = re.compile(r"^\\?(?P<name>[^\s\\][^\s]*?)(?:\s+as\s+(?P<alias>\w+))?$", re.I)


def strip_comments(text: str) -> str:
    return _COMMENT_RE.sub(" ", text)


@dataclass
class NameScope:
    """Current namespace plus class imports, as seen at one point in a file."""

    namespace: str = ""
    imports: Dict[str, str] = field(default_factory=dict)

    def snapshot(self) -> "NameScope":
        return NameScope(namespace=self.namespace, imports=dict(self.imports))

    def qualify(self, name: str) -> str:
        return f"{self.namespace}\\{name}" if self.namespace else name

    def resolve_class(self, name: str) -> str:
        """Return the fully qualified form of a class reference (no leading backslash)."""
        name = name.strip()
        if not name:
            return name
        if name.startswith("\\"):
            return name[1:]
        lower = name.lower()
        if lower in _SPECIAL_CLASS_NAMES:
            return lower
        if lower.startswith("namespace\\"):
            return self.qualify(name[len("namespace\\"):])
        first, sep, rest = name.partition("\\")
        target = self.imports.get(first.lower())
        if target is not None:
            return f"{target}\\{rest}" if sep else target
        return self.qualify(name)

    def add_use_declaration(self, text: str) -> None:
        """Register the class imports of a ``use ...;`` statement."""
        body = strip_comments(text).strip()
        body = re.sub(r"^use\s+", "", body, flags=re.I).rstrip().rstrip(";").strip()
        kind = "class"
        match = re.match(r"(function|const)\s+", body, re.I)
        if match:
            kind = match.group(1).lower()
            body = body[match.end():]
        if "{" in body:
            prefix, _, rest = body.partition("{")
            prefix = prefix.strip().strip("\\")
            rest = rest.rsplit("}", 1)[0]
            for clause in rest.split(","):
                self._add_clause(clause, kind, prefix)
        else:
            for clause in body.split(","):
                self._add_clause(clause, kind, "")

    def _add_clause(self, clause: str, kind: str, prefix: str) -> None:
        clause = " ".join(clause.split())
        if not clause:
            return
        match = re.match(r"(function|const)\s+", clause, re.I)
        if match:
            kind = match.group(1).lower()
            clause = clause[match.end():]
        if kind != "class":
            return
        parsed = _CLAUSE_RE.match(clause)
        if parsed is None:
            return
        target = parsed.group("name").strip("\\")
        if prefix:
            target = f"{prefix}\\{target}"
        alias = parsed.group("alias") or target.rsplit("\\", 1)[-1]
        self.imports[alias.lower()] = target


def split_name_list(text: str) -> List[str]:
    """Split ``extends A, B`` / ``implements A`` / ``use A, B`` clause text into names."""
    body = strip_comments(text)
    body = body.split("{", 1)[0].rstrip().rstrip(";")
    body = re.sub(r"^\s*(extends|implements|use)\b", "", body, flags=re.I)
    return [part.strip() for part in body.split(",") if part.strip()]


def parse_native_type(text: str, scope: NameScope) -> Optional[NativeType]:
    """Parse declared type text (``?Foo``, ``A|B``, ``(A&B)|null``) into a NativeType."""
    compact = re.sub(r"\s+", "", strip_comments(text))
    if not compact:
        return None
    if compact.startswith("?"):
        return _named(compact[1:], scope).with_nullable()
    parts = _split_top_level(compact, "|")
    if len(parts) > 1:
        return NativeType.union([_union_member(part, scope) for part in parts])
    return _union_member(compact, scope)


def _union_member(part: str, scope: NameScope) -> NativeType:
    if part.startswith("(") and part.endswith(")"):
        part = part[1:-1]
    if "&" in part:
        return NativeType.intersection([_named(name, scope) for name in part.split("&") if name])
    return _named(part, scope)


def _named(name: str, scope: NameScope) -> NativeType:
    lower = name.lower()
    if lower in _BUILTIN_TYPES:
        return NativeType.named(lower)
    return NativeType.named(scope.resolve_class(name))


def _split_top_level(text: str, separator: str) -> List[str]:
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == separator and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return [part for part in parts if part]


__all__ = ["NameScope", "parse_native_type", "split_name_list", "strip_comments"]
