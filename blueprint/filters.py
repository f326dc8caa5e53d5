"""Namespace scoping for extracted definitions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class DefinitionFilter:
    """Decides whether a fully qualified definition name is in scope.

    The checks run in order and must all pass: namespace prefix, internal
    sub-namespace exclusion (relative to the prefix), then explicit
    exclusion prefixes matched against the full name.
    """

    namespace: str = ""
    skip_internal: bool = True
    exclude: Sequence[str] = ()

    def accepts(self, name: str) -> bool:
        if self.namespace and not name.startswith(self.namespace):
            return False
        if self.skip_internal:
            relative = name[len(self.namespace):]
            if "\\Internal\\" in relative or relative.startswith("Internal\\"):
                return False
        return not any(name.startswith(prefix) for prefix in self.exclude if prefix)


__all__ = ["DefinitionFilter"]
