"""Tag data produced by annotation parsers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ParamTag:
    """One ``@param`` tag: rendered type (None when untyped) and trimmed description."""

    type: Optional[str]
    description: str = ""


@dataclass
class AnnotationTagSet:
    """The tags of one documentation comment that matter for signatures."""

    return_type: Optional[str] = None
    var_type: Optional[str] = None
    params: Dict[str, ParamTag] = field(default_factory=dict)
    throws: List[str] = field(default_factory=list)

    def add_throws(self, type_text: str) -> None:
        if type_text not in self.throws:
            self.throws.append(type_text)


__all__ = ["AnnotationTagSet", "ParamTag"]
