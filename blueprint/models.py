"""Core data models shared across blueprint components."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .constants import ConstantSet

PlainConstants = Union[List[Any], Dict[Union[int, str], Any]]


@dataclass
class DefinitionRecord:
    """Extracted public surface of one class-like definition."""

    kind: str = "class"
    abstract: bool = False
    final: bool = False
    summary: Optional[str] = None
    extends: Optional[str] = None
    implements: List[str] = field(default_factory=list)
    uses: List[str] = field(default_factory=list)
    constants: ConstantSet = field(default_factory=ConstantSet)
    properties: List[str] = field(default_factory=list)
    methods: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Rendered mapping in canonical key order; empty and false fields are omitted."""
        data: Dict[str, Any] = {}
        if self.kind != "class":
            data["type"] = self.kind
        if self.abstract and self.kind != "interface":
            data["abstract"] = True
        if self.final:
            data["final"] = True
        if self.summary:
            data["doc"] = self.summary
        if self.extends:
            data["extends"] = self.extends
        if self.implements:
            data["implements"] = list(self.implements)
        if self.uses:
            data["uses"] = list(self.uses)
        if len(self.constants):
            data["constants"] = self.constants.to_plain()
        if self.properties:
            data["properties"] = list(self.properties)
        if self.methods:
            data["methods"] = list(self.methods)
        return data


@dataclass
class Blueprint:
    """Result of one extraction run, keyed by fully qualified name."""

    records: Dict[str, DefinitionRecord] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, name: object) -> bool:
        return name in self.records

    def __getitem__(self, name: str) -> Dict[str, Any]:
        return self.records[name].to_dict()

    def names(self) -> List[str]:
        return list(self.records)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {name: record.to_dict() for name, record in self.records.items()}


__all__ = ["Blueprint", "DefinitionRecord", "PlainConstants"]
