"""Builds a DefinitionRecord from one class-like declaration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .constants import ConstantSet, compact_value
from .docblock import AnnotationParser, AnnotationTagSet
from .errors import AnnotationParseError
from .logging import get_logger
from .models import DefinitionRecord
from .reflection import ClassDeclaration, ClassKind, DefinitionProvider, Visibility
from .signatures import render_method, render_property
from .summary import extract_summary
from .values import ValueKind, resolve_value, to_plain

logger = get_logger("extractor")

_ENUM_INTERFACES = {"UnitEnum", "BackedEnum"}
_ENUM_METHODS = {"cases", "from", "tryFrom"}
_ENUM_PROPERTIES = {"name", "value"}


@dataclass(frozen=True)
class ExtractionSettings:
    """Per-run switches that shape what the extractor emits."""

    public_only: bool = True
    short_docs: bool = False
    compact_threshold: int = 0


class MemberExtractor:
    """Extracts the kind, hierarchy and members of a declaration."""

    def __init__(
        self,
        provider: DefinitionProvider,
        annotations: AnnotationParser,
        settings: ExtractionSettings,
    ) -> None:
        self._provider = provider
        self._annotations = annotations
        self._settings = settings

    def extract(self, declaration: ClassDeclaration) -> DefinitionRecord:
        kind = declaration.kind
        record = DefinitionRecord(
            kind=kind.value,
            abstract=declaration.is_abstract and kind is not ClassKind.INTERFACE,
            final=declaration.is_final or kind is ClassKind.ENUM,
            summary=extract_summary(declaration.doc_comment, short=self._settings.short_docs),
        )
        if declaration.parent:
            record.extends = self._canonical_name(declaration.parent)
        record.implements = [
            name
            for name in (self._canonical_name(item) for item in declaration.interfaces)
            if name not in _ENUM_INTERFACES
        ]
        record.uses = [self._canonical_name(item) for item in declaration.traits]
        record.constants = self._constants(declaration)
        record.properties = self._properties(declaration)
        record.methods = self._methods(declaration)
        return record

    def _visible(self, visibility: Visibility) -> bool:
        return visibility.is_public or not self._settings.public_only

    def _canonical_name(self, name: str) -> str:
        resolved = self._provider.resolve(name)
        if resolved is None:
            logger.debug("Could not resolve %s; keeping the written name", name)
            return name
        return resolved.name

    def _tags(self, doc_comment: Optional[str], subject: str) -> AnnotationTagSet:
        try:
            return self._annotations.parse(doc_comment)
        except AnnotationParseError as exc:
            logger.debug("Ignoring malformed docblock on %s: %s", subject, exc)
            return AnnotationTagSet()

    def _constants(self, declaration: ClassDeclaration) -> ConstantSet:
        constants = ConstantSet()
        threshold = self._settings.compact_threshold
        if declaration.kind is ClassKind.ENUM:
            backed = declaration.is_backed
            for case in declaration.cases:
                if not backed:
                    constants.append(case.name)
                    continue
                value = resolve_value(case.get_value, subject=f"{declaration.name}::{case.name}")
                constants.set(case.name, None if value.kind is ValueKind.UNRESOLVED else to_plain(value))
            for constant in declaration.constants:
                if self._visible(constant.visibility):
                    value = resolve_value(constant.get_value, subject=f"{declaration.name}::{constant.name}")
                    constants.set(constant.name, to_plain(value))
            return constants.truncate(threshold)

        for constant in declaration.constants:
            if not self._visible(constant.visibility):
                continue
            value = resolve_value(constant.get_value, subject=f"{declaration.name}::{constant.name}")
            constants.set(constant.name, compact_value(value, threshold))
        return constants.truncate(threshold)

    def _properties(self, declaration: ClassDeclaration) -> List[str]:
        result: List[str] = []
        for prop in declaration.properties:
            if not self._visible(prop.visibility):
                continue
            if declaration.kind is ClassKind.ENUM and prop.name in _ENUM_PROPERTIES:
                continue
            tags = self._tags(prop.doc_comment, f"{declaration.name}::${prop.name}")
            result.append(render_property(prop, var_type=tags.var_type, readonly=declaration.is_readonly))
        return result

    def _methods(self, declaration: ClassDeclaration) -> List[str]:
        result: List[str] = []
        for method in declaration.methods:
            if not self._visible(method.visibility):
                continue
            if method.name.startswith("__") and method.name != "__construct":
                continue
            if declaration.kind is ClassKind.ENUM and method.name in _ENUM_METHODS:
                continue
            tags = self._tags(method.doc_comment, f"{declaration.name}::{method.name}()")
            summary = extract_summary(method.doc_comment, short=self._settings.short_docs)
            result.append(render_method(method, tags, summary))
        return result


__all__ = ["ExtractionSettings", "MemberExtractor"]
