"""Extraction runs: discover, filter, extract and aggregate definitions."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from .docblock import AnnotationParser, PhpDocAnnotationParser
from .extractor import ExtractionSettings, MemberExtractor
from .filters import DefinitionFilter
from .logging import get_logger
from .models import Blueprint
from .reflection import DefinitionProvider, TreeSitterDefinitionProvider

logger = get_logger("generator")

ProviderFactory = Callable[[str, Sequence[str]], DefinitionProvider]


@dataclass(frozen=True)
class ExtractionOptions:
    """Everything that shapes one extraction run."""

    namespace: str = ""
    public_only: bool = True
    skip_internal: bool = True
    short_docs: bool = False
    compact_threshold: int = 0
    exclude: Sequence[str] = ()
    reference_paths: Sequence[str] = field(default_factory=tuple)

    def definition_filter(self) -> DefinitionFilter:
        return DefinitionFilter(
            namespace=self.namespace,
            skip_internal=self.skip_internal,
            exclude=tuple(self.exclude),
        )

    def settings(self) -> ExtractionSettings:
        return ExtractionSettings(
            public_only=self.public_only,
            short_docs=self.short_docs,
            compact_threshold=max(0, self.compact_threshold),
        )


def _default_provider(directory: str, reference_paths: Sequence[str]) -> DefinitionProvider:
    return TreeSitterDefinitionProvider(directory, reference_paths=reference_paths)


class BlueprintGenerator:
    """Turns a directory of PHP sources into a sorted Blueprint."""

    def __init__(
        self,
        options: Optional[ExtractionOptions] = None,
        *,
        annotation_parser: Optional[AnnotationParser] = None,
        provider_factory: Optional[ProviderFactory] = None,
    ) -> None:
        self.options = options or ExtractionOptions()
        self._annotations = annotation_parser or PhpDocAnnotationParser()
        self._provider_factory = provider_factory or _default_provider

    def extract_from_directory(self, directory: os.PathLike | str) -> Blueprint:
        """Run one extraction; each call starts from an empty result.

        Raises DiscoveryError when ``directory`` is missing or not a directory.
        """
        provider = self._provider_factory(str(directory), list(self.options.reference_paths))
        return self.extract(provider)

    def extract(self, provider: DefinitionProvider) -> Blueprint:
        definition_filter = self.options.definition_filter()
        extractor = MemberExtractor(provider, self._annotations, self.options.settings())

        records = {}
        skipped: List[str] = []
        for declaration in provider.definitions():
            if not definition_filter.accepts(declaration.name):
                skipped.append(declaration.name)
                continue
            records[declaration.name] = extractor.extract(declaration)
        if skipped:
            logger.debug("Filtered out %d definitions", len(skipped))

        ordered = {name: records[name] for name in sorted(records)}
        logger.info("Extracted %d definitions", len(ordered))
        return Blueprint(records=ordered)


__all__ = ["BlueprintGenerator", "ExtractionOptions"]
