"""Base classes for annotation parsers."""

from abc import ABC, abstractmethod
from typing import Optional

from .models import AnnotationTagSet


class AnnotationParser(ABC):
    """Contract for parsers that turn a documentation comment into tags."""

    @abstractmethod
    def parse(self, doc_comment: Optional[str]) -> AnnotationTagSet:
        """Return the tags of ``doc_comment``; raise AnnotationParseError when malformed."""
