"""PHPDoc annotation parsing."""

from .base import AnnotationParser
from .models import AnnotationTagSet, ParamTag
from .parser import PhpDocAnnotationParser, docblock_lines
from .types import parse_type

__all__ = [
    "AnnotationParser",
    "AnnotationTagSet",
    "ParamTag",
    "PhpDocAnnotationParser",
    "docblock_lines",
    "parse_type",
]
