"""Tests for the PHPDoc tag parser."""

from __future__ import annotations

import pytest

from blueprint.docblock import AnnotationTagSet, ParamTag, PhpDocAnnotationParser, docblock_lines
from blueprint.docblock.parser import iter_tags
from blueprint.errors import AnnotationParseError


@pytest.fixture
def parser() -> PhpDocAnnotationParser:
    return PhpDocAnnotationParser()


def test_docblock_lines_strip_decoration() -> None:
    doc = """/**
     * Summary.
     *
     * @return int
     */"""

    assert docblock_lines(doc) == ["", "Summary.", "", "@return int", ""]


def test_iter_tags_joins_continuation_lines() -> None:
    doc = """/**
     * @param int $mode The mode
     *   spread over lines
     *
     * Trailing prose.
     * @return void
     */"""

    assert list(iter_tags(doc)) == [("param", "int $mode The mode spread over lines"), ("return", "void")]


def test_empty_comment_yields_empty_tag_set(parser: PhpDocAnnotationParser) -> None:
    assert parser.parse(None) == AnnotationTagSet()
    assert parser.parse("/** Just prose. */") == AnnotationTagSet()


def test_parses_all_supported_tags(parser: PhpDocAnnotationParser) -> None:
    doc = """/**
     * Loads things.
     *
     * @param array<string,mixed> $options Loader options
     * @param string|null $name
     * @return list<string>
     * @throws \\RuntimeException
     * @throws \\LogicException When misconfigured
     * @var int
     */"""

    tags = parser.parse(doc)

    assert tags.params == {
        "options": ParamTag(type="array<string, mixed>", description="Loader options"),
        "name": ParamTag(type="(string | null)", description=""),
    }
    assert tags.return_type == "list<string>"
    assert tags.throws == ["\\RuntimeException", "\\LogicException"]
    assert tags.var_type == "int"


def test_untyped_param_keeps_description(parser: PhpDocAnnotationParser) -> None:
    tags = parser.parse("/** @param $name The display name */")

    assert tags.params["name"] == ParamTag(type=None, description="The display name")


def test_by_reference_and_variadic_params(parser: PhpDocAnnotationParser) -> None:
    doc = """/**
     * @param int &$count
     * @param string ...$parts
     */"""

    tags = parser.parse(doc)

    assert tags.params["count"].type == "int"
    assert tags.params["parts"].type == "string"


def test_first_return_and_var_win(parser: PhpDocAnnotationParser) -> None:
    doc = """/**
     * @return int
     * @return string
     * @var bool
     * @var float
     */"""

    tags = parser.parse(doc)

    assert tags.return_type == "int"
    assert tags.var_type == "bool"


def test_duplicate_throws_are_collapsed(parser: PhpDocAnnotationParser) -> None:
    doc = """/**
     * @throws \\RuntimeException on read
     * @throws \\RuntimeException on write
     */"""

    assert parser.parse(doc).throws == ["\\RuntimeException"]


def test_unknown_tags_are_ignored(parser: PhpDocAnnotationParser) -> None:
    tags = parser.parse("/** @deprecated use something else\n * @see Other */")

    assert tags == AnnotationTagSet()


@pytest.mark.parametrize(
    "doc",
    [
        "/** @param this is not valid */",
        "/** @param ??? $notReal */",
        "/** @param int */",
        "/** @param */",
        "/** @return */",
        "/** @throws */",
        "/** @var */",
        "/** @return array<int */",
        "/** @return array<int>foo */",
    ],
)
def test_malformed_tags_raise(parser: PhpDocAnnotationParser, doc: str) -> None:
    with pytest.raises(AnnotationParseError):
        parser.parse(doc)
