"""Tests for blueprint.summary."""

from __future__ import annotations

from blueprint.summary import extract_summary


def test_returns_none_without_comment() -> None:
    assert extract_summary(None) is None
    assert extract_summary("") is None


def test_joins_leading_paragraph_lines() -> None:
    doc = """/**
     * First line of the summary
     * continues here.
     *
     * Details that are ignored.
     */"""

    assert extract_summary(doc) == "First line of the summary continues here."


def test_stops_at_first_tag() -> None:
    doc = """/**
     * Loads the thing.
     * @param string $name
     */"""

    assert extract_summary(doc) == "Loads the thing."


def test_skips_leading_blank_lines() -> None:
    doc = """/**
     *
     * Summary after a blank.
     */"""

    assert extract_summary(doc) == "Summary after a blank."


def test_tag_only_docblock_has_no_summary() -> None:
    assert extract_summary("/** @var int */") is None


def test_single_line_docblock() -> None:
    assert extract_summary("/** Magic method. */") == "Magic method."


def test_short_mode_keeps_first_sentence() -> None:
    doc = "/** Creates a client. Uses the default transport! */"

    assert extract_summary(doc, short=True) == "Creates a client."


def test_short_mode_without_terminator_keeps_text() -> None:
    assert extract_summary("/** Creates a client */", short=True) == "Creates a client"


def test_short_mode_stops_at_abbreviations() -> None:
    doc = "/** Accepts modes, e.g. 0755 and 0644. */"

    assert extract_summary(doc, short=True) == "Accepts modes, e.g."
