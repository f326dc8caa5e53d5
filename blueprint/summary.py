"""Summary text extraction from documentation comments."""

from __future__ import annotations

import re
from typing import List, Optional

from .docblock import docblock_lines

_FIRST_SENTENCE_RE = re.compile(r"^(.+?[.!?])(?:\s|$)")


def extract_summary(doc_comment: Optional[str], *, short: bool = False) -> Optional[str]:
    """Return the leading paragraph of ``doc_comment`` as one line.

    Collection stops at the first blank line or tag line. With ``short`` the
    text is cut after its first sentence terminator; abbreviations such as
    "e.g." end the sentence early.
    """
    if not doc_comment:
        return None
    lines = [line.strip() for line in docblock_lines(doc_comment)]
    while lines and not lines[0]:
        lines.pop(0)

    summary: List[str] = []
    for line in lines:
        if not line or line.startswith("@"):
            break
        summary.append(line)
    text = " ".join(summary)
    if not text:
        return None

    if short:
        match = _FIRST_SENTENCE_RE.match(text)
        if match:
            text = match.group(1)
    return text


__all__ = ["extract_summary"]
