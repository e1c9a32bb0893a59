"""Heading extraction and anchor utilities."""

from __future__ import annotations

import re

from corpusmd.code_blocks import CodeBlockTracker
from corpusmd.schemas import Section

HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_WHITESPACE_RE = re.compile(r"\s+")


def extract_sections(content: str) -> list[Section]:
    """Return ATX headings outside fenced code, in document order."""
    sections: list[Section] = []
    tracker = CodeBlockTracker()
    for line in content.split("\n"):
        tracker.process_line(line)
        if tracker.in_code_block or tracker.is_fence_line:
            continue
        match = HEADING_RE.match(line)
        if match:
            sections.append(Section(level=len(match.group(1)), title=match.group(2).strip()))
    return sections


def slugify(text: str) -> str:
    """Create a GitHub-style anchor from a heading title.

    Letters and digits from any script survive, as do whitespace, hyphens and
    underscores; everything else is dropped before whitespace becomes ``-``.
    """
    slug = _SLUG_STRIP_RE.sub("", text.lower())
    return _WHITESPACE_RE.sub("-", slug)
