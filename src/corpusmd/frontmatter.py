"""YAML frontmatter splitting."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import yaml

_FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?P<body>.*?)^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


@dataclass(frozen=True)
class FrontmatterResult:
    """Outcome of splitting a file into metadata and body.

    Attributes:
        has_frontmatter: True when a leading ``---`` block was found.
        data: Parsed mapping, or None when absent or unparseable.
        parse_error: Description of a YAML failure, if any.
        content: The body following the frontmatter block.
        raw: The frontmatter block exactly as written, delimiters included.
    """

    has_frontmatter: bool
    data: dict[str, Any] | None
    content: str
    raw: str = ""
    parse_error: str | None = None


def parse_frontmatter(content: str) -> FrontmatterResult:
    """Split ``content`` into optional YAML frontmatter and the body.

    A malformed YAML block is reported through ``parse_error`` rather than
    raised; the body is still returned so callers can keep processing.
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return FrontmatterResult(has_frontmatter=False, data=None, content=content)

    raw = match.group(0)
    body = content[match.end():]
    try:
        data = yaml.safe_load(match.group("body"))
    except yaml.YAMLError as exc:
        return FrontmatterResult(
            has_frontmatter=True,
            data=None,
            content=body,
            raw=raw,
            parse_error=str(exc),
        )

    if data is None:
        data = {}
    if not isinstance(data, dict):
        return FrontmatterResult(
            has_frontmatter=True,
            data=None,
            content=body,
            raw=raw,
            parse_error=f"Frontmatter must be a mapping, got {type(data).__name__}",
        )
    return FrontmatterResult(has_frontmatter=True, data=data, content=body, raw=raw)
