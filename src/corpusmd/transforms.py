"""Pure content transforms used by the optimization pipeline.

Each transform takes Markdown text and returns Markdown text. Fenced code is
left byte-identical, and content with nothing to rewrite comes back unchanged.
"""

from __future__ import annotations

import re
from typing import Callable

from corpusmd.code_blocks import CodeBlockTracker, transform_outside_code_blocks

_NUMBERED_HEADING_RE = re.compile(r"^(#{1,6}\s+)\d+(?:\.\d+)*\.\s+(.+)$", re.MULTILINE)
_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)(?:\s+#+)?\s*$")

# A comment that is alone on its line(s) takes the line break and one
# following blank line with it; inline comments are removed in place.
_LINE_COMMENT_TEMPLATE = r"^[ \t]*<!--{body}-->[ \t]*(?:\n[ \t]*\n|\n|\Z)"
_INLINE_COMMENT_TEMPLATE = r"<!--{body}-->"
_ANY_COMMENT_BODY = r"(?:(?!-->).)*?"
_SECTION_META_BODY = r"\s*section-meta\b(?:(?!-->).)*?"

_BADGE_URL_RE = re.compile(
    r"shields\.io|badgen\.net|codecov\.io|travis-ci\.(?:org|com)|badge\.fury\.io"
    r"|/badge\.svg|/badges?/",
    re.IGNORECASE,
)
_IMAGE = r"!\[[^\]]*\]\((?P<url>[^)\s]+)(?:\s+\"[^\"]*\")?\)"
_LINKED_IMAGE_RE = re.compile(r"\[" + _IMAGE + r"\]\([^)]*\)")
_IMAGE_RE = re.compile(_IMAGE)
_INTERNAL_LINK_RE = re.compile(r"(?<!!)\[(?P<text>[^\]]*)\]\((?P<url>(?:\./|(?:\.\./)+)[^)\s]+?\.md(?:#[^)\s]*)?)\)")
_BLOCK_START_RE = re.compile(r"^\s*(?:#{1,6}\s|[-*+]\s|\d+[.)]\s|>|\||<!--)")
_TRIPLE_NEWLINE_RE = re.compile(r"\n{3,}")


def strip_heading_numbers(content: str) -> str:
    """Remove outline numbering such as ``1.`` or ``2.1.`` from headings."""
    return transform_outside_code_blocks(
        content, lambda text: _NUMBERED_HEADING_RE.sub(r"\1\2", text)
    )


def _comment_remover(body: str) -> Callable[[str], str]:
    line_re = re.compile(_LINE_COMMENT_TEMPLATE.format(body=body), re.MULTILINE | re.DOTALL)
    inline_re = re.compile(_INLINE_COMMENT_TEMPLATE.format(body=body), re.DOTALL)

    def remove(text: str) -> str:
        return inline_re.sub("", line_re.sub("", text))

    return remove


_remove_any_comment = _comment_remover(_ANY_COMMENT_BODY)
_remove_section_meta = _comment_remover(_SECTION_META_BODY)


def strip_section_meta(content: str) -> str:
    """Remove ``<!-- section-meta ... -->`` blocks, keeping other comments."""
    if "section-meta" not in content:
        return content
    return transform_outside_code_blocks(content, _remove_section_meta)


def remove_comments(content: str) -> str:
    """Remove every HTML comment outside fenced code."""
    if "<!--" not in content:
        return content
    return transform_outside_code_blocks(content, _remove_any_comment)


def normalize_headings(content: str, separator: str = " / ") -> str:
    """Prefix each heading with the titles of its enclosing headings.

    ``## Config`` followed by ``### Consumer`` becomes ``### Config / Consumer``.
    A heading resets every deeper level; skipped levels contribute nothing.
    """
    stack: list[str | None] = [None] * 6
    tracker = CodeBlockTracker()
    lines = content.split("\n")
    for position, line in enumerate(lines):
        tracker.process_line(line)
        if tracker.in_code_block or tracker.is_fence_line:
            continue
        match = _HEADING_RE.match(line)
        if not match:
            continue
        level = len(match.group(1))
        stack[level - 1] = match.group(2)
        for deeper in range(level, 6):
            stack[deeper] = None
        breadcrumb = separator.join(title for title in stack[:level] if title)
        lines[position] = f"{match.group(1)} {breadcrumb}"
    return "\n".join(lines)


def _is_badge(url: str) -> bool:
    return bool(_BADGE_URL_RE.search(url))


def _drop_badges(text: str) -> str:
    def drop(match: re.Match[str]) -> str:
        return "" if _is_badge(match.group("url")) else match.group(0)

    kept: list[str] = []
    for line in text.split("\n"):
        cleaned = _IMAGE_RE.sub(drop, _LINKED_IMAGE_RE.sub(drop, line))
        if cleaned != line and not cleaned.strip():
            continue
        kept.append(cleaned.rstrip() if cleaned != line else line)
    return "\n".join(kept)


def remove_badges(content: str) -> str:
    """Remove status badge images; lines left empty are dropped."""
    if "![" not in content:
        return content
    return transform_outside_code_blocks(content, _drop_badges)


def remove_duplicates(content: str) -> str:
    """Remove repeated paragraphs, keeping the first occurrence.

    Only plain paragraphs are compared. Headings, lists, quotes, tables,
    comments and fenced code are never removed.
    """
    lines = content.split("\n")
    tracker = CodeBlockTracker()
    seen: set[str] = set()
    output: list[str] = []
    paragraph: list[str] = []

    def flush() -> None:
        if not paragraph:
            return
        key = " ".join(part.strip() for part in paragraph)
        if _BLOCK_START_RE.match(paragraph[0]):
            output.extend(paragraph)
        elif key in seen:
            # Drop the blank line that separated the duplicate from its predecessor.
            if output and not output[-1].strip():
                output.pop()
        else:
            seen.add(key)
            output.extend(paragraph)
        paragraph.clear()

    for line in lines:
        tracker.process_line(line)
        if tracker.in_code_block or tracker.is_fence_line:
            flush()
            output.append(line)
            continue
        if not line.strip():
            flush()
            output.append(line)
            continue
        paragraph.append(line)
    flush()
    return "\n".join(output)


def remove_internal_links(content: str) -> str:
    """Replace relative ``.md`` links with their link text."""
    if "](" not in content:
        return content
    return transform_outside_code_blocks(
        content, lambda text: _INTERNAL_LINK_RE.sub(r"\g<text>", text)
    )


def normalize_whitespace(content: str) -> str:
    """Strip trailing whitespace per line and collapse 3+ newlines to 2."""
    stripped = "\n".join(line.rstrip() for line in content.split("\n"))
    return _TRIPLE_NEWLINE_RE.sub("\n\n", stripped)
