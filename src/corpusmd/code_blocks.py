"""Fenced code block detection for line-oriented Markdown scanning."""

from __future__ import annotations

import re
from typing import Callable

_OPENING_FENCE_RE = re.compile(r"^`{3,}[^`]*$")
_CLOSING_FENCE_RE = re.compile(r"^`{3,}$")
_MERMAID_FENCE = "```mermaid"


def is_opening_fence(line: str) -> bool:
    """Return True for a fence line that may open a block (tag allowed)."""
    return bool(_OPENING_FENCE_RE.match(line.strip()))


def is_closing_fence(line: str) -> bool:
    """Return True for a bare fence line that may close a block."""
    return bool(_CLOSING_FENCE_RE.match(line.strip()))


class CodeBlockTracker:
    """Track whether a line-by-line scan is inside a fenced code block.

    Transitions:

    ============  ======================  ============
    state         line                    next state
    ============  ======================  ============
    outside       opening fence (tagged)  inside
    inside        bare closing fence      outside
    any           anything else           unchanged
    ============  ======================  ============

    Fences do not nest, so a tagged fence line seen inside a block is content.
    """

    def __init__(self) -> None:
        self._in_code_block = False
        self._fence_line = False

    def process_line(self, line: str) -> None:
        if self._in_code_block:
            self._fence_line = is_closing_fence(line)
        else:
            self._fence_line = is_opening_fence(line)
        if self._fence_line:
            self._in_code_block = not self._in_code_block

    def is_in_code_block(self) -> bool:
        return self._in_code_block

    @property
    def in_code_block(self) -> bool:
        return self._in_code_block

    @property
    def is_fence_line(self) -> bool:
        """True when the last processed line was an opening or closing fence."""
        return self._fence_line

    def reset(self) -> None:
        self._in_code_block = False
        self._fence_line = False


class MermaidBlockTracker(CodeBlockTracker):
    """Tracker that only reacts to ```mermaid fences.

    Entering any other fence leaves the state untouched, so its closing
    fence is ignored as well.
    """

    def process_line(self, line: str) -> None:
        stripped = line.strip()
        if self._in_code_block:
            self._fence_line = is_closing_fence(stripped)
        else:
            self._fence_line = stripped == _MERMAID_FENCE
        if self._fence_line:
            self._in_code_block = not self._in_code_block


def split_code_blocks(content: str) -> list[tuple[bool, str]]:
    """Split content into ``(is_code, text)`` segments in document order.

    Fence lines belong to the code segment they delimit. Joining the segment
    texts with ``"\\n"`` reproduces the input exactly.
    """
    segments: list[tuple[bool, list[str]]] = []
    tracker = CodeBlockTracker()
    for line in content.split("\n"):
        was_inside = tracker.in_code_block
        tracker.process_line(line)
        is_code = was_inside or tracker.in_code_block
        if segments and segments[-1][0] == is_code:
            segments[-1][1].append(line)
        else:
            segments.append((is_code, [line]))
    return [(is_code, "\n".join(lines)) for is_code, lines in segments]


def transform_outside_code_blocks(content: str, transform: Callable[[str], str]) -> str:
    """Apply ``transform`` to every non-code segment, leaving fences intact."""
    if "```" not in content:
        return transform(content)
    parts = [
        text if is_code else transform(text)
        for is_code, text in split_code_blocks(content)
    ]
    return "\n".join(parts)
