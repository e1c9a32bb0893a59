"""Collect Markdown sources using include/exclude glob patterns."""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable


@lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a POSIX glob into a regex where ``**`` spans directories."""
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
            continue
        if pattern.startswith("**", i):
            parts.append(".*")
            i += 2
            continue
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
        i += 1
    return re.compile("".join(parts) + r"\Z")


def matches_any(relative_path: str, patterns: Iterable[str]) -> bool:
    """Return True if a source-relative POSIX path matches one of ``patterns``."""
    return any(_compile_glob(pattern).match(relative_path) for pattern in patterns)


def is_included(relative_path: str, include: Iterable[str], exclude: Iterable[str]) -> bool:
    return matches_any(relative_path, include) and not matches_any(relative_path, exclude)


def relative_posix(path: Path, base: Path) -> str:
    """Return ``path`` relative to ``base`` in POSIX form, or as-is if outside."""
    try:
        return path.relative_to(base).as_posix()
    except ValueError:
        return path.as_posix()


def collect_files(source_dir: Path, include: Iterable[str], exclude: Iterable[str]) -> list[Path]:
    """Collect files under ``source_dir`` matching include minus exclude.

    Args:
        source_dir: Root directory to search.
        include: Glob patterns relative to ``source_dir``.
        exclude: Glob patterns relative to ``source_dir`` to drop.

    Returns:
        Absolute, de-duplicated paths sorted lexicographically so callers see
        the same order regardless of filesystem iteration order.
    """
    root = source_dir.resolve()
    exclude = list(exclude)
    found: set[Path] = set()
    for pattern in include:
        for match in root.glob(pattern):
            if not match.is_file():
                continue
            if matches_any(relative_posix(match, root), exclude):
                continue
            found.add(match)
    return sorted(found, key=lambda path: path.as_posix())
