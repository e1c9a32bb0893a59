"""Combine sorted documents into the final output, with an optional TOC."""

from __future__ import annotations

from typing import Iterable

import tiktoken

from corpusmd.config import CORPUSMD_TOKEN_ENCODING
from corpusmd.schemas import Document
from corpusmd.sections import slugify


def combine_documents(documents: Iterable[Document], separator: str) -> str:
    """Join trimmed document bodies with ``separator``, preserving order."""
    return separator.join(doc.content.strip() for doc in documents)


def generate_toc(documents: Iterable[Document], *, title: str, max_depth: int) -> str:
    """Render a Markdown table of contents for every section up to ``max_depth``."""
    lines = [f"# {title}", ""]
    for doc in documents:
        for section in doc.sections:
            if section.level > max_depth:
                continue
            indent = "  " * (section.level - 1)
            lines.append(f"{indent}- [{section.title}](#{slugify(section.title)})")
    return "\n".join(lines)


def render_output(toc: str | None, combined: str, separator: str) -> str:
    """Prepend the TOC, when present, using the file separator."""
    if toc:
        return f"{toc}{separator}{combined}"
    return combined


def count_sections(documents: Iterable[Document]) -> int:
    return sum(len(doc.sections) for doc in documents)


def estimate_tokens(text: str) -> int | None:
    """Estimate the LLM token count of ``text``.

    Returns None when the tokenizer encoding cannot be loaded (for example
    when its data file is not cached and cannot be downloaded).
    """
    try:
        encoding = tiktoken.get_encoding(CORPUSMD_TOKEN_ENCODING)
        return len(encoding.encode(text, disallowed_special=()))
    except Exception:
        return None


def format_token_count(total_tokens: int | None) -> str | None:
    if total_tokens is None:
        return None
    if total_tokens >= 1_000_000:
        return f"{total_tokens / 1_000_000:.1f}M"
    if total_tokens >= 1_000:
        return f"{total_tokens / 1_000:.1f}k"
    return str(total_tokens)
