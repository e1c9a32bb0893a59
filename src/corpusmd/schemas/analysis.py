"""Corpus analysis models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

EdgeType = Literal["frontmatter", "wiki-link", "markdown-link"]


class DependencyEdge(BaseModel):
    """A reference from one document to another.

    ``source`` is relative to the corpus root. ``target`` is too when the
    reference resolves to a document in the corpus; otherwise it is kept as
    written.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    type: EdgeType


class ReferenceCount(BaseModel):
    file: str
    count: int


class FileMetrics(BaseModel):
    """Size figures for one document body."""

    file: str
    size: int
    lines: int
    tokens: int | None = None
    headings: int = 0


class AnalysisResult(BaseModel):
    """Structure of a corpus.

    Attributes:
        total_files: Number of documents analyzed.
        dependencies: Every reference found, in document then text order.
        orphans: Documents no other document references.
        cycles: Reference loops, each closed by repeating its first node.
        most_referenced: Up to ten most referenced targets, most first.
        file_metrics: Per-file figures, only when metrics were requested.
        total_tokens: Sum of per-file tokens, None when unavailable.
        average_tokens_per_file: ``total_tokens`` over ``total_files``.
    """

    total_files: int
    dependencies: list[DependencyEdge] = Field(default_factory=list)
    orphans: list[str] = Field(default_factory=list)
    cycles: list[list[str]] = Field(default_factory=list)
    most_referenced: list[ReferenceCount] = Field(default_factory=list)
    file_metrics: list[FileMetrics] | None = None
    total_tokens: int | None = None
    average_tokens_per_file: float | None = None
