"""File listing models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class FileInfo(BaseModel):
    """Frontmatter summary and filesystem facts for one source file."""

    path: str
    relative_path: str
    title: str | None = None
    description: str | None = None
    layer: int | float | None = None
    type: str | None = None
    category: str | None = None
    depends_on: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    size: int
    modified: datetime


class ListStats(BaseModel):
    """Counts over the listed files; keys are the frontmatter values."""

    total_files: int
    layers: dict[str, int] = Field(default_factory=dict)
    types: dict[str, int] = Field(default_factory=dict)
    categories: dict[str, int] = Field(default_factory=dict)


class ListResult(BaseModel):
    files: list[FileInfo] = Field(default_factory=list)
    stats: ListStats
