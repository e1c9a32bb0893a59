"""Document and section models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class Section(BaseModel):
    """A heading extracted from a document body."""

    level: int = Field(..., ge=1, le=6)
    title: str
    content: str = ""
    subsections: list["Section"] = Field(default_factory=list)


class Document(BaseModel):
    """A parsed source file.

    ``content`` already holds the optimized body; instances are not mutated
    once built.
    """

    path: str
    frontmatter: dict[str, Any] = Field(default_factory=dict)
    content: str
    sections: list[Section] = Field(default_factory=list)
    parse_error: str | None = None
