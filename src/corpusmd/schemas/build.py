"""Build output model."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BuildResult(BaseModel):
    """Statistics for a single build run.

    Attributes:
        file_count: Number of source files combined.
        total_size: Size of the written output in UTF-8 bytes.
        build_time: Wall-clock build duration in milliseconds.
        output_path: Where the combined document was written.
        token_count: Estimated token count, or None when no estimator is available.
        files: Source paths relative to the source root, in collection order.
    """

    file_count: int
    total_size: int
    build_time: int
    output_path: str
    token_count: int | None = None
    files: list[str] = Field(default_factory=list)
