"""Lint issue model."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

Severity = Literal["error", "warning", "info"]


class Issue(BaseModel):
    """A single lint finding."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    message: str
    file: str
    line: int | None = None
    rule: str
