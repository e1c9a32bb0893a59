"""Ordered optimization stages built once from configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Callable

from corpusmd.exceptions import OptimizationError
from corpusmd.schemas import BuildConfig
from corpusmd.transforms import (
    normalize_headings,
    normalize_whitespace,
    remove_badges,
    remove_comments,
    remove_duplicates,
    remove_internal_links,
    strip_heading_numbers,
    strip_section_meta,
)

logger = logging.getLogger(__name__)

STAGE_ORDER: tuple[str, ...] = (
    "strip-heading-numbers",
    "strip-section-meta",
    "normalize-headings",
    "remove-comments",
    "remove-badges",
    "remove-duplicates",
    "remove-internal-links",
    "normalize-whitespace",
)


@dataclass(frozen=True)
class OptimizationStage:
    """A named content transform."""

    name: str
    transform: Callable[[str], str]

    def __call__(self, content: str) -> str:
        return self.transform(content)


@dataclass
class OptimizationPipeline:
    """Enabled stages in execution order.

    ``finalize`` re-applies whitespace normalization to the fully combined
    output when that stage is enabled, in addition to its per-document run.
    """

    stages: list[OptimizationStage] = field(default_factory=list)

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self.stages]

    def run(self, content: str, *, path: str | None = None) -> str:
        for stage in self.stages:
            try:
                content = stage(content)
            except Exception as exc:
                raise OptimizationError(stage.name, path, exc) from exc
        return content

    def finalize(self, combined: str) -> str:
        if "normalize-whitespace" not in self.stage_names:
            return combined
        try:
            return normalize_whitespace(combined)
        except Exception as exc:
            raise OptimizationError("normalize-whitespace", None, exc) from exc


def build_pipeline(config: BuildConfig) -> OptimizationPipeline:
    """Create the pipeline for ``config``; disabled stages are left out."""
    opts = config.optimizations
    enabled = {
        "strip-heading-numbers": config.strip_heading_numbers,
        "strip-section-meta": config.strip_section_meta,
        "normalize-headings": opts.normalize_headings,
        "remove-comments": opts.remove_comments,
        "remove-badges": opts.remove_badges,
        "remove-duplicates": opts.remove_duplicates,
        "remove-internal-links": opts.remove_internal_links,
        "normalize-whitespace": opts.normalize_whitespace,
    }
    transforms: dict[str, Callable[[str], str]] = {
        "strip-heading-numbers": strip_heading_numbers,
        "strip-section-meta": strip_section_meta,
        "normalize-headings": partial(normalize_headings, separator=opts.heading_separator or " / "),
        "remove-comments": remove_comments,
        "remove-badges": remove_badges,
        "remove-duplicates": remove_duplicates,
        "remove-internal-links": remove_internal_links,
        "normalize-whitespace": normalize_whitespace,
    }
    stages = [
        OptimizationStage(name=name, transform=transforms[name])
        for name in STAGE_ORDER
        if enabled[name]
    ]
    logger.debug("Optimization stages: %s", ", ".join(stage.name for stage in stages) or "(none)")
    return OptimizationPipeline(stages=stages)
