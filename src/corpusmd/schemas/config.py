"""Configuration models for builds and lint runs."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class DirectoriesConfig(BaseModel):
    """Default source and output directories."""

    source: str = "docs/"
    output: str = "dist/"


class FrontmatterConfig(BaseModel):
    strip: bool = True


class TocConfig(BaseModel):
    enabled: bool = True
    depth: int = Field(3, ge=1, le=6)
    title: str = "Table of Contents"


class OptimizationConfig(BaseModel):
    """Toggles for the optional token optimization stages."""

    normalize_headings: bool = False
    heading_separator: str = " / "
    remove_comments: bool = False
    remove_badges: bool = False
    remove_duplicates: bool = False
    remove_internal_links: bool = False
    normalize_whitespace: bool = False


class BuildConfig(BaseModel):
    """Options for combining the corpus into one document."""

    default_output: str = "combined.md"
    include: list[str] = Field(default_factory=lambda: ["**/*.md"])
    exclude: list[str] = Field(default_factory=list)
    frontmatter: FrontmatterConfig = Field(default_factory=FrontmatterConfig)
    toc: TocConfig = Field(default_factory=TocConfig)
    file_separator: str = "\n\n---\n\n"
    sort: Literal["path", "custom"] = "path"
    strip_section_meta: bool = True
    strip_heading_numbers: bool = True
    optimizations: OptimizationConfig = Field(default_factory=OptimizationConfig)


class SortOrderItem(BaseModel):
    pattern: str


class FileNamingConfig(BaseModel):
    pattern: str
    message: str | None = None


class ConsistentStructureConfig(BaseModel):
    """Directory-level consistency checks."""

    enabled: bool = False
    directory_threshold: int = Field(4, ge=0)
    overview_naming: str = "overview.md"


class LintRulesConfig(BaseModel):
    consistent_structure: ConsistentStructureConfig = Field(default_factory=ConsistentStructureConfig)


class LintConfig(BaseModel):
    """Lint settings. Rules missing from ``builtin_rules`` are enabled."""

    builtin_rules: dict[str, bool] = Field(default_factory=dict)
    file_naming: FileNamingConfig | None = None
    rules: LintRulesConfig = Field(default_factory=LintRulesConfig)

    def is_enabled(self, rule: str) -> bool:
        return self.builtin_rules.get(rule, True) is not False


ListFormat = Literal["simple", "tree", "detailed", "markdown", "json"]
ListSortBy = Literal["path", "layer", "title"]


class ListConfig(BaseModel):
    """Defaults for ``corpusmd list``."""

    default_format: ListFormat = "markdown"
    include_stats: bool = True
    sort_by: ListSortBy = "path"


class CorpusConfig(BaseModel):
    """Root configuration, as read from ``corpusmd.config.yaml``.

    The ``list`` section is exposed as ``listing``.
    """

    model_config = ConfigDict(populate_by_name=True)

    directories: DirectoriesConfig = Field(default_factory=DirectoriesConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    sort_order: list[SortOrderItem] = Field(default_factory=list)
    lint: LintConfig = Field(default_factory=LintConfig)
    listing: ListConfig = Field(default_factory=ListConfig, alias="list")
