"""Shared schemas for corpusmd."""

from corpusmd.schemas.analysis import AnalysisResult, DependencyEdge, FileMetrics, ReferenceCount
from corpusmd.schemas.build import BuildResult
from corpusmd.schemas.config import (
    BuildConfig,
    ConsistentStructureConfig,
    CorpusConfig,
    DirectoriesConfig,
    FileNamingConfig,
    FrontmatterConfig,
    LintConfig,
    LintRulesConfig,
    ListConfig,
    ListFormat,
    ListSortBy,
    OptimizationConfig,
    SortOrderItem,
    TocConfig,
)
from corpusmd.schemas.document import Document, Section
from corpusmd.schemas.issues import Issue, Severity
from corpusmd.schemas.listing import FileInfo, ListResult, ListStats

__all__ = [
    "AnalysisResult",
    "BuildConfig",
    "BuildResult",
    "ConsistentStructureConfig",
    "CorpusConfig",
    "DependencyEdge",
    "DirectoriesConfig",
    "Document",
    "FileInfo",
    "FileMetrics",
    "FileNamingConfig",
    "FrontmatterConfig",
    "Issue",
    "LintConfig",
    "LintRulesConfig",
    "ListConfig",
    "ListFormat",
    "ListResult",
    "ListSortBy",
    "ListStats",
    "OptimizationConfig",
    "ReferenceCount",
    "Section",
    "Severity",
    "SortOrderItem",
    "TocConfig",
]
