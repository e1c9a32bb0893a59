"""corpusmd: combine, lint and inspect Markdown corpora for LLM consumption."""

from corpusmd.analyzer import Analyzer
from corpusmd.builder import Builder
from corpusmd.exceptions import (
    BuildError,
    ConfigError,
    CorpusmdError,
    NoSourceFilesError,
    OptimizationError,
)
from corpusmd.linter import Linter
from corpusmd.lister import Lister
from corpusmd.schemas import BuildResult, CorpusConfig, Document, Issue, Section

__all__ = [
    "Analyzer",
    "BuildError",
    "BuildResult",
    "Builder",
    "ConfigError",
    "CorpusConfig",
    "CorpusmdError",
    "Document",
    "Issue",
    "Linter",
    "Lister",
    "NoSourceFilesError",
    "OptimizationError",
    "Section",
]
