"""Custom exceptions for corpusmd."""


class CorpusmdError(Exception):
    """Base exception for corpusmd operations."""


class ConfigError(CorpusmdError):
    """Configuration file could not be loaded or validated."""


class BuildError(CorpusmdError):
    """Error during a corpus build."""


class NoSourceFilesError(BuildError):
    """No source files matched the include/exclude patterns."""


class OptimizationError(BuildError):
    """An optimization stage failed while transforming content."""

    def __init__(self, stage: str, path: str | None, cause: Exception) -> None:
        self.stage = stage
        self.path = path
        self.cause = cause
        location = f" in {path}" if path else ""
        super().__init__(f"Optimization stage '{stage}' failed{location}: {cause}")
