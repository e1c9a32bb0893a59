"""Local configuration for corpusmd."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from corpusmd.exceptions import ConfigError
from corpusmd.schemas.config import CorpusConfig

DEFAULT_CONFIG_FILENAME = "corpusmd.config.yaml"
DEFAULT_WATCH_DEBOUNCE_MS = 300
DEFAULT_TOKEN_ENCODING = "o200k_base"
DEFAULT_LOG_LEVEL = "INFO"

CORPUSMD_WATCH_DEBOUNCE_MS = int(os.getenv("CORPUSMD_WATCH_DEBOUNCE_MS", str(DEFAULT_WATCH_DEBOUNCE_MS)))
CORPUSMD_TOKEN_ENCODING = os.getenv("CORPUSMD_TOKEN_ENCODING", DEFAULT_TOKEN_ENCODING)
CORPUSMD_LOG_LEVEL = os.getenv("CORPUSMD_LOG_LEVEL", DEFAULT_LOG_LEVEL)


def load_config(path: Path | None = None) -> CorpusConfig:
    """Load a YAML configuration file into a validated ``CorpusConfig``.

    Args:
        path: Explicit config path. When None, ``DEFAULT_CONFIG_FILENAME`` in the
            current directory is used if it exists, otherwise defaults apply.

    Returns:
        The validated configuration.

    Raises:
        ConfigError: If an explicit path is missing, or the file is not valid
            YAML or does not match the schema.
    """
    if path is None:
        candidate = Path(DEFAULT_CONFIG_FILENAME)
        if not candidate.is_file():
            return CorpusConfig()
        path = candidate
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config root in {path} must be a mapping")

    try:
        return CorpusConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc
