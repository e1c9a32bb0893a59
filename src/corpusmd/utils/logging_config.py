"""Logging setup shared by the CLI and long-running watch mode."""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_DATE_FORMAT = "%H:%M:%S"


def configure_logging(level: str | int = "INFO") -> None:
    """Route ``corpusmd`` loggers to stderr at ``level``.

    Safe to call more than once; the handler is installed only once.
    """
    root = logging.getLogger("corpusmd")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)
    if not any(getattr(handler, "_corpusmd", False) for handler in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
        handler._corpusmd = True  # type: ignore[attr-defined]
        root.addHandler(handler)
