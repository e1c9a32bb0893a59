"""Async file helpers backed by a thread pool."""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path


def _read_text(path: Path, encoding: str, newline: str | None) -> str:
    with open(path, encoding=encoding, newline=newline) as handle:
        return handle.read()


async def read_text_async(path: Path, encoding: str = "utf-8", newline: str | None = None) -> str:
    """Read text from a file asynchronously using a thread pool.

    Args:
        path: Path to the file to read.
        encoding: Text encoding to use.
        newline: Passed to ``open``; ``""`` keeps line endings untranslated.

    Returns:
        The file contents as a string.
    """
    return await asyncio.to_thread(_read_text, path, encoding, newline)


async def mkdir_async(path: Path, parents: bool = False, exist_ok: bool = False) -> None:
    """Create a directory asynchronously using a thread pool."""
    await asyncio.to_thread(path.mkdir, parents=parents, exist_ok=exist_ok)


def _write_atomic(path: Path, content: str, encoding: str) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


async def write_text_atomic_async(path: Path, content: str, encoding: str = "utf-8") -> None:
    """Write ``content`` to ``path`` via a temporary file and rename.

    Readers never observe a partially written file; on failure the previous
    file, if any, is left in place.
    """
    await asyncio.to_thread(_write_atomic, path, content, encoding)
