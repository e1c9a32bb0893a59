"""List corpus files with their frontmatter, in several output formats."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any

from corpusmd.dependency_graph import DEFAULT_LAYER, declared_dependencies
from corpusmd.file_collector import collect_files, relative_posix
from corpusmd.frontmatter import parse_frontmatter
from corpusmd.io_utils import read_text_async
from corpusmd.schemas import (
    CorpusConfig,
    Document,
    FileInfo,
    ListFormat,
    ListResult,
    ListSortBy,
    ListStats,
)

logger = logging.getLogger(__name__)

LAYER_NAMES = {
    0: "Foundation",
    1: "Getting Started",
    2: "Usage",
    3: "Reference",
    4: "Advanced",
}


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def _layer(value: Any) -> int | float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def layer_name(layer: int | float) -> str:
    name = LAYER_NAMES.get(layer)
    return f"Layer {layer}: {name}" if name else f"Layer {layer}"


class Lister:
    """Collect, filter and sort file summaries for a corpus."""

    def __init__(self, config: CorpusConfig | None = None) -> None:
        self.config = config or CorpusConfig()

    def collect_files(self, source_dir: Path, include: str | None = None) -> list[Path]:
        build = self.config.build
        patterns = [include] if include else build.include
        return collect_files(source_dir, patterns, build.exclude)

    async def list(
        self,
        source_dir: Path | str,
        *,
        layer: int | float | None = None,
        doc_type: str | None = None,
        category: str | None = None,
        include: str | None = None,
        sort_by: ListSortBy | None = None,
    ) -> ListResult:
        """List files under ``source_dir``.

        Args:
            source_dir: Corpus root.
            layer: Keep only files with this ``layer``.
            doc_type: Keep only files with this ``type``.
            category: Keep only files with this ``category``.
            include: Glob that replaces the configured include patterns.
            sort_by: ``"path"``, ``"layer"`` or ``"title"``; defaults to the
                configured ``list.sort_by``.

        Files that cannot be read are logged and left out.
        """
        base = Path(source_dir).resolve()
        files = await asyncio.to_thread(self.collect_files, base, include)
        infos = await asyncio.gather(
            *(self._file_info(path, base) for path in files), return_exceptions=True
        )

        listed: list[FileInfo] = []
        for path, info in zip(files, infos):
            if isinstance(info, (OSError, UnicodeDecodeError)):
                logger.warning("Could not read %s: %s", path, info)
                continue
            if isinstance(info, BaseException):
                raise info
            listed.append(info)

        if layer is not None:
            listed = [info for info in listed if info.layer == layer]
        if doc_type:
            listed = [info for info in listed if info.type == doc_type]
        if category:
            listed = [info for info in listed if info.category == category]

        ordered = sort_files(listed, sort_by or self.config.listing.sort_by)
        return ListResult(files=ordered, stats=calculate_stats(ordered))

    async def _file_info(self, path: Path, base: Path) -> FileInfo:
        raw = await read_text_async(path)
        stat = await asyncio.to_thread(path.stat)
        data = parse_frontmatter(raw).data or {}
        tags = data.get("tags")
        return FileInfo(
            path=str(path),
            relative_path=relative_posix(path, base),
            title=_text(data.get("title")),
            description=_text(data.get("description")),
            layer=_layer(data.get("layer")),
            type=_text(data.get("type")),
            category=_text(data.get("category")),
            depends_on=declared_dependencies(Document(path=str(path), frontmatter=data, content="")),
            tags=[str(tag) for tag in tags] if isinstance(tags, list) else [],
            size=stat.st_size,
            modified=datetime.fromtimestamp(stat.st_mtime),
        )


def sort_files(files: list[FileInfo], sort_by: ListSortBy) -> list[FileInfo]:
    if sort_by == "layer":
        return sorted(
            files,
            key=lambda f: (DEFAULT_LAYER if f.layer is None else f.layer, f.relative_path),
        )
    if sort_by == "title":
        return sorted(files, key=lambda f: f.title or f.relative_path)
    return sorted(files, key=lambda f: f.relative_path)


def calculate_stats(files: list[FileInfo]) -> ListStats:
    return ListStats(
        total_files=len(files),
        layers=dict(Counter(str(f.layer) for f in files if f.layer is not None)),
        types=dict(Counter(f.type for f in files if f.type)),
        categories=dict(Counter(f.category for f in files if f.category)),
    )


def _metadata_lines(info: FileInfo, *, indent: str = "", with_layer: bool = True) -> list[str]:
    layer = None if info.layer is None or not with_layer else str(info.layer)
    fields = [
        ("Title", info.title),
        ("Layer", layer),
        ("Type", info.type),
        ("Category", info.category),
        ("Description", info.description),
        ("Depends on", ", ".join(info.depends_on)),
        ("Tags", ", ".join(info.tags)),
    ]
    return [f"{indent}{label}: {value}" for label, value in fields if value]


def _layer_from_key(key: str) -> int | float:
    number = float(key)
    return int(number) if number.is_integer() else number


def format_simple(result: ListResult) -> str:
    return "\n".join(info.relative_path for info in result.files)


def format_tree(result: ListResult, root_name: str) -> str:
    """Render paths as an indented tree under ``root_name/``."""
    tree: dict[str, dict] = {}
    for info in result.files:
        node = tree
        for part in info.relative_path.split("/"):
            node = node.setdefault(part, {})

    lines = [f"{root_name}/"]

    def render(node: dict[str, dict], prefix: str) -> None:
        entries = list(node.items())
        for position, (name, child) in enumerate(entries):
            last = position == len(entries) - 1
            lines.append(f"{prefix}{'└── ' if last else '├── '}{name}")
            render(child, prefix + ("    " if last else "│   "))

    render(tree, "")
    return "\n".join(lines)


def format_detailed(result: ListResult) -> str:
    lines: list[str] = []
    for info in result.files:
        lines.append(info.relative_path)
        lines.extend(_metadata_lines(info, indent="  "))
        lines.append("")
    return "\n".join(lines)


def format_markdown(result: ListResult, *, include_stats: bool = True) -> str:
    """Render a documentation index, grouped by layer when any file has one.

    Files without a layer come last, under "Other".
    """
    lines = ["# Documentation Index", ""]

    if any(info.layer is not None for info in result.files):
        groups: dict[int | float | None, list[FileInfo]] = {}
        for info in result.files:
            groups.setdefault(info.layer, []).append(info)
        order: list[int | float | None] = sorted(layer for layer in groups if layer is not None)
        if None in groups:
            order.append(None)
        for layer in order:
            lines.extend([f"## {'Other' if layer is None else layer_name(layer)}", ""])
            for info in groups[layer]:
                lines.append(f"### {info.relative_path}")
                lines.extend(_metadata_lines(info, with_layer=False))
                lines.append("")
    else:
        for info in result.files:
            lines.append(f"## {info.relative_path}")
            if info.title:
                lines.append(f"Title: {info.title}")
            if info.description:
                lines.append(f"Description: {info.description}")
            lines.append("")

    if include_stats:
        stats = result.stats
        lines.extend(["## Statistics", "", f"Total files: {stats.total_files}"])
        if stats.layers:
            lines.extend(["", "### Files by Layer", ""])
            for key, count in sorted(stats.layers.items(), key=lambda item: float(item[0])):
                lines.append(f"- {layer_name(_layer_from_key(key))}: {count} files")
        if stats.types:
            lines.extend(["", "### Files by Type", ""])
            lines.extend(f"- {name}: {count} files" for name, count in sorted(stats.types.items()))
    return "\n".join(lines)


def format_json(result: ListResult) -> str:
    return result.model_dump_json(indent=2)


def format_list(
    result: ListResult, fmt: ListFormat, *, root_name: str = "docs", include_stats: bool = True
) -> str:
    """Render ``result`` in one of the supported list formats."""
    if fmt == "simple":
        return format_simple(result)
    if fmt == "tree":
        return format_tree(result, root_name)
    if fmt == "detailed":
        return format_detailed(result)
    if fmt == "json":
        return format_json(result)
    return format_markdown(result, include_stats=include_stats)
