"""Reference analysis: who links to whom, loops, orphans and size metrics."""

from __future__ import annotations

import asyncio
import logging
import posixpath
import re
from collections import Counter
from pathlib import Path
from typing import Iterable, Sequence

from corpusmd.builder import TokenEstimator
from corpusmd.code_blocks import split_code_blocks
from corpusmd.dependency_graph import declared_dependencies
from corpusmd.file_collector import collect_files, relative_posix
from corpusmd.frontmatter import parse_frontmatter
from corpusmd.io_utils import read_text_async
from corpusmd.output_formatter import estimate_tokens, format_token_count
from corpusmd.schemas import (
    AnalysisResult,
    CorpusConfig,
    DependencyEdge,
    Document,
    FileMetrics,
    ReferenceCount,
)
from corpusmd.sections import extract_sections

logger = logging.getLogger(__name__)

MOST_REFERENCED_LIMIT = 10

WIKI_LINK_RE = re.compile(r"\[\[([^\]]+)\]\]")
MARKDOWN_LINK_RE = re.compile(r"(?<!!)\[[^\]]+\]\(([^)\s#]+\.md)(?:#[^)\s]*)?\)")


class _Resolver:
    """Map a reference to a corpus-relative path when it names a document."""

    def __init__(self, paths: Iterable[str]) -> None:
        self.known = set(paths)
        self.by_name: dict[str, str] = {}
        for path in sorted(self.known):
            self.by_name.setdefault(posixpath.basename(path), path)

    def markdown_link(self, ref: str, source: str) -> str:
        if ref.startswith("/"):
            candidate = posixpath.normpath(ref.lstrip("/"))
        else:
            candidate = posixpath.normpath(posixpath.join(posixpath.dirname(source), ref))
        return candidate if candidate in self.known else ref

    def wiki_link(self, ref: str) -> str:
        # [[target|label]] and [[target#heading]]
        name = ref.split("|", 1)[0].split("#", 1)[0].strip()
        file_name = name if name.endswith(".md") else f"{name}.md"
        if file_name in self.known:
            return file_name
        return self.by_name.get(posixpath.basename(file_name), name)


def extract_dependencies(documents: Sequence[Document], base_path: Path) -> list[DependencyEdge]:
    """Collect references from frontmatter, wiki-links and Markdown links.

    Links inside fenced code blocks are not references. External URLs are
    skipped.
    """
    relative = [relative_posix(Path(doc.path), base_path) for doc in documents]
    resolver = _Resolver(relative)
    edges: list[DependencyEdge] = []

    for source, doc in zip(relative, documents):
        for ref in declared_dependencies(doc):
            edges.append(DependencyEdge(source=source, target=ref, type="frontmatter"))

        prose = [text for is_code, text in split_code_blocks(doc.content) if not is_code]
        for text in prose:
            for match in WIKI_LINK_RE.finditer(text):
                target = resolver.wiki_link(match.group(1))
                if target:
                    edges.append(DependencyEdge(source=source, target=target, type="wiki-link"))
        for text in prose:
            for match in MARKDOWN_LINK_RE.finditer(text):
                ref = match.group(1)
                if "://" in ref:
                    continue
                target = resolver.markdown_link(ref, source)
                edges.append(DependencyEdge(source=source, target=target, type="markdown-link"))
    return edges


def find_cycles(edges: Iterable[DependencyEdge]) -> list[list[str]]:
    """Return reference loops found by depth-first search.

    Each loop lists its nodes in traversal order and repeats the first node at
    the end, so a self-reference is ``[a, a]``.
    """
    graph: dict[str, list[str]] = {}
    for edge in edges:
        neighbors = graph.setdefault(edge.source, [])
        if edge.target not in neighbors:
            neighbors.append(edge.target)

    cycles: list[list[str]] = []
    visited: set[str] = set()
    for start in graph:
        if start in visited:
            continue
        visited.add(start)
        path = [start]
        on_path = {start}
        stack = [iter(graph[start])]
        while stack:
            neighbor = next(stack[-1], None)
            if neighbor is None:
                stack.pop()
                on_path.discard(path.pop())
            elif neighbor in on_path:
                cycles.append(path[path.index(neighbor):] + [neighbor])
            elif neighbor not in visited:
                visited.add(neighbor)
                path.append(neighbor)
                on_path.add(neighbor)
                stack.append(iter(graph.get(neighbor, ())))
    return cycles


def find_orphans(paths: Iterable[str], edges: Iterable[DependencyEdge]) -> list[str]:
    """Documents that nothing else references, by path or by bare file name."""
    referenced = {edge.target for edge in edges if edge.source != edge.target}
    return [
        path
        for path in paths
        if path not in referenced and posixpath.basename(path) not in referenced
    ]


def most_referenced(
    edges: Iterable[DependencyEdge], limit: int = MOST_REFERENCED_LIMIT
) -> list[ReferenceCount]:
    counts = Counter(edge.target for edge in edges)
    return [ReferenceCount(file=file, count=count) for file, count in counts.most_common(limit)]


class Analyzer:
    """Inspect the reference structure of a corpus without building it."""

    def __init__(
        self,
        config: CorpusConfig | None = None,
        *,
        token_estimator: TokenEstimator = estimate_tokens,
    ) -> None:
        self.config = config or CorpusConfig()
        self._token_estimator = token_estimator

    def collect_files(self, source_dir: Path) -> list[Path]:
        build = self.config.build
        return collect_files(source_dir, build.include, build.exclude)

    async def analyze(self, source_dir: Path | str, *, include_metrics: bool = False) -> AnalysisResult:
        """Analyze every collected file under ``source_dir``.

        Args:
            source_dir: Corpus root.
            include_metrics: Also compute per-file size, line, heading and
                token figures.

        Returns:
            The analysis. An empty corpus yields an empty result.
        """
        base = Path(source_dir).resolve()
        files = await asyncio.to_thread(self.collect_files, base)
        contents = await asyncio.gather(*(read_text_async(path) for path in files))

        documents = []
        for path, raw in zip(files, contents):
            parsed = parse_frontmatter(raw)
            if parsed.parse_error:
                logger.warning("Invalid frontmatter in %s: %s", path, parsed.parse_error)
            documents.append(
                Document(path=str(path), frontmatter=parsed.data or {}, content=parsed.content)
            )

        relative = [relative_posix(path, base) for path in files]
        edges = extract_dependencies(documents, base)
        result = AnalysisResult(
            total_files=len(documents),
            dependencies=edges,
            orphans=find_orphans(relative, edges),
            cycles=find_cycles(edges),
            most_referenced=most_referenced(edges),
        )

        if include_metrics:
            sizes = await asyncio.gather(*(asyncio.to_thread(path.stat) for path in files))
            metrics = [
                FileMetrics(
                    file=name,
                    size=stat.st_size,
                    lines=len(doc.content.splitlines()),
                    tokens=self._token_estimator(doc.content),
                    headings=len(extract_sections(doc.content)),
                )
                for name, doc, stat in zip(relative, documents, sizes)
            ]
            result.file_metrics = metrics
            if metrics and all(item.tokens is not None for item in metrics):
                result.total_tokens = sum(item.tokens for item in metrics)
                result.average_tokens_per_file = result.total_tokens / len(metrics)

        logger.info(
            "Analyzed %d files: %d references, %d cycles, %d orphans",
            result.total_files,
            len(result.dependencies),
            len(result.cycles),
            len(result.orphans),
        )
        return result


def _graph_label(text: str) -> str:
    return text.replace('"', "#quot;")


def render_mermaid_graph(result: AnalysisResult) -> str:
    """Render the references as a Mermaid flowchart.

    Wiki-links are drawn dotted; other references are solid arrows.
    """
    lines = ["```mermaid", "graph TD"]
    node_ids: dict[str, str] = {}
    for edge in result.dependencies:
        for name in (edge.source, edge.target):
            node_ids.setdefault(name, f"N{len(node_ids)}")
        arrow = "-.->" if edge.type == "wiki-link" else "-->"
        lines.append(
            f'  {node_ids[edge.source]}["{_graph_label(edge.source)}"] {arrow} '
            f'{node_ids[edge.target]}["{_graph_label(edge.target)}"]'
        )
    lines.append("```")
    return "\n".join(lines)


def format_analysis(result: AnalysisResult) -> str:
    """Plain-text report for the terminal."""
    lines = [
        f"Files: {result.total_files}",
        f"References: {len(result.dependencies)}",
        f"Circular references: {len(result.cycles)}",
    ]
    lines.extend(f"  {' -> '.join(cycle)}" for cycle in result.cycles)
    lines.append(f"Orphans: {len(result.orphans)}")
    lines.extend(f"  {path}" for path in result.orphans)
    if result.most_referenced:
        lines.append("Most referenced:")
        lines.extend(f"  {item.file} ({item.count})" for item in result.most_referenced)

    if result.file_metrics is not None:
        lines.append("Files by size:")
        for item in sorted(result.file_metrics, key=lambda m: m.size, reverse=True):
            tokens = format_token_count(item.tokens)
            detail = f"{item.size} bytes, {item.lines} lines, {item.headings} headings"
            if tokens:
                detail += f", ~{tokens} tokens"
            lines.append(f"  {item.file}: {detail}")
        total = format_token_count(result.total_tokens)
        if total and result.average_tokens_per_file is not None:
            lines.append(
                f"Total tokens: ~{total} (average {result.average_tokens_per_file:.0f} per file)"
            )
    return "\n".join(lines)
