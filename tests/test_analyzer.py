"""Tests for reference analysis."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from corpusmd.analyzer import (
    Analyzer,
    extract_dependencies,
    find_cycles,
    find_orphans,
    format_analysis,
    most_referenced,
    render_mermaid_graph,
)
from corpusmd.schemas import AnalysisResult, DependencyEdge, Document

BASE = Path("/corpus")


def _doc(name: str, content: str = "", **frontmatter: Any) -> Document:
    return Document(path=str(BASE / name), frontmatter=frontmatter, content=content)


def _edge(source: str, target: str, kind: str = "frontmatter") -> DependencyEdge:
    return DependencyEdge(source=source, target=target, type=kind)


class TestExtractDependencies:
    """Tests for extract_dependencies."""

    def test_all_reference_kinds(self) -> None:
        docs = [
            _doc(
                "guide/setup.md",
                "See [[overview]] and [install](install.md).\n",
                depends_on=["intro/overview.md"],
            ),
            _doc("guide/install.md", "# Install\n"),
            _doc("intro/overview.md", "# Overview\n"),
        ]

        edges = extract_dependencies(docs, BASE)

        assert [(edge.source, edge.target, edge.type) for edge in edges] == [
            ("guide/setup.md", "intro/overview.md", "frontmatter"),
            ("guide/setup.md", "intro/overview.md", "wiki-link"),
            ("guide/setup.md", "guide/install.md", "markdown-link"),
        ]

    def test_skips_code_external_links_and_images(self) -> None:
        content = (
            "```\n[[hidden]]\n[x](hidden.md)\n```\n"
            "[site](https://example.com/page.md)\n"
            "![diagram](pic.md)\n"
        )
        assert extract_dependencies([_doc("a.md", content)], BASE) == []

    def test_unresolved_targets_are_kept_as_written(self) -> None:
        content = "[[Missing Page|label]] and [up](../outside.md) and [b](b.md#part)\n"
        docs = [_doc("a.md", content), _doc("b.md")]

        edges = extract_dependencies(docs, BASE)

        assert [edge.target for edge in edges] == ["Missing Page", "../outside.md", "b.md"]


class TestGraphQueries:
    """Tests for find_cycles, find_orphans and most_referenced."""

    def test_cycles_and_self_reference(self) -> None:
        edges = [_edge("a", "b"), _edge("b", "c"), _edge("c", "a"), _edge("d", "d")]
        assert find_cycles(edges) == [["a", "b", "c", "a"], ["d", "d"]]

    def test_diamond_has_no_cycle(self) -> None:
        edges = [_edge("a", "b"), _edge("a", "c"), _edge("b", "c")]
        assert find_cycles(edges) == []

    def test_orphans(self) -> None:
        """Self-references do not count; a bare file name does."""
        edges = [_edge("a.md", "b.md"), _edge("c.md", "c.md")]
        paths = ["a.md", "guide/b.md", "c.md"]
        assert find_orphans(paths, edges) == ["a.md", "c.md"]

    def test_most_referenced_limit_and_order(self) -> None:
        edges = [_edge("x", "b"), _edge("y", "a"), _edge("z", "b"), _edge("x", "c")]
        assert [(item.file, item.count) for item in most_referenced(edges, limit=2)] == [
            ("b", 2),
            ("a", 1),
        ]


class TestRendering:
    """Tests for render_mermaid_graph and format_analysis."""

    def test_mermaid_graph(self) -> None:
        result = AnalysisResult(
            total_files=3,
            dependencies=[_edge("a.md", "b.md"), _edge("a.md", 'c"d.md', "wiki-link")],
        )

        assert render_mermaid_graph(result) == "\n".join(
            [
                "```mermaid",
                "graph TD",
                '  N0["a.md"] --> N1["b.md"]',
                '  N0["a.md"] -.-> N2["c#quot;d.md"]',
                "```",
            ]
        )

    def test_report_lists_cycles_and_orphans(self) -> None:
        result = AnalysisResult(
            total_files=2,
            dependencies=[_edge("a.md", "b.md"), _edge("b.md", "a.md")],
            cycles=[["a.md", "b.md", "a.md"]],
            orphans=["c.md"],
        )

        report = format_analysis(result)

        assert "Circular references: 1\n  a.md -> b.md -> a.md" in report
        assert "Orphans: 1\n  c.md" in report


class TestAnalyzer:
    """Tests for Analyzer.analyze."""

    @pytest.mark.asyncio
    async def test_analyze_corpus(self, write_tree, fake_token_estimator) -> None:
        source = write_tree(
            {
                "index.md": "# Home\n\nSee [setup](guide/setup.md).\n",
                "guide/setup.md": "---\ndepends_on: [guide/install.md]\n---\n# Setup\n",
                "guide/install.md": "# Install\n\n[[setup]]\n",
            }
        )

        result = await Analyzer(token_estimator=fake_token_estimator).analyze(source)

        assert result.total_files == 3
        assert result.cycles == [["guide/install.md", "guide/setup.md", "guide/install.md"]]
        assert result.orphans == ["index.md"]
        assert [(item.file, item.count) for item in result.most_referenced] == [
            ("guide/setup.md", 2),
            ("guide/install.md", 1),
        ]
        assert result.file_metrics is None

    @pytest.mark.asyncio
    async def test_metrics(self, write_tree, fake_token_estimator) -> None:
        source = write_tree(
            {
                "a.md": "---\ntitle: A\n---\n# Alpha\n\nOne two\n",
                "b.md": "# Beta\n",
            }
        )

        result = await Analyzer(token_estimator=fake_token_estimator).analyze(
            source, include_metrics=True
        )

        metrics = {item.file: item for item in result.file_metrics}
        assert metrics["a.md"].lines == 3
        assert metrics["a.md"].headings == 1
        assert metrics["a.md"].tokens == 4
        assert metrics["a.md"].size == len("---\ntitle: A\n---\n# Alpha\n\nOne two\n")
        assert result.total_tokens == 6
        assert result.average_tokens_per_file == 3.0

    @pytest.mark.asyncio
    async def test_metrics_without_tokenizer(self, write_tree) -> None:
        source = write_tree({"a.md": "# A\n"})

        result = await Analyzer(token_estimator=lambda text: None).analyze(
            source, include_metrics=True
        )

        assert result.file_metrics[0].tokens is None
        assert result.total_tokens is None
        assert result.average_tokens_per_file is None

    @pytest.mark.asyncio
    async def test_empty_corpus(self, write_tree) -> None:
        source = write_tree({"notes.txt": "x"})

        result = await Analyzer().analyze(source, include_metrics=True)

        assert result.total_files == 0
        assert result.dependencies == []
        assert result.file_metrics == []
        assert result.total_tokens is None
