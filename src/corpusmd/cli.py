"""Command-line entry point for corpusmd."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from pathlib import Path
from typing import Sequence, get_args

from corpusmd.analyzer import Analyzer, format_analysis, render_mermaid_graph
from corpusmd.builder import Builder
from corpusmd.config import CORPUSMD_LOG_LEVEL, load_config
from corpusmd.exceptions import CorpusmdError
from corpusmd.linter import Linter
from corpusmd.lister import Lister, format_list
from corpusmd.output_formatter import format_token_count
from corpusmd.schemas import CorpusConfig, Issue, ListFormat, ListSortBy
from corpusmd.utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="corpusmd",
        description="Combine and lint Markdown corpora for LLM consumption.",
    )
    parser.add_argument("-c", "--config", type=Path, help="Path to corpusmd.config.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("build", "Build the combined document once"),
        ("watch", "Build, then rebuild whenever sources change"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("source", nargs="?", type=Path, help="Source directory")
        sub.add_argument("-o", "--output", type=Path, help="Output file")

    lint = subparsers.add_parser("lint", help="Lint the corpus")
    lint.add_argument("source", nargs="?", type=Path, help="Source directory")
    lint.add_argument("--fix", action="store_true", help="Apply trivial fixes before linting")

    analyze = subparsers.add_parser("analyze", help="Report references, loops and orphans")
    analyze.add_argument("source", nargs="?", type=Path, help="Source directory")
    analyze.add_argument("-g", "--graph", action="store_true", help="Print a Mermaid reference graph")
    analyze.add_argument("-m", "--metrics", action="store_true", help="Include per-file size metrics")
    analyze.add_argument("--json", action="store_true", help="Print the analysis as JSON")
    analyze.add_argument("-o", "--output", type=Path, help="Write the report to a file")

    listing = subparsers.add_parser("list", help="List source files with their frontmatter")
    listing.add_argument("source", nargs="?", type=Path, help="Source directory")
    listing.add_argument("-f", "--format", choices=get_args(ListFormat), help="Output format")
    listing.add_argument("--layer", type=float, help="Only files with this layer")
    listing.add_argument("--type", dest="doc_type", help="Only files with this type")
    listing.add_argument("--category", help="Only files with this category")
    listing.add_argument("--include", help="Glob replacing the configured include patterns")
    listing.add_argument("--sort-by", choices=get_args(ListSortBy), help="Sort order")
    listing.add_argument("-o", "--output", type=Path, help="Write the listing to a file")
    return parser


def _format_issue(issue: Issue) -> str:
    location = f"{issue.file}:{issue.line}" if issue.line else issue.file
    return f"{location}: {issue.severity}: {issue.message} [{issue.rule}]"


def _emit(text: str, output: Path | None) -> None:
    if output is None:
        print(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    print(f"Wrote {output}")


async def _watch(builder: Builder, source: Path, output: Path | None) -> None:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop_event.set)
    print("Watching for changes. Press Ctrl+C to stop.", file=sys.stderr)
    await builder.watch(source, output, stop_event=stop_event)


def _run(args: argparse.Namespace, config: CorpusConfig) -> int:
    source = args.source or Path(config.directories.source)

    if args.command == "build":
        result = asyncio.run(Builder(config).build(source, args.output))
        tokens = format_token_count(result.token_count)
        summary = f"Built {result.output_path} ({result.file_count} files, {result.total_size} bytes"
        if tokens:
            summary += f", ~{tokens} tokens"
        print(summary + f", {result.build_time}ms)")
        return 0

    if args.command == "watch":
        asyncio.run(_watch(Builder(config), source, args.output))
        return 0

    if args.command == "analyze":
        analysis = asyncio.run(Analyzer(config).analyze(source, include_metrics=args.metrics))
        if args.json:
            text = analysis.model_dump_json(indent=2)
        elif args.graph:
            text = render_mermaid_graph(analysis)
        else:
            text = format_analysis(analysis)
        _emit(text, args.output)
        return 0

    if args.command == "list":
        listed = asyncio.run(
            Lister(config).list(
                source,
                layer=args.layer,
                doc_type=args.doc_type,
                category=args.category,
                include=args.include,
                sort_by=args.sort_by,
            )
        )
        text = format_list(
            listed,
            args.format or config.listing.default_format,
            root_name=Path(source).resolve().name,
            include_stats=config.listing.include_stats,
        )
        _emit(text, args.output)
        return 0

    linter = Linter(config)
    if args.fix:
        changed = asyncio.run(linter.fix(source))
        for path in changed:
            print(f"fixed {path}")
    issues = asyncio.run(linter.lint(source))
    for issue in issues:
        print(_format_issue(issue))
    errors = sum(1 for issue in issues if issue.severity == "error")
    warnings = sum(1 for issue in issues if issue.severity == "warning")
    print(f"{len(issues)} issues ({errors} errors, {warnings} warnings)")
    return 1 if errors else 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else CORPUSMD_LOG_LEVEL)
    try:
        config = load_config(args.config)
        return _run(args, config)
    except CorpusmdError as exc:
        logger.error("%s", exc)
        return 1
