"""Build pipeline: collect, parse, sort, optimize, combine, write."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Callable

from corpusmd.dependency_graph import sort_documents
from corpusmd.exceptions import NoSourceFilesError
from corpusmd.file_collector import collect_files, relative_posix
from corpusmd.frontmatter import parse_frontmatter
from corpusmd.io_utils import mkdir_async, read_text_async, write_text_atomic_async
from corpusmd.output_formatter import (
    combine_documents,
    count_sections,
    estimate_tokens,
    generate_toc,
    render_output,
)
from corpusmd.pipeline import OptimizationPipeline, build_pipeline
from corpusmd.schemas import BuildResult, CorpusConfig, Document
from corpusmd.sections import extract_sections
from corpusmd.watcher import WatchEventSource, watch_and_rebuild

logger = logging.getLogger(__name__)

TokenEstimator = Callable[[str], int | None]


class Builder:
    """Combine a Markdown corpus into a single document.

    The optimization pipeline is assembled once, here, from the build
    configuration. A Builder owns its output path and, in watch mode, the
    single debounce timer.
    """

    def __init__(
        self,
        config: CorpusConfig | None = None,
        *,
        token_estimator: TokenEstimator = estimate_tokens,
    ) -> None:
        self.config = config or CorpusConfig()
        self.pipeline: OptimizationPipeline = build_pipeline(self.config.build)
        self._token_estimator = token_estimator

    def default_output_path(self) -> Path:
        return Path(self.config.directories.output) / self.config.build.default_output

    async def build(self, source_dir: Path | str, output_path: Path | str | None = None) -> BuildResult:
        """Build the combined document from ``source_dir``.

        Args:
            source_dir: Directory holding the Markdown sources.
            output_path: Destination file. Defaults to the configured output
                directory and file name.

        Returns:
            Statistics for the build.

        Raises:
            NoSourceFilesError: If no files match the include/exclude patterns.
            OptimizationError: If an optimization stage fails.

        Nothing is written unless every step succeeds.
        """
        start = time.perf_counter()
        base = Path(source_dir).resolve()
        output = Path(output_path) if output_path is not None else self.default_output_path()

        files = await asyncio.to_thread(self.collect_files, base)
        if not files:
            raise NoSourceFilesError(f"No files found matching patterns in {source_dir}")

        documents = await self.parse_documents(files)
        ordered = self.sort_documents(documents, base)
        final_content = self.render(ordered)

        await mkdir_async(output.parent, parents=True, exist_ok=True)
        await write_text_atomic_async(output, final_content)

        build_time = int((time.perf_counter() - start) * 1000)
        result = BuildResult(
            file_count=len(files),
            total_size=len(final_content.encode("utf-8")),
            build_time=build_time,
            output_path=str(output),
            token_count=self._token_estimator(final_content),
            files=[relative_posix(path, base) for path in files],
        )
        logger.info(
            "Built %s from %d files (%d sections, %d bytes) in %dms",
            output,
            result.file_count,
            count_sections(ordered),
            result.total_size,
            result.build_time,
        )
        return result

    def collect_files(self, source_dir: Path) -> list[Path]:
        build = self.config.build
        return collect_files(source_dir, build.include, build.exclude)

    async def parse_documents(self, files: list[Path]) -> list[Document]:
        contents = await asyncio.gather(*(read_text_async(path) for path in files))
        return [self.parse_document(path, content) for path, content in zip(files, contents)]

    def parse_document(self, path: Path, raw: str) -> Document:
        """Split frontmatter, extract sections and run the optimization stages."""
        parsed = parse_frontmatter(raw)
        if parsed.parse_error:
            logger.warning("Invalid frontmatter in %s: %s", path, parsed.parse_error)

        body = parsed.content if self.config.build.frontmatter.strip else raw
        return Document(
            path=str(path),
            frontmatter=parsed.data or {},
            content=self.pipeline.run(body, path=str(path)),
            sections=extract_sections(parsed.content),
            parse_error=parsed.parse_error,
        )

    def sort_documents(self, documents: list[Document], base_path: Path) -> list[Document]:
        return sort_documents(
            documents,
            mode=self.config.build.sort,
            patterns=[item.pattern for item in self.config.sort_order],
            base_path=base_path,
        )

    def render(self, documents: list[Document]) -> str:
        """Produce the final output text for already-sorted documents."""
        build = self.config.build
        toc = None
        if build.toc.enabled:
            toc = generate_toc(documents, title=build.toc.title, max_depth=build.toc.depth)
        combined = combine_documents(documents, build.file_separator)
        return self.pipeline.finalize(render_output(toc, combined, build.file_separator))

    async def watch(
        self,
        source_dir: Path | str,
        output_path: Path | str | None = None,
        *,
        stop_event: asyncio.Event,
        events: WatchEventSource | None = None,
        debounce_ms: int | None = None,
    ) -> None:
        """Build once, then rebuild on source changes until ``stop_event`` is set.

        See :func:`corpusmd.watcher.watch_and_rebuild`.
        """
        await watch_and_rebuild(
            self,
            Path(source_dir),
            Path(output_path) if output_path is not None else self.default_output_path(),
            stop_event=stop_event,
            events=events,
            debounce_ms=debounce_ms,
        )
