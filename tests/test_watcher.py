"""Tests for watch mode."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import AsyncIterator, Iterable
from unittest.mock import AsyncMock, MagicMock

import pytest

from corpusmd.builder import Builder
from corpusmd.exceptions import BuildError, NoSourceFilesError
from corpusmd.schemas import BuildResult, CorpusConfig
from corpusmd.watcher import RebuildDebouncer, WatchEvent, watch_and_rebuild

RESULT = BuildResult(file_count=1, total_size=10, build_time=1, output_path="out.md")


def _builder(side_effect: object = None) -> MagicMock:
    builder = MagicMock()
    builder.config = CorpusConfig()
    builder.build = AsyncMock(return_value=RESULT, side_effect=side_effect)
    return builder


async def _events(
    batches: Iterable[list[WatchEvent]], stop_event: asyncio.Event, gap: float = 0.0
) -> AsyncIterator[list[WatchEvent]]:
    for batch in batches:
        yield batch
        if gap:
            await asyncio.sleep(gap)
    await stop_event.wait()


class _IdleSource:
    """Event source that never yields and records closing."""

    def __init__(self) -> None:
        self.closed = False

    def __aiter__(self) -> _IdleSource:
        return self

    async def __anext__(self) -> list[WatchEvent]:
        await asyncio.Event().wait()
        raise StopAsyncIteration

    async def aclose(self) -> None:
        self.closed = True


class TestRebuildDebouncer:
    """Tests for RebuildDebouncer."""

    @pytest.mark.asyncio
    async def test_coalesces_triggers(self) -> None:
        """A burst of triggers runs the callback once."""
        callback = AsyncMock()
        debouncer = RebuildDebouncer(callback, delay=0.02)

        for _ in range(5):
            debouncer.trigger()
        assert debouncer.pending

        await asyncio.sleep(0.15)
        await debouncer.drain()

        callback.assert_awaited_once()
        assert not debouncer.pending

    @pytest.mark.asyncio
    async def test_cancel_prevents_callback(self) -> None:
        callback = AsyncMock()
        debouncer = RebuildDebouncer(callback, delay=0.02)

        debouncer.trigger()
        debouncer.cancel()
        await asyncio.sleep(0.1)

        callback.assert_not_awaited()


class TestWatchAndRebuild:
    """Tests for watch_and_rebuild."""

    @pytest.mark.asyncio
    async def test_burst_triggers_single_rebuild(self, tmp_path: Path) -> None:
        builder = _builder()
        stop = asyncio.Event()
        batches = [
            [WatchEvent("change", str(tmp_path / "a.md"))],
            [WatchEvent("add", str(tmp_path / "guide" / "b.md"))],
            [WatchEvent("unlink", str(tmp_path / "a.md"))],
        ]

        task = asyncio.create_task(
            watch_and_rebuild(
                builder, tmp_path, tmp_path / "out.md",
                stop_event=stop, events=_events(batches, stop), debounce_ms=20,
            )
        )
        await asyncio.sleep(0.3)
        stop.set()
        await asyncio.wait_for(task, timeout=2)

        assert builder.build.await_count == 2
        builder.build.assert_awaited_with(tmp_path, tmp_path / "out.md")

    @pytest.mark.asyncio
    async def test_ignores_files_outside_patterns(self, tmp_path: Path) -> None:
        builder = _builder()
        builder.config.build.exclude = ["drafts/**"]
        stop = asyncio.Event()
        batches = [
            [WatchEvent("change", str(tmp_path / "notes.txt"))],
            [WatchEvent("add", str(tmp_path / "drafts" / "wip.md"))],
        ]

        task = asyncio.create_task(
            watch_and_rebuild(
                builder, tmp_path, tmp_path / "out.md",
                stop_event=stop, events=_events(batches, stop), debounce_ms=10,
            )
        )
        await asyncio.sleep(0.2)
        stop.set()
        await asyncio.wait_for(task, timeout=2)

        assert builder.build.await_count == 1

    @pytest.mark.asyncio
    async def test_failed_rebuild_keeps_watching(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """An error in one rebuild is logged and later changes still rebuild."""
        builder = _builder(side_effect=[NoSourceFilesError("empty"), BuildError("boom"), RESULT])
        stop = asyncio.Event()
        batches = [
            [WatchEvent("change", str(tmp_path / "a.md"))],
            [WatchEvent("change", str(tmp_path / "a.md"))],
        ]

        with caplog.at_level(logging.INFO, logger="corpusmd"):
            task = asyncio.create_task(
                watch_and_rebuild(
                    builder, tmp_path, tmp_path / "out.md",
                    stop_event=stop, events=_events(batches, stop, gap=0.2), debounce_ms=10,
                )
            )
            await asyncio.sleep(0.6)
            stop.set()
            await asyncio.wait_for(task, timeout=2)

        assert builder.build.await_count == 3
        assert "Initial build failed: empty" in caplog.text
        assert "Rebuild failed: boom" in caplog.text
        assert "Rebuild completed" in caplog.text

    @pytest.mark.asyncio
    async def test_rebuilds_never_overlap(self, tmp_path: Path) -> None:
        """A burst that settles during a slow rebuild waits for it to finish."""
        builder = _builder()
        running = 0
        peak = 0
        finished: list[int] = []

        async def build(source_dir: Path, output_path: Path) -> BuildResult:
            nonlocal running, peak
            number = len(finished) + running + 1
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.3 if number == 2 else 0.01)
            running -= 1
            finished.append(number)
            return RESULT

        builder.build = build
        stop = asyncio.Event()
        batches = [
            [WatchEvent("change", str(tmp_path / "a.md"))],
            [WatchEvent("change", str(tmp_path / "b.md"))],
        ]

        task = asyncio.create_task(
            watch_and_rebuild(
                builder, tmp_path, tmp_path / "out.md",
                stop_event=stop, events=_events(batches, stop, gap=0.1), debounce_ms=20,
            )
        )
        await asyncio.sleep(0.7)
        stop.set()
        await asyncio.wait_for(task, timeout=2)

        assert peak == 1
        assert finished == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_rebuild_and_closes_source(self, tmp_path: Path) -> None:
        builder = _builder()
        stop = asyncio.Event()
        source = _IdleSource()

        task = asyncio.create_task(
            watch_and_rebuild(
                builder, tmp_path, tmp_path / "out.md",
                stop_event=stop, events=source, debounce_ms=10,
            )
        )
        await asyncio.sleep(0.05)
        stop.set()
        await asyncio.wait_for(task, timeout=2)

        assert source.closed
        assert builder.build.await_count == 1

    @pytest.mark.asyncio
    async def test_stop_during_debounce_skips_rebuild(self, tmp_path: Path) -> None:
        builder = _builder()
        stop = asyncio.Event()
        batches = [[WatchEvent("change", str(tmp_path / "a.md"))]]

        task = asyncio.create_task(
            watch_and_rebuild(
                builder, tmp_path, tmp_path / "out.md",
                stop_event=stop, events=_events(batches, stop), debounce_ms=1000,
            )
        )
        await asyncio.sleep(0.1)
        stop.set()
        await asyncio.wait_for(task, timeout=2)

        assert builder.build.await_count == 1


class TestBuilderWatch:
    """Tests for Builder.watch with a real build."""

    @pytest.mark.asyncio
    async def test_rebuilds_output_after_edit(self, write_tree, tmp_path: Path, fake_token_estimator) -> None:
        source = write_tree({"a.md": "# One\n"})
        output = tmp_path / "combined.md"
        stop = asyncio.Event()
        builder = Builder(token_estimator=fake_token_estimator)

        async def edits() -> AsyncIterator[list[WatchEvent]]:
            assert "# One" in output.read_text(encoding="utf-8")
            (source / "a.md").write_text("# Two\n", encoding="utf-8")
            yield [WatchEvent("change", str(source / "a.md"))]
            await stop.wait()

        task = asyncio.create_task(
            builder.watch(source, output, stop_event=stop, events=edits(), debounce_ms=10)
        )
        await asyncio.sleep(0.3)
        stop.set()
        await asyncio.wait_for(task, timeout=2)

        assert "# Two" in output.read_text(encoding="utf-8")
