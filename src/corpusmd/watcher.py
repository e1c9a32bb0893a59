"""Watch mode: rebuild the corpus when source files change."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, AsyncIterator, Awaitable, Callable, Iterable, Literal

from watchfiles import Change, awatch

from corpusmd.config import CORPUSMD_WATCH_DEBOUNCE_MS
from corpusmd.exceptions import CorpusmdError
from corpusmd.file_collector import is_included, relative_posix
from corpusmd.output_formatter import format_token_count

if TYPE_CHECKING:
    from corpusmd.builder import Builder

logger = logging.getLogger(__name__)

EventKind = Literal["add", "change", "unlink"]

_CHANGE_KINDS: dict[Change, EventKind] = {
    Change.added: "add",
    Change.modified: "change",
    Change.deleted: "unlink",
}


@dataclass(frozen=True)
class WatchEvent:
    kind: EventKind
    path: str


WatchEventSource = AsyncIterator[Iterable[WatchEvent]]


async def watchfiles_events(source_dir: Path, stop_event: asyncio.Event) -> WatchEventSource:
    """Yield batches of filesystem events under ``source_dir``.

    Files present when watching starts produce no events.
    """
    async for changes in awatch(source_dir, stop_event=stop_event, recursive=True):
        yield [WatchEvent(_CHANGE_KINDS[change], path) for change, path in changes]


class RebuildDebouncer:
    """Coalesce bursts of events into a single callback invocation.

    Each ``trigger`` cancels the pending timer and starts a new one, so the
    callback runs once ``delay`` seconds after the last event. A callback that
    is already running is not cancelled.
    """

    def __init__(self, callback: Callable[[], Awaitable[None]], delay: float) -> None:
        self._callback = callback
        self._delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        task = asyncio.ensure_future(self._callback())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for callbacks that already started."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


async def _run_build(builder: Builder, source_dir: Path, output_path: Path, *, label: str) -> None:
    try:
        result = await builder.build(source_dir, output_path)
    except CorpusmdError as exc:
        logger.error("%s failed: %s", label, exc)
        return
    except Exception:
        logger.exception("%s failed unexpectedly", label)
        return
    logger.info(
        "%s completed (%d files, %s tokens)",
        label,
        result.file_count,
        format_token_count(result.token_count) or "unknown",
        extra={"output_path": result.output_path, "build_time_ms": result.build_time},
    )


async def watch_and_rebuild(
    builder: Builder,
    source_dir: Path,
    output_path: Path,
    *,
    stop_event: asyncio.Event,
    events: WatchEventSource | None = None,
    debounce_ms: int | None = None,
) -> None:
    """Run an initial build, then rebuild after each debounced burst of changes.

    Rebuilds never overlap: a burst that settles while a rebuild is running
    starts its own rebuild once the running one finishes.

    Args:
        builder: Builder used for every build.
        source_dir: Directory to watch.
        output_path: Output file for every build.
        stop_event: Set to stop watching; the function then returns after
            closing the event source and waiting for a running rebuild.
        events: Event source; defaults to a ``watchfiles`` watcher.
        debounce_ms: Quiet period before rebuilding.
    """
    base = source_dir.resolve()
    include = builder.config.build.include
    exclude = builder.config.build.exclude
    delay = (CORPUSMD_WATCH_DEBOUNCE_MS if debounce_ms is None else debounce_ms) / 1000

    logger.info("Watching for changes", extra={"source": str(source_dir), "output": str(output_path)})
    await _run_build(builder, source_dir, output_path, label="Initial build")

    build_lock = asyncio.Lock()

    async def rebuild() -> None:
        async with build_lock:
            await _run_build(builder, source_dir, output_path, label="Rebuild")

    debouncer = RebuildDebouncer(rebuild, delay)
    source = events if events is not None else watchfiles_events(source_dir, stop_event)

    async def consume() -> None:
        async for batch in source:
            for event in batch:
                relative = relative_posix(Path(event.path).resolve(), base)
                if not is_included(relative, include, exclude):
                    continue
                logger.info("[%s] %s", event.kind, relative)
                debouncer.trigger()

    consumer = asyncio.create_task(consume())
    stopper = asyncio.create_task(stop_event.wait())
    try:
        await asyncio.wait({consumer, stopper}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        consumer.cancel()
        stopper.cancel()
        outcome, _ = await asyncio.gather(consumer, stopper, return_exceptions=True)
        debouncer.cancel()
        aclose = getattr(source, "aclose", None)
        if aclose is not None:
            await aclose()
        await debouncer.drain()
        logger.info("Stopped watching %s", source_dir)

    if isinstance(outcome, Exception):
        raise outcome
