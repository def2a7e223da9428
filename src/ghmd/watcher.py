"""Debounced file watcher — turns filesystem events into document snapshots."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ghmd.errors import WatchIoError
from ghmd.models.document import DocumentSnapshot, UnreadableDocument

if TYPE_CHECKING:
    from collections.abc import Callable

    from watchdog.observers.api import BaseObserver

    from ghmd.models.document import WatchSignal

logger = logging.getLogger(__name__)

# Access-only events never change the file's contents.
_IGNORED_EVENT_TYPES = frozenset({"opened", "closed_no_write"})


class _FileEventHandler(FileSystemEventHandler):
    """Forwards events for one path from the observer thread to the event loop."""

    def __init__(
        self, path: Path, loop: asyncio.AbstractEventLoop, notify: Callable[[], None]
    ) -> None:
        super().__init__()
        self._path = path
        self._loop = loop
        self._notify = notify

    def _concerns_path(self, event: FileSystemEvent) -> bool:
        paths = [event.src_path, getattr(event, "dest_path", "")]
        return any(p and Path(str(p)) == self._path for p in paths)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in _IGNORED_EVENT_TYPES:
            return
        if not self._concerns_path(event):
            return
        self._loop.call_soon_threadsafe(self._notify)


class DebouncedWatcher:
    """Emits at most one signal per quiescence window for a single file.

    Each raw notification (re)arms a timer; when it fires the file is read and
    a ``DocumentSnapshot`` with the next revision is handed to ``sink``. Read
    failures are emitted as ``UnreadableDocument`` so the pipeline can surface
    them. Identical content is not re-emitted.
    """

    def __init__(
        self,
        path: Path,
        sink: Callable[[WatchSignal], None],
        *,
        debounce_seconds: float = 0.1,
        observer_factory: Callable[[], BaseObserver] = Observer,
    ) -> None:
        self._path = path.expanduser().resolve()
        self._sink = sink
        self._debounce = debounce_seconds
        self._observer_factory = observer_factory
        self._observer: BaseObserver | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._read_tasks: set[asyncio.Task] = set()
        self._stopped = False
        self._read_lock = asyncio.Lock()
        self._revision = 0
        self._last_content: bytes | None = None
        self._last_error: str | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def revision(self) -> int:
        """The revision of the most recent emission (0 before the first)."""
        return self._revision

    async def start(self) -> None:
        """Emit the initial contents, then begin observing the parent directory."""
        self._loop = asyncio.get_running_loop()
        self._stopped = False
        await self._emit()

        handler = _FileEventHandler(self._path, self._loop, self.notify)
        self._observer = self._observer_factory()
        self._observer.schedule(handler, str(self._path.parent), recursive=False)
        self._observer.start()
        logger.info("Watching %s (debounce=%.0fms)", self._path, self._debounce * 1000)

    async def stop(self) -> None:
        """Cancel any pending emission and stop the observer thread.

        Notifications already queued by the observer thread are ignored once
        stopped, so nothing reaches the sink after this returns.
        """
        self._stopped = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for task in list(self._read_tasks):
            task.cancel()
        if self._read_tasks:
            await asyncio.gather(*self._read_tasks, return_exceptions=True)
        if self._observer is not None:
            self._observer.stop()
            await asyncio.to_thread(self._observer.join)
            self._observer = None
        logger.info("Watcher stopped")

    def notify(self) -> None:
        """Record one raw change notification; restarts the quiescence timer."""
        if self._stopped:
            return
        loop = self._loop or asyncio.get_running_loop()
        self._loop = loop
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self._debounce, self._on_quiet)

    def _on_quiet(self) -> None:
        self._timer = None
        if self._stopped:
            return
        task = asyncio.create_task(self._emit())
        self._read_tasks.add(task)
        task.add_done_callback(self._read_tasks.discard)

    def _read(self) -> bytes:
        try:
            return self._path.read_bytes()
        except OSError as exc:
            raise WatchIoError(self._path, exc) from exc

    async def _emit(self) -> None:
        async with self._read_lock:
            try:
                content = await asyncio.to_thread(self._read)
            except WatchIoError as exc:
                if not self._stopped:
                    self._emit_unreadable(str(exc))
                return
            if not self._stopped:
                self._emit_snapshot(content)

    def _emit_unreadable(self, reason: str) -> None:
        self._last_content = None
        if reason == self._last_error:
            return
        logger.warning("%s", reason)
        self._last_error = reason
        self._revision += 1
        self._sink(UnreadableDocument(revision=self._revision, reason=reason))

    def _emit_snapshot(self, content: bytes) -> None:
        self._last_error = None
        if content == self._last_content:
            logger.debug("Ignoring change with identical contents")
            return
        self._last_content = content
        self._revision += 1
        logger.debug("Emitting snapshot revision=%d (%d bytes)", self._revision, len(content))
        self._sink(DocumentSnapshot(revision=self._revision, content=content))
