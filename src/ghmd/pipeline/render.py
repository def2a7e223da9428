"""Render pipeline — drives the renderer from watcher signals and owns the current outcome."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ghmd.models.document import UnreadableDocument
from ghmd.models.outcome import RateLimited, Rendered, RenderFailed

if TYPE_CHECKING:
    from ghmd.config import PipelineConfig
    from ghmd.models.document import WatchSignal
    from ghmd.models.outcome import RenderOutcome

logger = logging.getLogger(__name__)


@runtime_checkable
class Renderer(Protocol):
    """Anything that turns document text into a render outcome."""

    async def render(self, content: str, revision: int) -> RenderOutcome:
        ...


@runtime_checkable
class OutcomePublisher(Protocol):
    """Receives every outcome that becomes current."""

    async def publish(self, outcome: RenderOutcome) -> None:
        ...


class RenderPipeline:
    """Coalescing render worker.

    Producers overwrite a single pending slot; one worker task takes the slot,
    renders it and loops, so at most one render call is in flight and
    snapshots superseded while a call runs are never rendered on their own.

    A rate-limited revision stays pending and is retried when the retry delay
    elapses or, with ``retry_on_change``, as soon as a newer snapshot arrives.
    A failed render is not retried until the next signal.
    """

    def __init__(
        self,
        renderer: Renderer,
        publisher: OutcomePublisher,
        config: PipelineConfig,
    ) -> None:
        self._renderer = renderer
        self._publisher = publisher
        self._config = config
        self._pending: WatchSignal | None = None
        self._wakeup = asyncio.Event()
        self._retry_handle: asyncio.TimerHandle | None = None
        self._current: RenderOutcome | None = None
        self._last_rendered: Rendered | None = None
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def current(self) -> RenderOutcome | None:
        return self._current

    @property
    def last_rendered(self) -> Rendered | None:
        """The most recent successful render, kept across later failures."""
        return self._last_rendered

    @property
    def retry_scheduled(self) -> bool:
        return self._retry_handle is not None

    async def start(self) -> None:
        """Start the render worker in a background task."""
        self._running = True
        self._task = asyncio.create_task(self._work_loop())
        logger.info("Render pipeline started")

    async def stop(self) -> None:
        """Stop the worker; an in-flight render is abandoned."""
        self._running = False
        self._cancel_retry()
        if self._task and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        logger.info("Render pipeline stopped")

    def submit(self, signal: WatchSignal) -> None:
        """Make ``signal`` the next work item, replacing any older pending one."""
        if self._pending is not None and self._pending.revision > signal.revision:
            logger.debug("Ignoring out-of-order signal revision=%d", signal.revision)
            return
        self._pending = signal
        if self._retry_handle is not None and not self._config.retry_on_change:
            logger.debug("Rate limited; revision=%d waits for the retry timer", signal.revision)
            return
        self._cancel_retry()
        self._wakeup.set()

    def _cancel_retry(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

    def _schedule_retry(self, delay: float) -> None:
        self._cancel_retry()
        loop = asyncio.get_running_loop()
        self._retry_handle = loop.call_later(delay, self._on_retry_due)
        logger.info("Retrying render in %.1fs", delay)

    def _on_retry_due(self) -> None:
        self._retry_handle = None
        if self._pending is not None:
            self._wakeup.set()

    async def _work_loop(self) -> None:
        while self._running:
            await self._wakeup.wait()
            self._wakeup.clear()
            signal, self._pending = self._pending, None
            if signal is None:
                continue
            outcome = await self._process(signal)
            await self._commit(outcome)
            if isinstance(outcome, RateLimited):
                self._defer(signal, outcome)

    async def _process(self, signal: WatchSignal) -> RenderOutcome:
        if isinstance(signal, UnreadableDocument):
            return RenderFailed(reason=signal.reason, revision=signal.revision)
        try:
            return await self._renderer.render(signal.text, signal.revision)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Renderer raised for revision=%d", signal.revision)
            return RenderFailed(
                reason=f"failed to render markdown: {exc}", revision=signal.revision
            )

    def _defer(self, signal: WatchSignal, outcome: RateLimited) -> None:
        """Keep a rate-limited signal pending until its retry is due."""
        if self._pending is None:
            self._pending = signal
        elif self._config.retry_on_change:
            # A newer snapshot arrived during the call; it runs next.
            return
        self._wakeup.clear()
        delay = outcome.retry_after
        if delay is None:
            delay = self._config.rate_limit_fallback_seconds
        self._schedule_retry(delay)

    async def _commit(self, outcome: RenderOutcome) -> None:
        """Make ``outcome`` current and publish it, unless it is stale."""
        if self._current is not None and outcome.revision < self._current.revision:
            logger.debug(
                "Discarding stale outcome revision=%d (current=%d)",
                outcome.revision,
                self._current.revision,
            )
            return
        self._current = outcome
        if isinstance(outcome, Rendered):
            self._last_rendered = outcome
        try:
            await self._publisher.publish(outcome)
        except Exception:  # noqa: BLE001
            logger.warning(
                "Failed to publish outcome revision=%d", outcome.revision, exc_info=True
            )
