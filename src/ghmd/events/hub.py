"""Broadcast hub — fans render outcomes out to every connected viewer."""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections import deque
from typing import TYPE_CHECKING

from ghmd.errors import ChannelDeliveryFailure

if TYPE_CHECKING:
    from ghmd.models.outcome import RenderOutcome

logger = logging.getLogger(__name__)


class ViewerSession:
    """One viewer's delivery path: a bounded buffer drained by its stream.

    When the buffer is full the oldest outcome is dropped, so a stalled viewer
    only ever holds the most recent outcomes and never slows anyone else.
    """

    def __init__(self, buffer_size: int) -> None:
        self.id = secrets.token_hex(4)
        self._buffer: deque[RenderOutcome] = deque(maxlen=buffer_size)
        self._ready = asyncio.Event()
        self._closed = False
        self.dropped = 0

    def __repr__(self) -> str:
        return f"ViewerSession(id={self.id!r}, closed={self._closed})"

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def deliver(self, outcome: RenderOutcome) -> None:
        """Buffer ``outcome`` without blocking. Raises if the session is closed."""
        if self._closed:
            raise ChannelDeliveryFailure(f"session {self.id} is closed")
        if len(self._buffer) == self._buffer.maxlen:
            self.dropped += 1
        self._buffer.append(outcome)
        self._ready.set()

    def close(self) -> None:
        self._closed = True
        self._buffer.clear()
        self._ready.set()

    async def receive(self, timeout: float | None = None) -> RenderOutcome | None:
        """Return the next buffered outcome, or None on timeout or close."""
        if not self._buffer and not self._closed:
            self._ready.clear()
            try:
                await asyncio.wait_for(self._ready.wait(), timeout)
            except TimeoutError:
                return None
        if self._closed or not self._buffer:
            return None
        return self._buffer.popleft()


class BroadcastHub:
    """Owns the viewer set and the most recent outcome.

    All operations are synchronous critical sections on the event loop, so
    register, unregister and publish never interleave mid-fan-out.
    """

    def __init__(self, buffer_size: int = 16) -> None:
        self._buffer_size = buffer_size
        self._sessions: dict[str, ViewerSession] = {}
        self._current: RenderOutcome | None = None

    @property
    def current(self) -> RenderOutcome | None:
        return self._current

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def register(self) -> ViewerSession:
        """Add a viewer and hand it the current outcome straight away."""
        session = ViewerSession(self._buffer_size)
        self._sessions[session.id] = session
        if self._current is not None:
            session.deliver(self._current)
        logger.info("Viewer connected — session=%s viewers=%d", session.id, len(self._sessions))
        return session

    def unregister(self, session: ViewerSession) -> None:
        """Remove a viewer. Safe to call more than once."""
        removed = self._sessions.pop(session.id, None)
        session.close()
        if removed is not None:
            logger.info(
                "Viewer disconnected — session=%s viewers=%d",
                session.id,
                len(self._sessions),
            )

    async def publish(self, outcome: RenderOutcome) -> None:
        """Deliver ``outcome`` to every viewer and retain it for late joiners."""
        if self._current is not None and outcome.revision < self._current.revision:
            logger.debug("Hub ignoring stale outcome revision=%d", outcome.revision)
            return
        self._current = outcome
        for session in list(self._sessions.values()):
            try:
                session.deliver(outcome)
            except ChannelDeliveryFailure:
                logger.warning("Dropping viewer that refused delivery — session=%s", session.id)
                self.unregister(session)
        logger.debug(
            "Published %s revision=%d to %d viewer(s)",
            outcome.event,
            outcome.revision,
            len(self._sessions),
        )

    def close(self) -> None:
        """Disconnect every viewer; used at shutdown so open streams finish."""
        for session in list(self._sessions.values()):
            self.unregister(session)
