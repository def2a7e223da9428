"""Server-Sent Events push sessions — one long-lived stream per viewer."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from fastapi.responses import StreamingResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import Request

    from ghmd.events.hub import BroadcastHub
    from ghmd.models.outcome import RenderOutcome

logger = logging.getLogger(__name__)

# Only CR, LF and CRLF end an SSE line.
_LINE_BREAK = re.compile(r"\r\n|\r|\n")

KEEPALIVE = ": keep-alive\n\n"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(event: str, data: str) -> str:
    """Frame one named event; each payload line gets its own ``data:`` field."""
    lines = _LINE_BREAK.split(data)
    body = "".join(f"data: {line}\n" for line in lines)
    return f"event: {event}\n{body}\n"


def format_outcome(outcome: RenderOutcome) -> str:
    return format_sse(outcome.event, outcome.message())


async def stream_outcomes(
    hub: BroadcastHub,
    request: Request,
    *,
    keepalive_seconds: float = 15.0,
) -> AsyncIterator[str]:
    """Register with the hub and yield every outcome until the viewer leaves.

    The hub session is released in ``finally`` so it is unregistered exactly
    once however the stream ends: client disconnect, cancellation by the
    server, or the hub closing the session at shutdown.
    """
    session = hub.register()
    try:
        while not session.closed:
            outcome = await session.receive(timeout=keepalive_seconds)
            if outcome is None:
                if session.closed or await request.is_disconnected():
                    break
                yield KEEPALIVE
                continue
            yield format_outcome(outcome)
    finally:
        hub.unregister(session)
        logger.debug("Stream closed — session=%s dropped=%d", session.id, session.dropped)


def create_response(
    hub: BroadcastHub, request: Request, *, keepalive_seconds: float = 15.0
) -> StreamingResponse:
    """Build the streaming response for one viewer."""
    return StreamingResponse(
        stream_outcomes(hub, request, keepalive_seconds=keepalive_seconds),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
