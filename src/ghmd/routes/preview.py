"""Preview route — the page shell, or its live event stream."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, Response

from ghmd.events.sse import create_response
from ghmd.templater import Liveness

router = APIRouter(tags=["preview"])


def wants_event_stream(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    return "text/event-stream" in accept


@router.get("/")
async def preview(request: Request) -> Response:
    """Serve the page, or attach an SSE session when the browser asks for one."""
    state = request.app.state
    if wants_event_stream(request):
        return create_response(
            state.hub,
            request,
            keepalive_seconds=state.settings.server.keepalive_seconds,
        )

    rendered = state.pipeline.last_rendered
    page = state.templater.generate(rendered.markup if rendered else "", Liveness.LIVE)
    return HTMLResponse(page, headers={"Cache-Control": "no-cache"})
