"""Status route — pipeline and viewer diagnostics."""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["status"])


@router.get("/healthz")
async def healthz(request: Request) -> dict:
    """Report the current revision, its outcome and the connected viewer count."""
    hub = request.app.state.hub
    watcher = request.app.state.watcher
    current = hub.current
    return {
        "status": "ok",
        "input": str(watcher.path),
        "revision": current.revision if current else None,
        "outcome": current.event if current else None,
        "viewers": hub.session_count,
    }
