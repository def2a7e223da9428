"""Static export — one render written to an HTML file, no watcher or server."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from ghmd.errors import WatchIoError
from ghmd.models.outcome import Rendered
from ghmd.renderer.client import RendererClient
from ghmd.templater import Liveness, PageTemplater

if TYPE_CHECKING:
    from pathlib import Path

    from ghmd.config import Settings

logger = logging.getLogger(__name__)


def default_output(input_path: Path) -> Path:
    return input_path.with_suffix(".html")


async def export_document(settings: Settings, output: Path | None = None) -> int:
    """Render the input file once and write the static page. Returns an exit code."""
    source = settings.app.input_path
    target = output or default_output(source)
    try:
        content = source.read_bytes()
    except OSError as exc:
        logger.error("%s", WatchIoError(source, exc))  # noqa: TRY400
        return 1

    async with httpx.AsyncClient(timeout=settings.renderer.timeout_seconds) as client:
        renderer = RendererClient(settings.renderer, client)
        outcome = await renderer.render(content.decode("utf-8", errors="replace"), 1)

    if not isinstance(outcome, Rendered):
        logger.error("Export failed — %s", outcome.message())
        return 1

    templater = PageTemplater(settings.app.page_title, settings.app.theme)
    target.write_text(templater.generate(outcome.markup, Liveness.STATIC), encoding="utf-8")
    logger.info("Wrote %s", target)
    return 0
