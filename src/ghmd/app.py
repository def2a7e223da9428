"""FastAPI application — wires watcher, pipeline, hub and routes into one process."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import httpx
from fastapi import FastAPI

from ghmd.events.hub import BroadcastHub
from ghmd.logging import configure_logging
from ghmd.pipeline.render import RenderPipeline
from ghmd.renderer.client import RendererClient
from ghmd.routes import preview, status
from ghmd.templater import PageTemplater
from ghmd.watcher import DebouncedWatcher

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ghmd.config import Settings

logger = logging.getLogger(__name__)


def create_app(settings: Settings) -> FastAPI:
    """Build the app; components start and stop with its lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.app.log_level, log_file=settings.app.log_file or None)

        http_client = httpx.AsyncClient(timeout=settings.renderer.timeout_seconds)
        renderer = RendererClient(settings.renderer, http_client)
        hub = BroadcastHub(buffer_size=settings.server.session_buffer)
        pipeline = RenderPipeline(renderer, hub, settings.pipeline)
        watcher = DebouncedWatcher(
            settings.app.input_path,
            pipeline.submit,
            debounce_seconds=settings.watch.debounce_seconds,
        )

        app.state.settings = settings
        app.state.hub = hub
        app.state.pipeline = pipeline
        app.state.watcher = watcher
        app.state.templater = PageTemplater(settings.app.page_title, settings.app.theme)

        await pipeline.start()
        await watcher.start()
        logger.info(
            "Now listening on http://%s:%d/", settings.server.host, settings.server.port
        )

        yield

        logger.info("Shutting down")
        await watcher.stop()
        await pipeline.stop()
        hub.close()
        await http_client.aclose()
        logger.info("Shutdown complete")

    app = FastAPI(title="ghmd", lifespan=lifespan, docs_url=None, redoc_url=None)
    app.include_router(preview.router)
    app.include_router(status.router)
    return app
