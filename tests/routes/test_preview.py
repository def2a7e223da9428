"""Tests for the preview and status routes."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.responses import HTMLResponse, StreamingResponse
from fastapi.testclient import TestClient

from ghmd.events.hub import BroadcastHub
from ghmd.models.outcome import Rendered
from ghmd.routes import preview, status
from ghmd.templater import PageTemplater


@pytest.fixture
def app(settings):
    app = FastAPI()
    app.include_router(preview.router)
    app.include_router(status.router)
    app.state.settings = settings
    app.state.hub = BroadcastHub(buffer_size=4)
    app.state.pipeline = MagicMock(last_rendered=Rendered(markup="<h1>Hello</h1>", revision=1))
    app.state.watcher = MagicMock(path=settings.app.input_path)
    app.state.templater = PageTemplater("README.md", "dark")
    return app


def test_page_contains_last_render(app):
    with TestClient(app) as client:
        response = client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "<h1>Hello</h1>" in response.text
    assert "EventSource" in response.text


def test_page_before_first_render_is_an_empty_shell(app):
    app.state.pipeline.last_rendered = None
    with TestClient(app) as client:
        response = client.get("/")

    assert response.status_code == 200
    assert '<main class="markdown-body"></main>' in response.text


async def test_event_stream_requested_by_accept_header(app):
    request = MagicMock()
    request.app = app
    request.headers = {"accept": "text/event-stream"}
    request.is_disconnected = AsyncMock(return_value=False)

    response = await preview.preview(request)

    assert isinstance(response, StreamingResponse)
    assert response.media_type == "text/event-stream"


async def test_plain_request_gets_html(app):
    request = MagicMock()
    request.app = app
    request.headers = {"accept": "text/html"}

    response = await preview.preview(request)

    assert isinstance(response, HTMLResponse)


async def test_healthz_reports_current_state(app):
    await app.state.hub.publish(Rendered(markup="x", revision=3))
    app.state.hub.register()

    with TestClient(app) as client:
        body = client.get("/healthz").json()

    assert body["revision"] == 3
    assert body["outcome"] == "update"
    assert body["viewers"] == 1
