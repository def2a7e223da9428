"""Shared fixtures for the ghmd test suite."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from ghmd.config import (
    AppConfig,
    PipelineConfig,
    RendererConfig,
    ServerConfig,
    Settings,
    WatchConfig,
)
from ghmd.models.outcome import Rendered

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from pathlib import Path

    from ghmd.models.outcome import RenderOutcome


class ScriptedRenderer:
    """Renderer double: records calls, optionally holds them open, replays outcomes."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, int, float]] = []
        self.responses: list[Callable[[str, int], RenderOutcome]] = []
        self.gate: asyncio.Event | None = None
        self.started = asyncio.Event()

    @property
    def revisions(self) -> list[int]:
        return [revision for _, revision, _ in self.calls]

    async def render(self, content: str, revision: int) -> RenderOutcome:
        self.calls.append((content, revision, asyncio.get_running_loop().time()))
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.responses:
            return self.responses.pop(0)(content, revision)
        return Rendered(markup=f"<p>{content}</p>", revision=revision)


class RecordingPublisher:
    def __init__(self) -> None:
        self.outcomes: list[RenderOutcome] = []

    async def publish(self, outcome: RenderOutcome) -> None:
        self.outcomes.append(outcome)


@pytest.fixture
def renderer() -> ScriptedRenderer:
    return ScriptedRenderer()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def eventually() -> Callable[..., Awaitable[None]]:
    """Poll ``predicate`` on the running loop until it holds or time runs out."""

    async def _eventually(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.005)

    return _eventually


@pytest.fixture
def document(tmp_path: Path) -> Path:
    path = tmp_path / "README.md"
    path.write_text("# Hello\n", encoding="utf-8")
    return path


@pytest.fixture
def settings(document: Path) -> Settings:
    """Settings built explicitly so the host environment never leaks in."""
    return Settings(
        app=AppConfig(
            input=str(document), title="", theme="dark", log_level="INFO", log_file=""
        ),
        watch=WatchConfig(debounce_ms=20),
        renderer=RendererConfig(
            token="test-token",
            api_url="https://api.github.test/markdown",
            mode="gfm",
            context="",
            timeout_seconds=5.0,
        ),
        pipeline=PipelineConfig(rate_limit_fallback_seconds=60.0, retry_on_change=True),
        server=ServerConfig(
            host="127.0.0.1", port=39131, session_buffer=4, keepalive_seconds=0.05
        ),
    )
