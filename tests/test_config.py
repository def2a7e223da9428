"""Tests for configuration module."""

from unittest.mock import patch

import pytest

from ghmd.config import (
    AppConfig,
    PipelineConfig,
    RendererConfig,
    ServerConfig,
    Settings,
    WatchConfig,
    _env,
    load_settings,
)
from ghmd.errors import ConfigurationError


def test_env_returns_value(monkeypatch):
    monkeypatch.setenv("TEST_KEY", "hello")
    assert _env("TEST_KEY") == "hello"


def test_env_returns_default_when_missing(monkeypatch):
    monkeypatch.delenv("TEST_KEY", raising=False)
    assert _env("TEST_KEY", "fallback") == "fallback"


def test_watch_config_default_debounce(monkeypatch):
    monkeypatch.delenv("GHMD_DEBOUNCE_MS", raising=False)
    config = WatchConfig()
    assert config.debounce_ms == 100
    assert config.debounce_seconds == pytest.approx(0.1)


def test_invalid_integer_raises(monkeypatch):
    monkeypatch.setenv("GHMD_PORT", "eighty")
    with pytest.raises(ConfigurationError, match="GHMD_PORT"):
        ServerConfig()


def test_renderer_token_prefers_ghmd_token(monkeypatch):
    monkeypatch.setenv("GHMD_TOKEN", "primary")
    monkeypatch.setenv("GITHUB_TOKEN", "fallback")
    assert RendererConfig().token == "primary"


def test_renderer_token_falls_back_to_github_token(monkeypatch):
    monkeypatch.delenv("GHMD_TOKEN", raising=False)
    monkeypatch.setenv("GITHUB_TOKEN", "fallback")
    assert RendererConfig().token == "fallback"


def test_renderer_defaults(monkeypatch):
    for key in ("GHMD_API_URL", "GHMD_MODE", "GHMD_CONTEXT", "GHMD_TIMEOUT_SECONDS"):
        monkeypatch.delenv(key, raising=False)
    config = RendererConfig()
    assert config.api_url == "https://api.github.com/markdown"
    assert config.mode == "gfm"
    assert config.context == ""
    assert config.timeout_seconds == 30.0


@pytest.mark.parametrize(
    ("raw", "expected"), [("true", True), ("1", True), ("no", False), ("false", False)]
)
def test_retry_on_change_flag(monkeypatch, raw, expected):
    monkeypatch.setenv("GHMD_RETRY_ON_CHANGE", raw)
    assert PipelineConfig().retry_on_change is expected


def test_page_title_defaults_to_input():
    config = AppConfig(input="docs/README.md", title="", theme="dark", log_level="INFO")
    assert config.page_title == "docs/README.md"


def test_settings_creates_all_sub_configs():
    settings = Settings()
    assert isinstance(settings.app, AppConfig)
    assert isinstance(settings.watch, WatchConfig)
    assert isinstance(settings.renderer, RendererConfig)
    assert isinstance(settings.pipeline, PipelineConfig)
    assert isinstance(settings.server, ServerConfig)


def test_load_settings_applies_overrides(monkeypatch):
    monkeypatch.setenv("GHMD_PORT", "8000")
    with patch("ghmd.config.load_dotenv"):
        settings = load_settings(
            app_input="README.md",
            renderer_token="cli-token",
            renderer_timeout_seconds=3.0,
            server_host=None,
        )
    assert settings.app.input == "README.md"
    assert settings.renderer.token == "cli-token"
    assert settings.renderer.timeout_seconds == 3.0
    assert settings.server.port == 8000


def test_load_settings_rejects_unknown_override():
    with patch("ghmd.config.load_dotenv"), pytest.raises(ConfigurationError):
        load_settings(bogus_value=1)


def test_validate_requires_token(settings):
    from dataclasses import replace

    broken = replace(settings, renderer=replace(settings.renderer, token=""))
    with pytest.raises(ConfigurationError, match="token"):
        broken.validate()


def test_validate_rejects_unknown_theme(settings):
    from dataclasses import replace

    broken = replace(settings, app=replace(settings.app, theme="sepia"))
    with pytest.raises(ConfigurationError, match="theme"):
        broken.validate()


def test_validate_accepts_fixture_settings(settings):
    settings.validate()
