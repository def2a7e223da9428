"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from dotenv import load_dotenv

from ghmd.errors import ConfigurationError

_TRUTHY = {"1", "true", "yes", "on"}
THEMES = ("dark", "light")
MODES = ("gfm", "markdown")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def _env_float(key: str, default: float) -> float:
    raw = _env(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from exc


def _env_int(key: str, default: int) -> int:
    raw = _env(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from exc


def _env_bool(key: str, default: bool) -> bool:
    raw = _env(key)
    if not raw:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class AppConfig:
    input: str = field(default_factory=lambda: _env("GHMD_INPUT"))
    title: str = field(default_factory=lambda: _env("GHMD_TITLE"))
    theme: str = field(default_factory=lambda: _env("GHMD_THEME", "dark").lower())
    log_level: str = field(default_factory=lambda: _env("GHMD_LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: _env("GHMD_LOG_FILE"))

    @property
    def input_path(self) -> Path:
        return Path(self.input)

    @property
    def page_title(self) -> str:
        """Explicit title, or the input path as given."""
        return self.title or self.input


@dataclass(frozen=True)
class WatchConfig:
    debounce_ms: int = field(default_factory=lambda: _env_int("GHMD_DEBOUNCE_MS", 100))

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


@dataclass(frozen=True)
class RendererConfig:
    token: str = field(
        default_factory=lambda: _env("GHMD_TOKEN") or _env("GITHUB_TOKEN")
    )
    api_url: str = field(
        default_factory=lambda: _env("GHMD_API_URL", "https://api.github.com/markdown")
    )
    mode: str = field(default_factory=lambda: _env("GHMD_MODE", "gfm"))
    context: str = field(default_factory=lambda: _env("GHMD_CONTEXT"))
    timeout_seconds: float = field(
        default_factory=lambda: _env_float("GHMD_TIMEOUT_SECONDS", 30.0)
    )


@dataclass(frozen=True)
class PipelineConfig:
    rate_limit_fallback_seconds: float = field(
        default_factory=lambda: _env_float("GHMD_RATE_LIMIT_FALLBACK_SECONDS", 60.0)
    )
    retry_on_change: bool = field(
        default_factory=lambda: _env_bool("GHMD_RETRY_ON_CHANGE", True)
    )


@dataclass(frozen=True)
class ServerConfig:
    host: str = field(default_factory=lambda: _env("GHMD_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _env_int("GHMD_PORT", 39131))
    session_buffer: int = field(default_factory=lambda: _env_int("GHMD_SESSION_BUFFER", 16))
    keepalive_seconds: float = field(
        default_factory=lambda: _env_float("GHMD_KEEPALIVE_SECONDS", 15.0)
    )


@dataclass(frozen=True)
class Settings:
    app: AppConfig = field(default_factory=AppConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    renderer: RendererConfig = field(default_factory=RendererConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    def validate(self) -> None:
        """Raise ConfigurationError for settings the server cannot start with."""
        if not self.app.input:
            raise ConfigurationError("no input file given (pass a path or set GHMD_INPUT)")
        if not self.renderer.token:
            raise ConfigurationError(
                "no GitHub token configured — pass --token or set GHMD_TOKEN / GITHUB_TOKEN"
            )
        if self.app.theme not in THEMES:
            raise ConfigurationError(f"theme must be one of {', '.join(THEMES)}")
        if self.renderer.mode not in MODES:
            raise ConfigurationError(f"mode must be one of {', '.join(MODES)}")
        if self.server.session_buffer < 1:
            raise ConfigurationError("GHMD_SESSION_BUFFER must be at least 1")


def load_settings(**overrides: object) -> Settings:
    """Load settings from the environment (and .env), then apply overrides.

    Overrides are keyed ``<section>_<field>``, e.g. ``renderer_token`` or
    ``server_port``. ``None`` values are ignored so unset CLI flags fall
    through to the environment.
    """
    load_dotenv()
    settings = Settings()
    sections: dict[str, dict[str, object]] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        section, _, name = key.partition("_")
        if not name or not hasattr(settings, section):
            raise ConfigurationError(f"unknown setting override {key!r}")
        sections.setdefault(section, {})[name] = value
    for section, values in sections.items():
        settings = replace(settings, **{section: replace(getattr(settings, section), **values)})
    return settings
