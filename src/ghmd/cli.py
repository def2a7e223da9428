"""Command-line entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import uvicorn

from ghmd import __version__
from ghmd.app import create_app
from ghmd.config import MODES, THEMES, load_settings
from ghmd.errors import ConfigurationError
from ghmd.export import export_document
from ghmd.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ghmd", description="GitHub markdown previewer.")
    p.add_argument("input", nargs="?", type=Path, help="The markdown file to render.")
    p.add_argument(
        "-t",
        "--token",
        help="GitHub token to authorize with (default: $GHMD_TOKEN or $GITHUB_TOKEN).",
    )
    p.add_argument("--theme", choices=THEMES, type=str.lower, help="Page theme (default: dark).")
    p.add_argument("--title", help="Page title (default: the input path).")
    p.add_argument("--mode", choices=MODES, help="GitHub rendering mode (default: gfm).")
    p.add_argument("--context", help="Repository (owner/name) used to resolve gfm references.")
    p.add_argument("--host", help="Bind host (default: 127.0.0.1).")
    p.add_argument("--port", type=int, help="Bind port (default: 39131).")
    p.add_argument("--debounce-ms", type=int, help="Quiescence window for file changes.")
    p.add_argument(
        "--export",
        nargs="?",
        const="",
        type=str,
        metavar="OUTPUT",
        help="Render once to OUTPUT (default: INPUT with .html) and exit.",
    )
    p.add_argument("--log-level", help="Logging level (default: INFO).")
    p.add_argument("--log-file", help="Also write logs to this file.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(
            app_input=str(args.input) if args.input else None,
            app_title=args.title,
            app_theme=args.theme,
            app_log_level=args.log_level,
            app_log_file=args.log_file,
            renderer_token=args.token,
            renderer_mode=args.mode,
            renderer_context=args.context,
            server_host=args.host,
            server_port=args.port,
            watch_debounce_ms=args.debounce_ms,
        )
        settings.validate()
    except ConfigurationError as exc:
        print(f"ghmd: {exc}", file=sys.stderr)
        return 2

    configure_logging(settings.app.log_level, log_file=settings.app.log_file or None)

    if args.export is not None:
        output = Path(args.export) if args.export else None
        return asyncio.run(export_document(settings, output))

    if not settings.app.input_path.is_file():
        logger.error("Input file `%s` does not exist", settings.app.input)
        return 1

    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
        timeout_graceful_shutdown=1,
    )
    return 0
