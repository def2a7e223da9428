"""HTML page shell — wraps rendered markup in the preview page template."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from jinja2 import Environment, FileSystemLoader
from markupsafe import Markup

TEMPLATES_DIR = Path(__file__).parent / "templates"


class Liveness(StrEnum):
    STATIC = "static"
    LIVE = "live"


def _script(name: str) -> str:
    return (TEMPLATES_DIR / name).read_text(encoding="utf-8")


class PageTemplater:
    """Renders ``page.html`` with a title, theme, content and client script."""

    def __init__(self, title: str, theme: str = "dark") -> None:
        self.title = title
        self.theme = theme
        self._env = Environment(loader=FileSystemLoader(str(TEMPLATES_DIR)), autoescape=True)
        self._template = self._env.get_template("page.html")
        self._scripts = {
            Liveness.STATIC: _script("anchors.js"),
            Liveness.LIVE: _script("live.js") + _script("anchors.js"),
        }

    def generate(self, html: str, liveness: Liveness) -> str:
        """Return the full page with ``html`` placed inside ``<main>``."""
        return self._template.render(
            title=self.title,
            theme=self.theme,
            content=Markup(html),
            javascript=Markup(self._scripts[liveness]),
            live=liveness is Liveness.LIVE,
        )
