"""Tests for the HTML page shell."""

from ghmd.templater import TEMPLATES_DIR, Liveness, PageTemplater


def test_templates_dir_exists():
    assert TEMPLATES_DIR.exists()
    for name in ("page.html", "live.js", "anchors.js"):
        assert (TEMPLATES_DIR / name).exists()


def test_live_page_embeds_markup_and_event_source():
    page = PageTemplater("README.md", "dark").generate("<h1>Hi</h1>", Liveness.LIVE)

    assert page.startswith("<!DOCTYPE html>")
    assert '<main class="markdown-body"><h1>Hi</h1></main>' in page
    assert 'new EventSource("/")' in page
    assert "location.reload()" in page
    assert "user-content-" in page
    assert 'id="ghmd-status"' in page
    assert "#ghmd-status {" in page
    assert "github-markdown-dark" in page


def test_static_page_has_no_live_runtime():
    page = PageTemplater("README.md", "light").generate("<p>x</p>", Liveness.STATIC)

    assert "EventSource" not in page
    assert "ghmd-status" not in page
    assert "user-content-" in page
    assert "github-markdown-light" in page


def test_title_is_escaped():
    page = PageTemplater("<notes>.md").generate("", Liveness.STATIC)
    assert "<title>&lt;notes&gt;.md</title>" in page
