"""Tests for Markdown conversion of page bodies."""

from __future__ import annotations

from bs4 import BeautifulSoup

from degen.renderer import HtmlContentRenderer


def test_raw_html_is_escaped_by_default() -> None:
    renderer = HtmlContentRenderer()

    html = renderer.markdown("Hello <em>world</em>\n\n<div>block</div>\n")

    soup = BeautifulSoup(html, "html.parser")
    assert soup.find("em") is None, "expected inline HTML to stay text"
    assert soup.find("div") is None, "expected block HTML to stay text"
    assert "<em>world</em>" in soup.get_text()


def test_raw_html_passes_through_when_enabled() -> None:
    renderer = HtmlContentRenderer(allow_html=True)

    html = renderer.markdown("Hello <em>world</em>\n")

    soup = BeautifulSoup(html, "html.parser")
    emphasis = soup.find("em")
    assert emphasis is not None
    assert emphasis.get_text() == "world"


def test_fenced_code_is_highlighted_with_language_metadata() -> None:
    renderer = HtmlContentRenderer()
    markdown = "# Title\n\n```python\nprint('hi')\n```\n\n   ```toml,ignore\nkey = 1\n   ```\n"

    html = renderer.markdown(markdown)

    soup = BeautifulSoup(html, "html.parser")
    blocks = soup.select("div.codehilite")
    assert [block.get("data-language") for block in blocks] == ["python", "toml"]
    assert soup.find("h1").get_text() == "Title"


def test_blank_markdown_renders_nothing() -> None:
    assert HtmlContentRenderer().markdown("  \n") == ""


def test_stylesheet_targets_codehilite_blocks() -> None:
    css = HtmlContentRenderer("friendly").stylesheet

    assert ".codehilite" in css
