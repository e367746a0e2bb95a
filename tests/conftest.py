"""Shared fixtures building throwaway degen projects under ``tmp_path``."""

from __future__ import annotations

import datetime as dt
import types
import typing as typ
from textwrap import dedent

import pytest

from degen.config import BehaviourFlags, ProjectHints, ProjectSettings
from degen.pages import Page, PageData

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

DOMAIN_URL = "http://example.com"

POST_SOURCE = dedent(
    """\
    ---
    [post]
    is_public = true
    title = "I am a post"
    ---
    # Header 1

    HI This is another header
    """
)

PAGE_TEMPLATE = (
    "<!DOCTYPE html><html><head><title>!{ title }</title></head>"
    "<body>!{ body }</body></html>\n"
)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Return a project directory with empty source, export, and template dirs."""
    root = (tmp_path / "site").resolve()
    for name in ("source", "export", "templates"):
        (root / name).mkdir(parents=True)
    (root / "templates" / "page.html").write_text(PAGE_TEMPLATE, encoding="utf-8")
    return root


@pytest.fixture
def hints(project_root: Path) -> ProjectHints:
    return ProjectHints(
        project_root=project_root,
        source_root=project_root / "source",
        export_root=project_root / "export",
        domain_url=DOMAIN_URL,
    )


@pytest.fixture
def settings(hints: ProjectHints) -> ProjectSettings:
    """Return settings whose defaults bind every page to ``templates/page.html``."""
    defaults = {
        "default": types.MappingProxyType(
            {"template": "templates/page.html", "is_public": True, "date": "modified"}
        ),
    }
    return ProjectSettings(
        hints=hints,
        flags=BehaviourFlags(warn_on_default=False),
        page_defaults=types.MappingProxyType(defaults),
    )


@pytest.fixture
def write_source(hints: ProjectHints) -> cabc.Callable[[str, str], Path]:
    """Return a helper writing ``text`` to ``relative`` under the source root."""

    def _write(relative: str, text: str) -> Path:
        path = hints.source_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_page(
    hints: ProjectHints, settings: ProjectSettings
) -> cabc.Callable[..., Page]:
    """Return a factory finalizing in-memory pages without touching the disk."""

    def _make(
        name: str,
        page_type: str = "post",
        *,
        date: dt.date | str = dt.date(2020, 9, 18),
        **properties: typ.Any,
    ) -> Page:
        data = PageData(
            page_type,
            hints.source_root / f"{name}.md",
            {"title": name, "date": date, "markdown": "", **properties},
        )
        return data.finalize(settings)

    return _make


@pytest.fixture
def post_source() -> str:
    """Return the canonical public post document."""
    return POST_SOURCE


INDEX_TEMPLATE = (
    "<html><body><h1>!{ title }</h1>"
    '<ul id="posts">!{{ post.exclude(current_page).sort("date", reverse=true)'
    '.render("<li><a href=\\"!{ url }\\">!{ title }</a></li>", "No posts") }}</ul>'
    "</body></html>\n"
)

PROJECT_CONFIG = """\
project:
  source_path: source
  export_path: export
  domain_url: http://example.com
  passthrough:
    static: export/static
degen:
  warn_on_default: false
  log_writes: true
pages:
  default:
    template: templates/page.html
    is_public: true
    date: modified
  project:
    template: templates/index.html
    is_public: true
    date: modified
"""


@pytest.fixture
def site_config(
    project_root: Path, write_source: cabc.Callable[[str, str], Path]
) -> Path:
    """Write a small blog project and return its configuration path."""
    (project_root / "templates" / "index.html").write_text(
        INDEX_TEMPLATE, encoding="utf-8"
    )
    static = project_root / "static" / "css"
    static.mkdir(parents=True)
    (static / "site.css").write_text("body { color: black; }\n", encoding="utf-8")

    write_source("index.md", '---\n[project]\ntitle = "Home"\n---\nWelcome\n')
    for name, day in (("older", "2020-01-01"), ("newer", "2020-02-01")):
        write_source(
            f"posts/{name}.md",
            f'---\n[post]\ntitle = "{name.title()} post"\ndate = "{day}"\n---\n'
            f"# {name}\n\nBody of !{{ title }}.\n",
        )
    write_source(
        "drafts/secret.md",
        '---\n[post]\ntitle = "Secret"\nis_public = false\n---\nhidden\n',
    )

    config_path = project_root / "degen.yaml"
    config_path.write_text(PROJECT_CONFIG, encoding="utf-8")
    return config_path
