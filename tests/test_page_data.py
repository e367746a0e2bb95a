"""Tests for PageData property storage and staged finalization."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import logging
import os
import typing as typ

import pytest

from degen.config import BehaviourFlags
from degen.errors import (
    HeaderMisconfigured,
    PropertyValidationFailed,
    RelativePathUnresolvable,
    UnknownPropertyKey,
)
from degen.pages import Page, PageData

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from degen.config import ProjectHints, ProjectSettings


def test_get_unknown_key_names_the_key(hints: ProjectHints) -> None:
    data = PageData("post", hints.source_root / "post.md")

    with pytest.raises(UnknownPropertyKey) as excinfo:
        data.get("subtitle")

    assert excinfo.value.key == "subtitle"
    assert "key 'subtitle' does not exist in the header." in str(excinfo.value)


def test_set_get_and_has_cover_required_and_extra_keys(hints: ProjectHints) -> None:
    data = PageData("post", hints.source_root / "post.md", {"title": "Hi"})

    assert data.has("title")
    assert not data.has("template"), "expected unset required keys to be absent"

    data.set("template", "templates/post.html")
    data.set("title", "Hello")

    assert data.get("template") == "templates/post.html"
    assert data.get("title") == "Hello", "expected set to overwrite"
    assert data.keys() == ["page_type", "path", "template", "title"], (
        "expected required keys first, then insertion order"
    )


def test_required_properties_cannot_be_cleared(hints: ProjectHints) -> None:
    data = PageData("post", hints.source_root / "post.md")

    with pytest.raises(PropertyValidationFailed):
        data.set("is_public", None)


def test_defaults_fill_gaps_without_overwriting(
    hints: ProjectHints, settings: ProjectSettings
) -> None:
    data = PageData(
        "post",
        hints.source_root / "post.md",
        {"is_public": False, "date": "2020-09-18"},
    )

    page = data.finalize(settings)

    assert page.is_public() is False, "expected the header value to win"
    assert page.template_path() == hints.project_root / "templates" / "page.html"


def test_page_type_defaults_take_precedence_over_default_table(
    hints: ProjectHints, settings: ProjectSettings
) -> None:
    defaults = {
        **settings.page_defaults,
        "post": {"template": "templates/post.html", "is_public": True, "date": "modified"},
    }
    post_settings = dc.replace(settings, page_defaults=defaults)
    data = PageData("post", hints.source_root / "post.md", {"date": "2020-09-18"})

    page = data.finalize(post_settings)

    assert page.template_path() == hints.project_root / "templates" / "post.html"


def test_defaults_are_copied_per_page(
    hints: ProjectHints, settings: ProjectSettings
) -> None:
    defaults = {
        "default": {**settings.page_defaults["default"], "tags": ["shared"]},
    }
    tagged = dc.replace(settings, page_defaults=defaults)
    first = PageData("post", hints.source_root / "a.md", {"date": "2020-01-01"})
    second = PageData("post", hints.source_root / "b.md", {"date": "2020-01-01"})

    first_page = first.finalize(tagged)
    second_page = second.finalize(tagged)
    first_page.get("tags").append("mutated")

    assert second_page.get("tags") == ["shared"], "expected independent defaults"


def test_defaults_are_logged_when_enabled(
    hints: ProjectHints,
    settings: ProjectSettings,
    caplog: pytest.LogCaptureFixture,
) -> None:
    noisy = dc.replace(settings, flags=BehaviourFlags(warn_on_default=True))
    data = PageData("post", hints.source_root / "post.md", {"date": "2020-09-18"})

    with caplog.at_level(logging.WARNING, logger="degen.pages.data"):
        data.finalize(noisy)

    assert '"template" was not found in the header' in caplog.text
    assert "POST" in caplog.text, "expected the page type in the warning"


def test_unvalidated_keys_are_logged_when_enabled(
    hints: ProjectHints,
    settings: ProjectSettings,
    caplog: pytest.LogCaptureFixture,
) -> None:
    noisy = dc.replace(
        settings, flags=BehaviourFlags(warn_on_default=False, warn_on_unvalidated_key=True)
    )
    data = PageData(
        "post", hints.source_root / "post.md", {"date": "2020-09-18", "mood": "happy"}
    )

    with caplog.at_level(logging.WARNING, logger="degen.pages.data"):
        data.finalize(noisy)

    assert 'the key "mood" has no rules for parsing' in caplog.text


@pytest.mark.parametrize("value", ["yes", 1, "true"])
def test_is_public_must_be_boolean(
    value: object, hints: ProjectHints, settings: ProjectSettings
) -> None:
    data = PageData(
        "post",
        hints.source_root / "post.md",
        {"is_public": value, "date": "2020-09-18"},
    )

    with pytest.raises(PropertyValidationFailed, match="is_public must be a boolean"):
        data.finalize(settings)


@pytest.mark.parametrize(
    "value",
    [
        "2020-09-18",
        "2020-09-18T10:30:00Z",
        dt.date(2020, 9, 18),
        dt.datetime(2020, 9, 18, 10, 30, tzinfo=dt.UTC),
    ],
)
def test_parseable_dates_are_kept_untouched(
    value: object, hints: ProjectHints, settings: ProjectSettings
) -> None:
    data = PageData("post", hints.source_root / "post.md", {"date": value})

    page = data.finalize(settings)

    assert page.get("date") == value


@pytest.mark.parametrize("value", ["yesterday", "", 42, True])
def test_unparseable_dates_are_rejected(
    value: object, hints: ProjectHints, settings: ProjectSettings
) -> None:
    data = PageData("post", hints.source_root / "post.md", {"date": value})

    with pytest.raises(PropertyValidationFailed, match="date property must be"):
        data.finalize(settings)


@pytest.mark.parametrize("sentinel", ["modified", "Modified", "MODIFIED"])
def test_modified_sentinel_resolves_to_file_mtime(
    sentinel: str,
    settings: ProjectSettings,
    write_source: cabc.Callable[[str, str], Path],
) -> None:
    source = write_source("post.md", "unused")
    timestamp = 1_600_000_000
    os.utime(source, (timestamp, timestamp))
    data = PageData("post", source, {"date": sentinel})

    page = data.finalize(settings)

    assert page.get("date") == dt.datetime.fromtimestamp(timestamp, tz=dt.UTC)


def test_created_sentinel_resolves_to_an_aware_timestamp(
    settings: ProjectSettings,
    write_source: cabc.Callable[[str, str], Path],
) -> None:
    source = write_source("post.md", "unused")
    data = PageData("post", source, {"date": "created"})

    page = data.finalize(settings)

    date = page.get("date")
    assert isinstance(date, dt.datetime)
    assert date.tzinfo is not None, "expected a timezone-aware timestamp"


def test_export_path_and_url_are_inferred(
    hints: ProjectHints, settings: ProjectSettings
) -> None:
    data = PageData("post", hints.source_root / "post.md", {"date": "2020-09-18"})

    page = data.finalize(settings)

    assert page.export_path() == hints.export_root / "post.html"
    assert page.url() == "http://example.com/post.html"


def test_nested_sources_mirror_into_the_export_tree(
    hints: ProjectHints, settings: ProjectSettings
) -> None:
    source = hints.source_root / "blog" / "2020" / "hello.md"
    data = PageData("post", source, {"date": "2020-09-18"})

    page = data.finalize(settings)

    assert page.export_path() == hints.export_root / "blog" / "2020" / "hello.html"
    assert page.url() == "http://example.com/blog/2020/hello.html"
    assert page.relative_source_path(hints.source_root).as_posix() == "blog/2020/hello.md"


def test_pages_outside_the_source_root_are_rejected(
    hints: ProjectHints, settings: ProjectSettings
) -> None:
    data = PageData("post", hints.project_root / "stray.md", {"date": "2020-09-18"})

    with pytest.raises(RelativePathUnresolvable):
        data.finalize(settings)


def test_missing_required_property_after_defaults_is_misconfigured(
    hints: ProjectHints, settings: ProjectSettings
) -> None:
    bare = dc.replace(settings, page_defaults={})
    data = PageData("post", hints.source_root / "post.md", {"date": "2020-09-18"})

    with pytest.raises(HeaderMisconfigured, match="template, is_public"):
        data.finalize(bare)


def test_finalize_returns_a_page_snapshot(
    hints: ProjectHints, settings: ProjectSettings
) -> None:
    data = PageData("post", hints.source_root / "post.md", {"date": "2020-09-18"})

    page = data.finalize(settings)
    data.set("title", "late")

    assert isinstance(page, Page)
    assert not page.has("title"), "expected later builder edits to stay off the page"


def test_body_truncates_to_max_length(make_page: cabc.Callable[..., Page]) -> None:
    page = make_page("post", body="<p>Hello world</p>")

    assert page.body() == "<p>Hello world</p>"
    assert page.body(8) == "<p>Hello"


def test_clone_is_independent(make_page: cabc.Callable[..., Page]) -> None:
    page = make_page("post", tags=["a"])

    twin = page.clone()
    twin.set("title", "changed")
    twin.get("tags").append("b")

    assert page.title() == "post"
    assert page.get("tags") == ["a"]
    assert twin.source_path == page.source_path
