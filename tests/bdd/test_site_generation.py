"""Behaviour tests for end-to-end site generation.

These pytest-bdd scenarios build a small blog project under ``tmp_path`` with
the ``site_config`` fixture, run :class:`degen.generator.SiteGenerator` over
it, and inspect the exported HTML with BeautifulSoup. The feature file
``site_generation.feature`` covers collection listings on the home page and
per-page failure isolation.

Usage
-----
Run ``pytest tests/bdd/test_site_generation.py -v`` after installing the test
extra (``pip install -e .[test]``). No network access is required.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, parsers, scenarios, then, when

from degen.config import load_project_config
from degen.generator import GenerationReport, SiteGenerator

if typ.TYPE_CHECKING:
    import collections.abc as cabc

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "site_generation.feature"
)
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


@given("a degen project with two dated posts and a draft")
def given_project(site_config: Path, scenario_state: dict[str, object]) -> None:
    """Record the project configuration written by ``site_config``."""
    scenario_state["config_path"] = site_config


@given("a post that references an undefined property")
def given_broken_post(
    write_source: cabc.Callable[[str, str], Path],
    scenario_state: dict[str, object],
) -> None:
    """Add a post whose body uses a variable its header never defines."""
    scenario_state["broken"] = write_source(
        "posts/broken.md",
        '---\n[post]\ntitle = "Broken"\ndate = "2020-03-01"\n---\n!{ summary }\n',
    )


@when("I generate the site")
def when_generate(scenario_state: dict[str, object]) -> None:
    """Load the project configuration and run the generator."""
    config_path = typ.cast("Path", scenario_state["config_path"])
    settings = load_project_config(config_path)
    scenario_state["export_root"] = settings.hints.export_root
    scenario_state["report"] = SiteGenerator(settings).run()


@then(parsers.parse('the home page lists "{first}" before "{second}"'))
def then_home_lists(
    first: str, second: str, scenario_state: dict[str, object]
) -> None:
    """Verify the order of post links on the exported home page."""
    export_root = typ.cast("Path", scenario_state["export_root"])
    soup = BeautifulSoup(
        (export_root / "index.html").read_text(encoding="utf-8"), "html.parser"
    )
    titles = [link.get_text() for link in soup.select("#posts li a")]
    assert titles == [first, second], f"unexpected home page listing: {titles}"


@then("the draft is not published")
def then_draft_skipped(scenario_state: dict[str, object]) -> None:
    """Verify private pages produce no output."""
    export_root = typ.cast("Path", scenario_state["export_root"])
    report = typ.cast("GenerationReport", scenario_state["report"])
    assert not (export_root / "drafts" / "secret.html").exists(), (
        "expected the draft to stay unpublished"
    )
    assert [path.name for path in report.skipped] == ["secret.md"]


@then("the generation report names the broken post")
def then_report_names_broken(scenario_state: dict[str, object]) -> None:
    """Verify the failure is attributed to the broken post."""
    report = typ.cast("GenerationReport", scenario_state["report"])
    broken = typ.cast("Path", scenario_state["broken"])
    assert [failure.source_path for failure in report.failures] == [broken]
    assert "summary" in report.failures[0].describe()


@then("the other posts are still published")
def then_others_published(scenario_state: dict[str, object]) -> None:
    """Verify the remaining posts were written despite the failure."""
    export_root = typ.cast("Path", scenario_state["export_root"])
    for name in ("older", "newer"):
        assert (export_root / "posts" / f"{name}.html").exists(), (
            f"expected posts/{name}.html to be written"
        )
    assert not (export_root / "posts" / "broken.html").exists()
