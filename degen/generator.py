"""High-level orchestration for a degen generation run.

A run has two phases. Ingestion reads every Markdown document under the
source root, parses its front matter, and finalizes a :class:`Page`; public
pages are registered in a :class:`Compendium`. Rendering then converts every
public page's body (after resolving template tokens inside it) and, once all
bodies exist, renders each page's template and writes the result under the
export root.

A failing page never aborts the run: its error is logged and recorded in the
returned :class:`GenerationReport`, and the remaining pages are processed.
Outputs are written atomically, so a page that fails mid-render leaves no
partial file.

Example
-------
>>> from pathlib import Path
>>> from degen.config import load_project_config
>>> from degen.generator import SiteGenerator
>>> settings = load_project_config(Path("site/degen.yaml"))  # doctest: +SKIP
>>> report = SiteGenerator(settings).run()  # doctest: +SKIP
>>> report.ok  # doctest: +SKIP
True
"""

from __future__ import annotations

import dataclasses as dc
import logging
import shutil
import typing as typ

from degen._constants import BODY_EXTENSION
from degen.errors import DegenError
from degen.pages import Compendium, Page, parse_page
from degen.paths import write_atomic
from degen.renderer import HtmlContentRenderer
from degen.temple import Temple

if typ.TYPE_CHECKING:
    from pathlib import Path

    from degen.config import ProjectSettings

logger = logging.getLogger(__name__)

PAGE_ERRORS = (DegenError, OSError, UnicodeDecodeError)


@dc.dataclass(frozen=True, slots=True)
class PageFailure:
    """A page (or passthrough directory) that could not be processed."""

    source_path: Path
    error: Exception

    def describe(self) -> str:
        return f"{self.source_path}: {self.error}"


@dc.dataclass(slots=True)
class GenerationReport:
    """Outcome of a generation run."""

    written: list[Path] = dc.field(default_factory=list)
    skipped: list[Path] = dc.field(default_factory=list)
    failures: list[PageFailure] = dc.field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def record_failure(self, source_path: Path, error: Exception) -> None:
        logger.error("Failed to process %s: %s", source_path, error)
        self.failures.append(PageFailure(source_path, error))


class SiteGenerator:
    """Turn a project's source tree into its rendered export tree."""

    def __init__(
        self,
        settings: ProjectSettings,
        *,
        renderer: HtmlContentRenderer | None = None,
        temple: Temple | None = None,
    ) -> None:
        """Initialize the generator with explicit project settings.

        Parameters
        ----------
        settings : ProjectSettings
            Resolved configuration shared with page finalization and the
            template engine.
        renderer : HtmlContentRenderer, optional
            Markdown converter; defaults to one configured from the
            behaviour flags.
        temple : Temple, optional
            Template engine; defaults to one bound to the project hints.
        """
        self.settings = settings
        self.renderer = renderer or HtmlContentRenderer(
            settings.flags.pygments_style,
            allow_html=settings.flags.enable_html_in_markdown,
        )
        self.temple = temple or Temple(settings.hints)

    def run(self) -> GenerationReport:
        """Ingest, copy passthrough directories, render, and write every page."""
        report = GenerationReport()
        compendium = Compendium()

        logger.info("Preparing Pages...")
        pages = self.ingest(report)
        for page in pages:
            compendium.add_page(page)
        logger.debug("Compendium:\n%s", compendium.describe())

        self.copy_passthrough(report)

        logger.info("Rendering...")
        self.render_pages(pages, compendium, report)
        logger.info("Site Rendered to %s", self.settings.hints.export_root)
        return report

    def discover_sources(self) -> list[Path]:
        """Return every Markdown document under the source root, sorted."""
        source_root = self.settings.hints.source_root
        return sorted(
            path.resolve()
            for path in source_root.rglob("*")
            if path.is_file() and path.suffix.lower() == BODY_EXTENSION
        )

    def ingest_page(self, source_path: Path) -> Page:
        """Read and finalize the page stored at ``source_path``."""
        text = source_path.read_text(encoding="utf-8")
        return parse_page(text, source_path, self.settings)

    def ingest(self, report: GenerationReport) -> list[Page]:
        """Return the public pages of the source tree, recording failures."""
        public: list[Page] = []
        for source_path in self.discover_sources():
            try:
                page = self.ingest_page(source_path)
            except PAGE_ERRORS as exc:
                report.record_failure(source_path, exc)
                continue
            if page.is_public():
                public.append(page)
            else:
                report.skipped.append(source_path)
        return public

    def copy_passthrough(self, report: GenerationReport) -> None:
        """Copy each passthrough directory onto its destination."""
        for source_dir, dest_dir in self.settings.passthrough.items():
            logger.info("Copying '%s' to '%s'", source_dir, dest_dir)
            try:
                shutil.copytree(source_dir, dest_dir, dirs_exist_ok=True)
            except OSError as exc:
                report.record_failure(source_dir, exc)

    def convert_body(self, page: Page, compendium: Compendium) -> None:
        """Resolve template tokens in the page's Markdown and store the HTML body."""
        plated = self.temple.render_string(
            page.markdown(), page, compendium, template_path=page.source_path
        )
        page.set("body", self.renderer.markdown(plated))
        page.set("pygments_css", self.renderer.stylesheet)

    def render_page(self, page: Page, compendium: Compendium) -> Path:
        """Render the page's template and write it to its export path."""
        html = self.temple.render(page, compendium)
        export_path = page.export_path()
        if self.settings.flags.log_writes:
            logger.info("writing file to: %s", export_path)
        write_atomic(export_path, html)
        return export_path

    def render_pages(
        self, pages: list[Page], compendium: Compendium, report: GenerationReport
    ) -> None:
        """Convert every body first, then render and write each page.

        A page whose body fails to convert is dropped from the Compendium so
        listings on other pages never see it without a body.
        """
        converted: list[Page] = []
        for page in pages:
            try:
                self.convert_body(page, compendium)
            except PAGE_ERRORS as exc:
                report.record_failure(page.source_path, exc)
                compendium.remove_page(page)
                continue
            converted.append(page)

        for page in converted:
            try:
                report.written.append(self.render_page(page, compendium))
            except PAGE_ERRORS as exc:
                report.record_failure(page.source_path, exc)


__all__ = ["GenerationReport", "PageFailure", "SiteGenerator"]
