"""Typed dataclasses describing a degen project configuration."""

from __future__ import annotations

import dataclasses as dc
import types
import typing as typ
from pathlib import Path  # noqa: TC003 - used for runtime type metadata

from degen._constants import DEFAULT_PAGE_TYPE


@dc.dataclass(frozen=True, slots=True)
class ProjectHints:
    """Project-wide locations shared by every page of a generation run.

    Attributes
    ----------
    project_root : Path
        Directory holding the configuration file; relative paths found in
        the configuration and in front matter resolve against it.
    source_root : Path
        Canonical directory containing the Markdown source tree.
    export_root : Path
        Canonical directory receiving the rendered HTML tree.
    domain_url : str
        Prefix applied to every inferred page URL.
    """

    project_root: Path
    source_root: Path
    export_root: Path
    domain_url: str = ""


@dc.dataclass(frozen=True, slots=True)
class BehaviourFlags:
    """Switches controlling diagnostics and Markdown conversion."""

    warn_on_default: bool = True
    warn_on_unvalidated_key: bool = False
    log_writes: bool = True
    enable_html_in_markdown: bool = False
    pygments_style: str = "monokai"


@dc.dataclass(frozen=True, slots=True)
class ProjectSettings:
    """A fully resolved project configuration."""

    hints: ProjectHints
    flags: BehaviourFlags = dc.field(default_factory=BehaviourFlags)
    page_defaults: typ.Mapping[str, typ.Mapping[str, typ.Any]] = dc.field(
        default_factory=lambda: types.MappingProxyType({})
    )
    passthrough: typ.Mapping[Path, Path] = dc.field(
        default_factory=lambda: types.MappingProxyType({})
    )

    def defaults_for(self, page_type: str) -> typ.Mapping[str, typ.Any]:
        """Return the default table for ``page_type``, falling back to ``default``."""
        if page_type in self.page_defaults:
            return self.page_defaults[page_type]
        return self.page_defaults.get(DEFAULT_PAGE_TYPE, {})


__all__ = ["BehaviourFlags", "ProjectHints", "ProjectSettings"]
