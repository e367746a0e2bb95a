"""Load project configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from degen.errors import ConfigNotFound, ProjectConfigError

from .helpers import (
    _build_flags,
    _build_page_defaults,
    _build_passthrough,
    _require_mapping,
    _require_path,
)
from .models import ProjectHints, ProjectSettings


def load_project_config(path: Path) -> ProjectSettings:
    """Load the YAML configuration describing a degen project.

    Parameters
    ----------
    path : Path
        Filesystem path to the project configuration (for example,
        ``degen.yaml``). Relative paths inside the file resolve against the
        directory that contains it.

    Returns
    -------
    ProjectSettings
        Parsed settings including project hints, behaviour flags, per-page-type
        default tables, and passthrough directories.

    Raises
    ------
    ConfigNotFound
        If the configuration file does not exist at ``path``.
    ProjectConfigError
        If the YAML cannot be parsed, the top-level structure is not a
        mapping, or required entries in the ``project`` table are missing or
        invalid.

    Examples
    --------
    >>> from pathlib import Path
    >>> from degen.config import load_project_config
    >>> settings = load_project_config(Path("degen.yaml"))  # doctest: +SKIP
    >>> settings.hints.domain_url  # doctest: +SKIP
    'http://127.0.0.1'
    """
    if not path.is_file():
        msg = f"Project Config '{path}' could not be found."
        raise ConfigNotFound(msg, source_path=path)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = loader.load(handle) or {}
    except YAMLError as exc:
        msg = f"Project Config '{path}' is not valid YAML: {exc}"
        raise ProjectConfigError(msg, source_path=path) from exc
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise ProjectConfigError(msg, source_path=path)
    raw: dict[str, typ.Any] = dict(loaded)

    project_root = path.resolve().parent
    project = _require_mapping(raw.get("project"), "project")
    if not project:
        msg = "No 'project' table defined in configuration."
        raise ProjectConfigError(msg, source_path=path)

    hints = ProjectHints(
        project_root=project_root,
        source_root=_require_path(project, "source_path", base=project_root),
        export_root=_require_path(project, "export_path", base=project_root),
        domain_url=str(project.get("domain_url") or ""),
    )
    passthrough = _build_passthrough(
        _require_mapping(project.get("passthrough"), "project.passthrough"),
        base=project_root,
    )
    return ProjectSettings(
        hints=hints,
        flags=_build_flags(_require_mapping(raw.get("degen"), "degen")),
        page_defaults=_build_page_defaults(
            _require_mapping(raw.get("pages"), "pages")
        ),
        passthrough=passthrough,
    )


__all__ = ["load_project_config"]
