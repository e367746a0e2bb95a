"""Load and validate project configuration YAML for degen site builds.

This subpackage parses a project's ``degen.yaml`` file, resolves the source
and export roots against the configuration's directory, and produces frozen
dataclasses (:class:`ProjectSettings`, :class:`ProjectHints`,
:class:`BehaviourFlags`) that the page model, template engine, and generator
receive explicitly. The primary entry point is :func:`load_project_config`.

Examples
--------
>>> from pathlib import Path
>>> from degen.config import load_project_config
>>> settings = load_project_config(Path("site/degen.yaml"))  # doctest: +SKIP
>>> settings.defaults_for("post")["template"]  # doctest: +SKIP
'templates/post.html'
"""

from degen.errors import ConfigNotFound, ProjectConfigError

from .loader import load_project_config
from .models import BehaviourFlags, ProjectHints, ProjectSettings

__all__ = [
    "BehaviourFlags",
    "ConfigNotFound",
    "ProjectConfigError",
    "ProjectHints",
    "ProjectSettings",
    "load_project_config",
]
