"""Cyclopts CLI entrypoint for generating a degen site.

The ``degen`` console script takes exactly one argument, the path to a
project configuration file, and renders every public page under the
configured source root into the export root.

Examples
--------
Generate the site described by ``site/degen.yaml``:

>>> from degen.cli import main
>>> main(["site/degen.yaml"])  # doctest: +SKIP
0
"""

from __future__ import annotations

import logging
import sys
import typing as typ
from pathlib import Path

from cyclopts import App, Parameter

from ._constants import DEFAULT_CONFIG_NAME
from .config import ConfigNotFound, ProjectConfigError, load_project_config
from .generator import SiteGenerator
from .paths import format_path

if typ.TYPE_CHECKING:
    import collections.abc as cabc

USAGE = "Usage: degen <path-to-project-config>"

app = App(name="degen", help="Generate a static site from a degen project file.")


@app.default
def generate(
    config: typ.Annotated[
        Path,
        Parameter(help=f"Path to the project configuration, usually {DEFAULT_CONFIG_NAME}"),
    ],
) -> int:
    """Generate the site described by ``config``.

    Parameters
    ----------
    config : Path
        Path to the project's YAML configuration file.

    Returns
    -------
    int
        ``0`` when every page rendered, ``1`` when the configuration is
        missing or any page failed.
    """
    try:
        settings = load_project_config(config)
    except (ConfigNotFound, ProjectConfigError) as exc:
        print(exc)
        return 1

    report = SiteGenerator(settings).run()
    for path in report.written:
        print(f"wrote {format_path(path)}")
    for failure in report.failures:
        print(f"failed {failure.describe()}")
    return 0 if report.ok else 1


def main(tokens: cabc.Sequence[str] | None = None) -> int:
    """Parse ``tokens`` (defaults to ``sys.argv[1:]``) and run the generator.

    Anything other than exactly one argument prints the usage line and
    returns ``2`` without generating.
    """
    args = list(sys.argv[1:] if tokens is None else tokens)
    if len(args) != 1:
        print(USAGE)
        return 2
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    command, bound, *_ = app.parse_args(args)
    return command(*bound.args, **bound.kwargs)


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    raise SystemExit(main())
