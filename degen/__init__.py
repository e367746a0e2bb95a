"""Static site generation from front-matter annotated Markdown.

This package exposes the CLI entry point used by the ``degen`` console
script to turn a project's Markdown tree into rendered HTML pages.

Exports
-------
- ``app``: Cyclopts application entry.
- ``main``: Convenience function that parses arguments and runs ``app``.

Examples
--------
>>> from degen import main
>>> main(["site/degen.yaml"])  # doctest: +SKIP
0
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
