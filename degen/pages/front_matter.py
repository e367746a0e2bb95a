r"""Split source documents into front matter and body, then build Pages.

A source document starts with a ``---`` delimiter line, a TOML table whose
single top-level key names the page type, a second ``---`` line, and the
Markdown body::

    ---
    [post]
    is_public = true
    title = "I am a post"
    ---
    # Body

Example
-------
>>> header, body = split_front_matter("---\n[post]\ntitle = 'Hi'\n---\nBody\n")
>>> header
{'post': {'title': 'Hi'}}
>>> body
'Body\n'
"""

from __future__ import annotations

import re
import tomllib
import typing as typ

from degen._constants import FRONT_MATTER_DELIMITER
from degen.errors import EmptyPage, HeaderMisconfigured, MalformedHeader

from .data import Page, PageData

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from degen.config import ProjectSettings

DELIMITER_PATTERN = re.compile(
    rf"^{re.escape(FRONT_MATTER_DELIMITER)}[ \t]*(?:\r?\n|\Z)", re.MULTILINE
)
_SEGMENT_COUNT = 3


def split_front_matter(
    text: str, source_path: Path | None = None
) -> tuple[dict[str, typ.Any], str]:
    """Return the parsed TOML header and the raw body of ``text``.

    Raises
    ------
    EmptyPage
        If ``text`` is empty or whitespace only.
    MalformedHeader
        If the document does not split into exactly a leading delimiter, a
        header, and a body (a further ``---`` line in the body counts as an
        extra segment), or when the header is not valid TOML.
    """
    if not text.strip():
        msg = "Degen was given an empty page to parse"
        raise EmptyPage(msg, source_path=source_path)

    segments = DELIMITER_PATTERN.split(text)
    if len(segments) != _SEGMENT_COUNT or segments[0].strip():
        msg = "Page header is not formatted correctly"
        raise MalformedHeader(msg, source_path=source_path)

    _, header_text, body = segments
    try:
        header = tomllib.loads(header_text)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Page header is not formatted correctly: {exc}"
        raise MalformedHeader(msg, source_path=source_path) from exc
    return header, body


def create_page_data(
    header: cabc.Mapping[str, typ.Any], source_path: Path, markdown: str
) -> PageData:
    """Build unfinalized PageData from a parsed header table."""
    tables = list(header.items())
    if len(tables) != 1 or not isinstance(tables[0][1], dict):
        msg = (
            "page header must contain one table to define its type: "
            "[post], [project], etc"
        )
        raise HeaderMisconfigured(msg, source_path=source_path)

    page_type, properties = tables[0]
    data = PageData(page_type, source_path, properties)
    data.set("filename", source_path.name)
    data.set("markdown", markdown)
    return data


def parse_page(text: str, source_path: Path, settings: ProjectSettings) -> Page:
    """Parse a source document and return its finalized Page."""
    header, markdown = split_front_matter(text, source_path)
    return create_page_data(header, source_path, markdown).finalize(settings)


__all__ = ["create_page_data", "parse_page", "split_front_matter"]
