"""Page model and page collections for degen.

Exports
-------
- ``PageData``/``Page``: per-page property store and its finalized form.
- ``PageCollection``/``SortedPageCollection``/``Compendium``: grouping and
  query operations used by template expressions.
- ``parse_page``/``split_front_matter``: turn a source document into a Page.
"""

from .collection import Compendium, PageCollection, SortedPageCollection
from .data import Page, PageData
from .front_matter import create_page_data, parse_page, split_front_matter

__all__ = [
    "Compendium",
    "Page",
    "PageCollection",
    "PageData",
    "SortedPageCollection",
    "create_page_data",
    "parse_page",
    "split_front_matter",
]
