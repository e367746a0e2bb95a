"""Page collections, sorted collections, and the Compendium registry.

A :class:`PageCollection` is an ordered, labelled sequence of Page references.
Every query returns a new collection that shares the underlying pages; only
:meth:`PageCollection.push` mutates the receiver. :meth:`PageCollection.sort`
yields a :class:`SortedPageCollection`, the only kind that supports
``head``/``tail``. The :class:`Compendium` maps page types to collections and
creates empty collections on first lookup so templates never fail on an empty
group.

Example
-------
>>> compendium = Compendium()
>>> compendium.get("post") is compendium.get("post")
True
>>> compendium.get("post").render(lambda page: page.title(), "no posts")
'no posts'
"""

from __future__ import annotations

import datetime as dt
import logging
import typing as typ
from pathlib import Path

from degen._constants import EMPTY_RENDER_RESULT
from degen.errors import UnorderedCollectionOperation

from .data import parse_date

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .data import Page

logger = logging.getLogger(__name__)


def as_datetime(value: object) -> dt.datetime | None:
    """Return ``value`` as a timezone-aware datetime, or ``None``.

    Dates, datetimes, and ISO formatted strings convert; naive values are
    taken to be UTC.
    """
    if isinstance(value, str):
        value = parse_date(value)
    if isinstance(value, dt.datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day, tzinfo=dt.UTC)
    return None


def natural_sort_keys(values: cabc.Sequence[object]) -> list[object]:
    """Return sort keys ordering ``values`` naturally.

    When every value is date-like the keys are aware datetimes and compare
    chronologically; otherwise every value keeps its own ordering, so plain
    strings compare lexicographically even when some look like dates.
    """
    dates = [as_datetime(value) for value in values]
    if all(date is not None for date in dates):
        return list(dates)
    return list(values)


class PageCollection:
    """Named ordered sequence of pages answering template queries."""

    def __init__(self, group: str, pages: cabc.Iterable[Page] | None = None) -> None:
        self.group = group
        self.pages: list[Page] = list(pages) if pages is not None else []

    def __len__(self) -> int:
        return len(self.pages)

    def __iter__(self) -> cabc.Iterator[Page]:
        return iter(self.pages)

    def __contains__(self, page: object) -> bool:
        return any(existing is page for existing in self.pages)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.group!r}, {len(self.pages)} pages)"

    def _derive(self, operation: str, pages: cabc.Iterable[Page]) -> typ.Self:
        return type(self)(f"{self.group}.{operation}()", pages)

    def push(self, page: Page) -> None:
        """Append ``page`` to this collection."""
        self.pages.append(page)

    def sort(self, key: str, *, reverse: bool = False) -> SortedPageCollection:
        """Return the pages ordered by property ``key``.

        Ties keep their prior relative order in both directions.
        """
        keys = natural_sort_keys([page.get(key) for page in self.pages])
        order = sorted(range(len(self.pages)), key=keys.__getitem__, reverse=reverse)
        ordered = [self.pages[index] for index in order]
        return SortedPageCollection(f"{self.group}.sort()", ordered)

    def take(self, count: int) -> typ.Self:
        """Return the first ``count`` pages, or all of them when fewer exist."""
        return self._derive("take", self.pages[: max(count, 0)])

    def find(self, source_path: Path | str) -> typ.Self:
        """Return the page whose source path is ``source_path``, if any."""
        target = Path(source_path).resolve()
        logger.debug("Looking for a page with the path: %s", target)
        matches = [page for page in self.pages if page.source_path == target][:1]
        return self._derive("find", matches)

    def exclude(self, current_page: Page) -> typ.Self:
        """Return every page except the one sharing ``current_page``'s path."""
        return self._derive(
            "exclude",
            (page for page in self.pages if page.source_path != current_page.source_path),
        )

    def filter(self, predicate: cabc.Callable[[Page], object]) -> typ.Self:
        return self._derive("filter", (page for page in self.pages if predicate(page)))

    def map(self, transform: cabc.Callable[[Page], Page]) -> typ.Self:
        """Apply ``transform`` to the shared page references."""
        return self._derive("map", (transform(page) for page in self.pages))

    def map_new(self, transform: cabc.Callable[[Page], Page]) -> typ.Self:
        """Apply ``transform`` to deep copies, leaving the originals untouched."""
        return self._derive("mapNew", (transform(page.clone()) for page in self.pages))

    def render(
        self, callback: cabc.Callable[[Page], str], fallback: str | None = None
    ) -> str:
        """Join ``callback(page)`` for every page with newlines.

        An empty collection renders as ``fallback`` when given, otherwise as
        the literal ``"null"``.
        """
        logger.debug("Rendering group: %s", self.group)
        if not self.pages:
            return fallback if fallback is not None else EMPTY_RENDER_RESULT
        return "\n".join(str(callback(page)) for page in self.pages)

    def head(self, count: int = 1) -> SortedPageCollection:
        msg = f"head() requires a sorted collection; '{self.group}' is unordered."
        raise UnorderedCollectionOperation(msg)

    def tail(self, count: int = 1) -> SortedPageCollection:
        msg = f"tail() requires a sorted collection; '{self.group}' is unordered."
        raise UnorderedCollectionOperation(msg)

    def describe(self, indent: int = 0) -> str:
        """Return one line per page naming its file and page type."""
        prefix = " " * indent
        return "".join(
            f"{prefix}Page '{page.source_path.name}' - {page.page_type}\n"
            for page in self.pages
        )


class SortedPageCollection(PageCollection):
    """A PageCollection whose order is a sort order."""

    def head(self, count: int = 1) -> SortedPageCollection:
        """Return the first ``count`` pages."""
        return self._derive("head", self.pages[: max(count, 0)])

    def tail(self, count: int = 1) -> SortedPageCollection:
        """Return the last ``count`` pages."""
        if count <= 0:
            return self._derive("tail", [])
        return self._derive("tail", self.pages[-count:])


class Compendium:
    """Registry mapping a page type to its PageCollection."""

    def __init__(
        self, collections: cabc.Mapping[str, PageCollection] | None = None
    ) -> None:
        self.collections: dict[str, PageCollection] = dict(collections or {})

    def __contains__(self, name: object) -> bool:
        return name in self.collections

    def add_page(self, page: Page) -> None:
        """Insert ``page`` into the collection named by its page type.

        A page already present in that collection is not added twice.
        """
        collection = self.get(page.page_type)
        if any(existing.source_path == page.source_path for existing in collection):
            return
        collection.push(page)

    def remove_page(self, page: Page) -> None:
        """Drop every page sharing ``page``'s source path from its collection."""
        collection = self.get(page.page_type)
        collection.pages[:] = [
            existing
            for existing in collection
            if existing.source_path != page.source_path
        ]

    def get(self, name: str) -> PageCollection:
        """Return the collection for ``name``, creating an empty one if absent."""
        if name not in self.collections:
            self.collections[name] = PageCollection(name)
        return self.collections[name]

    def describe(self) -> str:
        return "".join(
            f"collection '{name}':\n{collection.describe(3)}"
            for name, collection in self.collections.items()
        )


__all__ = [
    "Compendium",
    "PageCollection",
    "SortedPageCollection",
    "as_datetime",
    "natural_sort_keys",
]
