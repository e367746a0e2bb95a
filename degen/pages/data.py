"""Per-page property store, staged finalization, and the finalized Page.

A :class:`PageData` is the builder for one source document. It holds the
fixed set of required properties (``page_type``, ``path``, ``template``,
``is_public``, ``export_path``, ``url``, ``date``) as typed slots plus a side
mapping for every other author-supplied property; both are reached through
``get``/``set``/``has``. :meth:`PageData.finalize` runs the three ordered
stages (defaults, validation, inference) and returns a :class:`Page`, so no
partially initialized Page is ever handed to callers.

Example
-------
>>> from pathlib import Path
>>> data = PageData("post", Path("/site/source/post.md"), {"title": "Hi"})
>>> data.get("title")
'Hi'
>>> data.has("url")
False
"""

from __future__ import annotations

import copy
import dataclasses as dc
import datetime as dt
import logging
import typing as typ
from pathlib import Path

from degen._constants import (
    DATE_CREATED,
    DATE_SENTINELS,
    OUTPUT_EXTENSION,
    REQUIRED_PROPERTIES,
)
from degen.errors import (
    HeaderMisconfigured,
    PropertyValidationFailed,
    UnknownPropertyKey,
)
from degen.paths import relative_to_root, resolve_path

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from degen.config import BehaviourFlags, ProjectHints, ProjectSettings

logger = logging.getLogger(__name__)

PageDate = dt.date | dt.datetime | str


@dc.dataclass(slots=True)
class RequiredProperties:
    """Typed slots for the properties every finalized page carries.

    ``None`` marks a property that has not been set yet.
    """

    page_type: str
    path: Path
    template: Path | str | None = None
    is_public: bool | None = None
    export_path: Path | None = None
    url: str | None = None
    date: PageDate | None = None


def parse_date(value: object) -> dt.date | None:
    """Return ``value`` as a date/datetime when it is one or parses as one."""
    match value:
        case dt.date():
            return value
        case str() as text:
            sanitized = text.strip()
            if not sanitized:
                return None
            if sanitized.endswith("Z"):
                sanitized = sanitized[:-1] + "+00:00"
            try:
                return dt.datetime.fromisoformat(sanitized)
            except ValueError:
                return None
        case _:
            return None


class PageData:
    """Generic, order-sensitive property store for one page."""

    __slots__ = ("_extra", "_required")

    def __init__(
        self,
        page_type: str,
        path: Path,
        properties: cabc.Mapping[str, typ.Any] | None = None,
    ) -> None:
        self._required = RequiredProperties(page_type=page_type, path=path)
        self._extra: dict[str, typ.Any] = {}
        for key, value in (properties or {}).items():
            self.set(key, value)
        # identity is fixed by the caller, never by header values
        self._required.page_type = page_type
        self._required.path = path

    @classmethod
    def _from_parts(
        cls, required: RequiredProperties, extra: dict[str, typ.Any]
    ) -> typ.Self:
        instance = cls.__new__(cls)
        instance._required = required
        instance._extra = extra
        return instance

    def set(self, key: str, value: typ.Any) -> None:  # noqa: ANN401
        """Insert or overwrite ``key`` unconditionally."""
        if key in REQUIRED_PROPERTIES:
            if value is None:
                msg = f"required property '{key}' cannot be cleared."
                raise PropertyValidationFailed(msg, source_path=self._required.path)
            setattr(self._required, key, value)
        else:
            self._extra[key] = value

    def get(self, key: str) -> typ.Any:  # noqa: ANN401
        """Return the value stored under ``key``.

        Raises
        ------
        UnknownPropertyKey
            If the page does not define ``key``.
        """
        if key in REQUIRED_PROPERTIES:
            value = getattr(self._required, key)
            if value is not None:
                return value
        elif key in self._extra:
            return self._extra[key]
        raise UnknownPropertyKey(key, source_path=self._required.path)

    def has(self, key: str) -> bool:
        """Return whether ``key`` is defined on this page."""
        if key in REQUIRED_PROPERTIES:
            return getattr(self._required, key) is not None
        return key in self._extra

    def keys(self) -> list[str]:
        """Return defined keys: required properties first, then insertion order."""
        required = [key for key in REQUIRED_PROPERTIES if self.has(key)]
        return required + list(self._extra)

    def as_dict(self) -> dict[str, typ.Any]:
        """Return a shallow snapshot of every defined property."""
        return {key: self.get(key) for key in self.keys()}

    @property
    def page_type(self) -> str:
        return self._required.page_type

    @property
    def source_path(self) -> Path:
        """Return the page identity: its canonical source path."""
        return self._required.path

    def finalize(self, settings: ProjectSettings) -> Page:
        """Run defaults, validation, and inference in order and return a Page.

        Parameters
        ----------
        settings : ProjectSettings
            Explicit project context supplying the per-page-type default
            tables, the behaviour flags, and the project hints.

        Returns
        -------
        Page
            A finalized page holding every required property.

        Raises
        ------
        PropertyValidationFailed
            If ``is_public`` is not boolean or ``date`` is neither parseable
            nor one of ``created``/``modified``.
        RelativePathUnresolvable
            If the page's path does not lie under the project source root.
        HeaderMisconfigured
            If a required property is still missing after inference.
        """
        self._populate_defaults(settings.defaults_for(self.page_type), settings.flags)
        for key in self.keys():
            self._validate_header_property(key, settings.flags)
        self._infer_properties(settings.hints)

        missing = [key for key in REQUIRED_PROPERTIES if not self.has(key)]
        if missing:
            msg = (
                f"required properties missing after defaults were applied: "
                f"{', '.join(missing)}"
            )
            raise HeaderMisconfigured(msg, source_path=self.source_path)
        return Page._from_parts(
            dc.replace(self._required), dict(self._extra)
        )

    def _populate_defaults(
        self, defaults: cabc.Mapping[str, typ.Any], flags: BehaviourFlags
    ) -> None:
        for key, value in defaults.items():
            if self.has(key):
                continue
            self.set(key, copy.deepcopy(value))
            if flags.warn_on_default:
                logger.warning(
                    "In %s - '%s', \"%s\" was not found in the header. "
                    "Loading default: %r",
                    self.page_type.upper(),
                    self.source_path,
                    key,
                    value,
                )

    def _validate_header_property(self, key: str, flags: BehaviourFlags) -> None:
        value = self.get(key)
        match key:
            case "is_public":
                if not isinstance(value, bool):
                    msg = f"is_public must be a boolean. Found: {value!r}"
                    raise PropertyValidationFailed(msg, source_path=self.source_path)
            case "date":
                if parse_date(value) is not None:
                    return
                if isinstance(value, str) and value.strip().lower() in DATE_SENTINELS:
                    return
                msg = (
                    'date property must be either "modified", "created", or in a '
                    f"parseable date format. Found: {value!r}"
                )
                raise PropertyValidationFailed(msg, source_path=self.source_path)
            case _:
                if flags.warn_on_unvalidated_key:
                    logger.warning(
                        "In %s - '%s', the key \"%s\" has no rules for parsing.",
                        self.page_type.upper(),
                        self.source_path,
                        key,
                    )

    def _infer_properties(self, hints: ProjectHints) -> None:
        relative_source = relative_to_root(self.source_path, hints.source_root)

        export_path = (hints.export_root / relative_source).with_suffix(
            OUTPUT_EXTENSION
        )
        self.set("export_path", export_path)

        url_path = export_path.relative_to(hints.export_root).as_posix()
        self.set("url", f"{hints.domain_url.rstrip('/')}/{url_path}")

        if self.has("template"):
            self.set("template", resolve_path(self.get("template"), hints.project_root))

        if self.has("date"):
            date = self.get("date")
            if isinstance(date, str) and date.strip().lower() in DATE_SENTINELS:
                self.set("date", self._file_timestamp(date.strip().lower()))

    def _file_timestamp(self, sentinel: str) -> dt.datetime:
        stats = self.source_path.stat()
        if sentinel == DATE_CREATED:
            timestamp = getattr(stats, "st_birthtime", stats.st_ctime)
        else:
            timestamp = stats.st_mtime
        return dt.datetime.fromtimestamp(timestamp, tz=dt.UTC)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.page_type!r}, {str(self.source_path)!r})"


class Page(PageData):
    """A finalized page with read conveniences for template expressions."""

    __slots__ = ()

    def title(self) -> str:
        return str(self.get("title"))

    def url(self) -> str:
        return self.get("url")

    def body(self, max_length: int | None = None) -> str:
        """Return the converted body, truncated to ``max_length`` characters."""
        return str(self.get("body"))[:max_length]

    def markdown(self) -> str:
        """Return the raw, unconverted Markdown body."""
        return str(self.get("markdown"))

    def template_path(self) -> Path:
        return self.get("template")

    def export_path(self) -> Path:
        return self.get("export_path")

    def is_public(self) -> bool:
        return self.get("is_public")

    def relative_source_path(self, source_root: Path) -> Path:
        return relative_to_root(self.source_path, source_root)

    def clone(self) -> Page:
        """Return a Page whose property bag is a deep copy of this one."""
        return Page._from_parts(
            copy.deepcopy(self._required), copy.deepcopy(self._extra)
        )


__all__ = ["Page", "PageData", "PageDate", "RequiredProperties", "parse_date"]
