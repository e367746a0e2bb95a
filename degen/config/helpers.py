"""Utility helpers shared by the degen configuration loader."""

from __future__ import annotations

import collections.abc as cabc
import types
import typing as typ

from degen.errors import ProjectConfigError
from degen.paths import resolve_path

from .models import BehaviourFlags

if typ.TYPE_CHECKING:
    from pathlib import Path

_FLAG_FIELDS = (
    "warn_on_default",
    "warn_on_unvalidated_key",
    "log_writes",
    "enable_html_in_markdown",
)


def _require_mapping(value: object, section: str) -> typ.Mapping[str, typ.Any]:
    """Return ``value`` as a mapping, treating ``None`` as empty."""
    if value is None:
        return {}
    if not isinstance(value, cabc.Mapping):
        msg = f"'{section}' must be a mapping, found {type(value).__name__}."
        raise ProjectConfigError(msg)
    return value


def _require_path(
    payload: typ.Mapping[str, typ.Any], key: str, *, base: Path
) -> Path:
    """Resolve the mandatory path entry ``key`` of the ``project`` table."""
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        msg = f"'project.{key}' must be a non-empty path."
        raise ProjectConfigError(msg)
    return resolve_path(value.strip(), base)


def _build_flags(payload: typ.Mapping[str, typ.Any]) -> BehaviourFlags:
    """Build BehaviourFlags from the ``degen`` table, keeping unset defaults."""
    base = BehaviourFlags()
    flags: dict[str, typ.Any] = {
        field: _coerce_bool(payload.get(field, getattr(base, field)), field)
        for field in _FLAG_FIELDS
    }
    flags["pygments_style"] = str(payload.get("pygments_style", base.pygments_style))
    return BehaviourFlags(**flags)


def _coerce_bool(value: object, field: str) -> bool:
    if isinstance(value, bool):
        return value
    msg = f"'degen.{field}' must be true or false, found {value!r}."
    raise ProjectConfigError(msg)


def _build_page_defaults(
    payload: typ.Mapping[str, typ.Any],
) -> typ.Mapping[str, typ.Mapping[str, typ.Any]]:
    """Return a read-only mapping of page type to its default property table."""
    tables: dict[str, typ.Mapping[str, typ.Any]] = {}
    for page_type, table in payload.items():
        section = f"pages.{page_type}"
        tables[str(page_type)] = types.MappingProxyType(
            dict(_require_mapping(table, section))
        )
    return types.MappingProxyType(tables)


def _build_passthrough(
    payload: typ.Mapping[str, typ.Any], *, base: Path
) -> typ.Mapping[Path, Path]:
    """Resolve passthrough source/destination directories against ``base``."""
    return types.MappingProxyType(
        {
            resolve_path(str(source), base): resolve_path(str(dest), base)
            for source, dest in payload.items()
        }
    )


__all__ = [
    "_build_flags",
    "_build_page_defaults",
    "_build_passthrough",
    "_coerce_bool",
    "_require_mapping",
    "_require_path",
]
