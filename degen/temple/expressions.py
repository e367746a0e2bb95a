"""Restricted interpreter for template call-chains.

Call-chains are the dotted suffixes that follow a variable name
(``!{ title.upper() }``) or a collection name
(``!{{ post.sort("date", reverse=true).take(3).render("!{ title }") }}``).
Chains are parsed with :mod:`ast` and accepted only when every node belongs to
a small grammar: attribute access and calls naming a whitelisted operation,
with literal arguments (strings, numbers, ``true``/``false``/``null``) or the
bound name ``current_page``. Anything else is rejected while parsing, before
any operation runs.

Example
-------
>>> chain = parse_chain(".substring(0, 5).upper()")
>>> [call.name for call in chain.calls]
['substring', 'upper']
>>> chain.apply("template engine", ChainScope())
'TEMPL'
"""

from __future__ import annotations

import ast
import collections.abc as cabc
import dataclasses as dc
import datetime as dt
import functools
import re
import typing as typ
from pathlib import Path

from degen._constants import MAX_CHAIN_CALLS, MAX_EXPRESSION_LENGTH, MAX_VALUE_LENGTH
from degen.pages import Page, PageCollection
from degen.paths import resolve_path

_ROOT = "__receiver__"
CURRENT_PAGE = "current_page"
_LITERAL_NAMES: dict[str, object] = {
    "true": True,
    "false": False,
    "null": None,
    "True": True,
    "False": False,
    "None": None,
}
_MISSING = object()
_NUMBER_PATTERN = re.compile(r"\d+")


class ChainSyntaxError(ValueError):
    """Raised when a call-chain falls outside the supported grammar."""


@dc.dataclass(frozen=True, slots=True)
class Binding:
    """Placeholder for a name bound when the chain is applied."""

    name: str


@dc.dataclass(frozen=True, slots=True)
class Call:
    """One whitelisted operation with literal or bound arguments."""

    name: str
    args: tuple[object, ...] = ()
    kwargs: tuple[tuple[str, object], ...] = ()


@dc.dataclass(slots=True)
class ChainScope:
    """Values and hooks available to a chain while it is applied.

    Attributes
    ----------
    current_page : Page or None
        Page bound to ``current_page`` inside the chain.
    render_for : callable, optional
        Renders a variable template against a page; used by ``render``,
        ``map``, and ``mapNew`` callbacks.
    base_dir : Path or None
        Directory that relative ``find`` paths resolve against.
    """

    current_page: Page | None = None
    render_for: cabc.Callable[[str, Page], str] | None = None
    base_dir: Path | None = None

    def resolve(self, value: object) -> object:
        if not isinstance(value, Binding):
            return value
        if self.current_page is None:
            msg = f"'{value.name}' is not bound in this context"
            raise NameError(msg)
        return self.current_page

    def render(self, template: str, page: Page) -> str:
        if self.render_for is None:
            msg = "page callbacks are not available in this context"
            raise TypeError(msg)
        return self.render_for(template, page)


@dc.dataclass(frozen=True, slots=True)
class CallChain:
    """A parsed, validated sequence of operations."""

    source: str
    calls: tuple[Call, ...]

    def apply(self, receiver: object, scope: ChainScope) -> object:
        """Apply every call in order, starting from ``receiver``."""
        value = receiver
        for call in self.calls:
            args = [scope.resolve(arg) for arg in call.args]
            kwargs = {key: scope.resolve(arg) for key, arg in call.kwargs}
            value = _invoke(value, call.name, scope, args, kwargs)
            if isinstance(value, str):
                _check_length(len(value), call.name)
        return value


@functools.lru_cache(maxsize=512)
def parse_chain(source: str) -> CallChain:
    """Parse a dotted call-chain such as ``.sort("date").take(3)``.

    Raises
    ------
    ChainSyntaxError
        If the chain is too long, is not valid syntax, names an operation
        outside the whitelist, or passes a non-literal argument.
    """
    text = source.strip()
    if len(text) > MAX_EXPRESSION_LENGTH:
        msg = f"expression exceeds {MAX_EXPRESSION_LENGTH} characters"
        raise ChainSyntaxError(msg)
    if not text.startswith("."):
        msg = f"call-chain must start with '.', found {text[:1]!r}"
        raise ChainSyntaxError(msg)
    try:
        tree = ast.parse(f"({_ROOT}{text})", mode="eval")
    except (SyntaxError, ValueError) as exc:
        msg = f"invalid call-chain {text!r}: {exc}"
        raise ChainSyntaxError(msg) from exc

    calls: list[Call] = []
    node = tree.body
    while not (isinstance(node, ast.Name) and node.id == _ROOT):
        match node:
            case ast.Call(func=ast.Attribute(value=inner, attr=name)):
                calls.append(_build_call(name, node))
            case ast.Attribute(value=inner, attr=name):
                calls.append(Call(_check_operation(name)))
            case _:
                msg = f"unsupported syntax in call-chain {text!r}"
                raise ChainSyntaxError(msg)
        if len(calls) > MAX_CHAIN_CALLS:
            msg = f"call-chain exceeds {MAX_CHAIN_CALLS} operations"
            raise ChainSyntaxError(msg)
        node = inner
    calls.reverse()
    return CallChain(source=text, calls=tuple(calls))


def _build_call(name: str, node: ast.Call) -> Call:
    args = tuple(_literal(arg) for arg in node.args)
    kwargs: list[tuple[str, object]] = []
    for keyword in node.keywords:
        if keyword.arg is None:
            msg = "'**' arguments are not supported in call-chains"
            raise ChainSyntaxError(msg)
        kwargs.append((keyword.arg, _literal(keyword.value)))
    return Call(_check_operation(name), args, tuple(kwargs))


def _check_operation(name: str) -> str:
    if name not in COLLECTION_OPERATIONS and name not in VALUE_OPERATIONS:
        msg = f"unknown operation '{name}'"
        raise ChainSyntaxError(msg)
    return name


def _literal(node: ast.expr) -> object:
    match node:
        case ast.Constant(value=bool() | int() | float() | str() | None as value):
            return value
        case ast.UnaryOp(op=ast.USub(), operand=ast.Constant(value=int() | float() as value)):
            return -value
        case ast.Name(id=name) if name in _LITERAL_NAMES:
            return _LITERAL_NAMES[name]
        case ast.Name(id=name) if name == CURRENT_PAGE:
            return Binding(name)
        case _:
            msg = f"unsupported argument {ast.unparse(node)!r}; only literals are allowed"
            raise ChainSyntaxError(msg)


def _invoke(
    receiver: object,
    name: str,
    scope: ChainScope,
    args: list[object],
    kwargs: dict[str, object],
) -> object:
    if isinstance(receiver, PageCollection):
        operation = COLLECTION_OPERATIONS.get(name)
    else:
        operation = VALUE_OPERATIONS.get(name)
    if operation is None:
        msg = f"operation '{name}' does not apply to {type(receiver).__name__}"
        raise TypeError(msg)
    return operation(receiver, scope, *args, **kwargs)


def _check_length(size: int, label: str) -> None:
    if size > MAX_VALUE_LENGTH:
        msg = f"{label} would produce {size} characters; the limit is {MAX_VALUE_LENGTH}"
        raise ValueError(msg)


def _expect(value: object, kind: type | tuple[type, ...], label: str) -> typ.Any:  # noqa: ANN401
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        msg = f"{label} has the wrong type: {value!r}"
        raise TypeError(msg)
    return value


# Collection operations


def _sort(
    collection: PageCollection, _scope: ChainScope, key: str, reverse: bool = False
) -> PageCollection:
    return collection.sort(
        _expect(key, str, "sort key"), reverse=_expect(reverse, bool, "reverse")
    )


def _take(collection: PageCollection, _scope: ChainScope, count: int) -> PageCollection:
    return collection.take(_expect(count, int, "take count"))


def _head(collection: PageCollection, _scope: ChainScope, count: int = 1) -> PageCollection:
    return collection.head(_expect(count, int, "head count"))


def _tail(collection: PageCollection, _scope: ChainScope, count: int = 1) -> PageCollection:
    return collection.tail(_expect(count, int, "tail count"))


def _find(collection: PageCollection, scope: ChainScope, path: str) -> PageCollection:
    return collection.find(resolve_path(_expect(path, str, "find path"), scope.base_dir))


def _exclude(collection: PageCollection, _scope: ChainScope, page: Page) -> PageCollection:
    return collection.exclude(_expect(page, Page, "exclude page"))


def _filter(
    collection: PageCollection, _scope: ChainScope, key: str, value: object = _MISSING
) -> PageCollection:
    _expect(key, str, "filter key")

    def predicate(page: Page) -> bool:
        if not page.has(key):
            return False
        if value is _MISSING:
            return bool(page.get(key))
        return page.get(key) == value

    return collection.filter(predicate)


def _assigner(scope: ChainScope, key: str, template: str) -> cabc.Callable[[Page], Page]:
    _expect(key, str, "map key")
    _expect(template, str, "map template")

    def assign(page: Page) -> Page:
        page.set(key, scope.render(template, page))
        return page

    return assign


def _map(
    collection: PageCollection, scope: ChainScope, key: str, template: str
) -> PageCollection:
    return collection.map(_assigner(scope, key, template))


def _map_new(
    collection: PageCollection, scope: ChainScope, key: str, template: str
) -> PageCollection:
    return collection.map_new(_assigner(scope, key, template))


def _render(
    collection: PageCollection,
    scope: ChainScope,
    template: str,
    fallback: str | None = None,
) -> str:
    _expect(template, str, "render template")
    if fallback is not None:
        _expect(fallback, str, "render fallback")
    return collection.render(lambda page: scope.render(template, page), fallback)


def _count(collection: PageCollection, _scope: ChainScope) -> int:
    return len(collection)


COLLECTION_OPERATIONS: dict[str, cabc.Callable[..., object]] = {
    "sort": _sort,
    "take": _take,
    "head": _head,
    "tail": _tail,
    "find": _find,
    "exclude": _exclude,
    "filter": _filter,
    "map": _map,
    "mapNew": _map_new,
    "map_new": _map_new,
    "render": _render,
    "count": _count,
}


# Value operations


def _text(value: object) -> str:
    return value if isinstance(value, str) else str(value)


def _substring(
    value: object, _scope: ChainScope, start: int, end: int | None = None
) -> str:
    _expect(start, int, "substring start")
    if end is not None:
        _expect(end, int, "substring end")
    return _text(value)[start:end]


def _truncate(value: object, _scope: ChainScope, length: int, suffix: str = "") -> str:
    text = _text(value)
    if len(text) <= _expect(length, int, "truncate length"):
        return text
    return text[:length] + _expect(suffix, str, "truncate suffix")


def _replace(value: object, _scope: ChainScope, old: str, new: str) -> str:
    text = _text(value)
    _expect(old, str, "replace target")
    _expect(new, str, "replacement")
    # an empty target matches between every character and at both ends
    matches = text.count(old) if old else len(text) + 1
    _check_length(len(text) + matches * (len(new) - len(old)), "replace")
    return text.replace(old, new)


def _length(value: object, _scope: ChainScope) -> int:
    if isinstance(value, cabc.Sized):
        return len(value)
    return len(_text(value))


def _format(value: object, _scope: ChainScope, pattern: str) -> str:
    _expect(pattern, str, "format pattern")
    for number in _NUMBER_PATTERN.findall(pattern):
        _check_length(int(number), "format width")
    if isinstance(value, dt.date):
        return value.strftime(pattern)
    return format(value, pattern)


def _iso(value: object, _scope: ChainScope) -> str:
    if isinstance(value, dt.date):
        return value.isoformat()
    return _text(value)


def _path_part(part: str) -> cabc.Callable[[object, ChainScope], str]:
    def operation(value: object, _scope: ChainScope) -> str:
        return str(getattr(Path(_text(value)), part))

    return operation


VALUE_OPERATIONS: dict[str, cabc.Callable[..., object]] = {
    "upper": lambda value, _scope: _text(value).upper(),
    "lower": lambda value, _scope: _text(value).lower(),
    "capitalize": lambda value, _scope: _text(value).capitalize(),
    "strip": lambda value, _scope: _text(value).strip(),
    "substring": _substring,
    "truncate": _truncate,
    "replace": _replace,
    "length": _length,
    "format": _format,
    "iso": _iso,
    "name": _path_part("name"),
    "stem": _path_part("stem"),
    "suffix": _path_part("suffix"),
    "parent": _path_part("parent"),
}


__all__ = [
    "COLLECTION_OPERATIONS",
    "CURRENT_PAGE",
    "VALUE_OPERATIONS",
    "Binding",
    "Call",
    "CallChain",
    "ChainScope",
    "ChainSyntaxError",
    "parse_chain",
]
