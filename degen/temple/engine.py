"""Temple: the two-pass template engine.

Templates contain variable tokens, ``!{ title }`` or ``!{ title.upper() }``,
resolved against the page being rendered, and expression blocks,
``!{{ post.sort("date", reverse=true).take(3).render("!{ title }") }}``,
resolved against the Compendium. The template is split into plain text and
expression blocks once; every variable token in the plain text is resolved
before any expression block is evaluated, substituted values are never
rescanned, and variable tokens inside expression blocks are left for the
block's own callbacks.

Example
-------
>>> from degen.pages import Compendium
>>> temple = Temple(hints)  # doctest: +SKIP
>>> temple.render_string("Insert title here: !{ title }", page, Compendium())  # doctest: +SKIP
'Insert title here: I am a post'
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ

from degen.errors import (
    ExpressionRegexMismatch,
    ExpressionRuntimeError,
    TemplateError,
    UndefinedVariable,
)

from .expressions import ChainScope, ChainSyntaxError, parse_chain

if typ.TYPE_CHECKING:
    from pathlib import Path

    from degen.config import ProjectHints
    from degen.pages import Compendium, Page

logger = logging.getLogger(__name__)

EXPRESSION_OPEN = "!{{"
EXPRESSION_CLOSE = "}}"
VARIABLE_OPEN = re.compile(r"!\{(?!\{)\s*(?P<name>\w+)")
VARIABLE_CLOSE = "}"
EXPRESSION_PATTERN = re.compile(r"^(?P<collection>\w+)\s*(?P<chain>\..+)$", re.DOTALL)
_QUOTES = frozenset("\"'")


@dc.dataclass(frozen=True, slots=True)
class Segment:
    """A slice of a template: plain text, or an expression block."""

    text: str
    expression: str | None = None


def split_segments(template: str) -> list[Segment]:
    """Split ``template`` into plain text and ``!{{ … }}`` expression blocks.

    Closing braces inside quoted string arguments do not end a block. An
    unterminated block is kept as plain text.
    """
    segments: list[Segment] = []
    position = 0
    while (start := template.find(EXPRESSION_OPEN, position)) != -1:
        end = _find_block_end(template, start + len(EXPRESSION_OPEN))
        if end == -1:
            break
        stop = end + len(EXPRESSION_CLOSE)
        if start > position:
            segments.append(Segment(template[position:start]))
        segments.append(
            Segment(template[start:stop], template[start + len(EXPRESSION_OPEN) : end])
        )
        position = stop
    if position < len(template) or not segments:
        segments.append(Segment(template[position:]))
    return segments


@dc.dataclass(frozen=True, slots=True)
class VariableToken:
    """A ``!{ name }`` or ``!{ name.chain }`` token found in plain text."""

    start: int
    end: int
    name: str
    chain: str | None = None


def find_variables(template: str) -> list[VariableToken]:
    """Return the variable tokens of ``template`` in order.

    Closing braces inside quoted chain arguments do not end a token. Text
    after the name that is not a call-chain makes the token plain text.
    """
    tokens: list[VariableToken] = []
    position = 0
    while (match := VARIABLE_OPEN.search(template, position)) is not None:
        end = _find_block_end(template, match.end(), VARIABLE_CLOSE)
        chain = template[match.end() : end].strip() if end != -1 else ""
        if end == -1 or (chain and not chain.startswith(".")):
            position = match.end()
            continue
        stop = end + len(VARIABLE_CLOSE)
        tokens.append(
            VariableToken(match.start(), stop, match.group("name"), chain or None)
        )
        position = stop
    return tokens


def _find_block_end(template: str, index: int, close: str = EXPRESSION_CLOSE) -> int:
    quote: str | None = None
    while index < len(template):
        char = template[index]
        if quote:
            if char == "\\":
                index += 1
            elif char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
        elif template.startswith(close, index):
            return index
        index += 1
    return -1


def stringify(value: object) -> str:
    """Return the text substituted for a resolved value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


class Temple:
    """Render templates against a page and the Compendium."""

    def __init__(self, hints: ProjectHints) -> None:
        """Initialize the engine with the project hints.

        Parameters
        ----------
        hints : ProjectHints
            Project locations; relative ``find`` paths inside expression
            blocks resolve against ``hints.project_root``.
        """
        self.hints = hints
        self._templates: dict[Path, str] = {}

    def render(self, page: Page, compendium: Compendium) -> str:
        """Render the template bound to ``page``."""
        template_path = page.template_path()
        return self.render_string(
            self._load_template(template_path),
            page,
            compendium,
            template_path=template_path,
        )

    def render_string(
        self,
        template: str,
        page: Page,
        compendium: Compendium,
        *,
        template_path: Path | None = None,
    ) -> str:
        """Render ``template`` using ``page`` for variables and ``compendium`` for expressions.

        Raises
        ------
        UndefinedVariable
            If a variable token names a property ``page`` does not define.
        ExpressionRegexMismatch
            If an expression block or call-chain cannot be parsed.
        ExpressionRuntimeError
            If a parsed call-chain fails while it is applied.
        """
        segments = split_segments(template)
        resolved = [
            segment
            if segment.expression is not None
            else dc.replace(
                segment, text=self.render_variables(segment.text, page, template_path)
            )
            for segment in segments
        ]
        return "".join(
            segment.text
            if segment.expression is None
            else self._evaluate_expression(
                segment.expression, page, compendium, template_path
            )
            for segment in resolved
        )

    def render_variables(
        self, template: str, page: Page, template_path: Path | None = None
    ) -> str:
        """Resolve only the variable tokens of ``template`` against ``page``."""
        parts: list[str] = []
        position = 0
        for token in find_variables(template):
            parts.append(template[position : token.start])
            parts.append(self._resolve_variable(token, page, template_path))
            position = token.end
        parts.append(template[position:])
        return "".join(parts)

    def _resolve_variable(
        self, token: VariableToken, page: Page, template_path: Path | None
    ) -> str:
        if not page.has(token.name):
            raise UndefinedVariable(
                token.name, source_path=page.source_path, template_path=template_path
            )
        value = page.get(token.name)
        if token.chain:
            value = self._apply_chain(
                token.chain, value, ChainScope(current_page=page), page, template_path
            )
        return stringify(value)

    def _evaluate_expression(
        self,
        expression: str,
        page: Page,
        compendium: Compendium,
        template_path: Path | None,
    ) -> str:
        match = EXPRESSION_PATTERN.match(expression.strip())
        if match is None:
            msg = "Template Expression Regex did not match for named groups"
            raise ExpressionRegexMismatch(
                msg, source_path=page.source_path, template_path=template_path
            )
        scope = ChainScope(
            current_page=page,
            render_for=lambda text, other: self.render_variables(
                text, other, template_path
            ),
            base_dir=self.hints.project_root,
        )
        collection = compendium.get(match.group("collection"))
        result = self._apply_chain(
            match.group("chain"), collection, scope, page, template_path
        )
        return stringify(result)

    def _apply_chain(
        self,
        chain_text: str,
        receiver: object,
        scope: ChainScope,
        page: Page,
        template_path: Path | None,
    ) -> object:
        try:
            chain = parse_chain(chain_text)
        except ChainSyntaxError as exc:
            raise ExpressionRegexMismatch(
                str(exc), source_path=page.source_path, template_path=template_path
            ) from exc
        try:
            return chain.apply(receiver, scope)
        except TemplateError:
            raise
        except Exception as exc:
            raise ExpressionRuntimeError(
                exc, source_path=page.source_path, template_path=template_path
            ) from exc

    def _load_template(self, path: Path) -> str:
        if path not in self._templates:
            logger.debug("Reading template %s", path)
            self._templates[path] = path.read_text(encoding="utf-8")
        return self._templates[path]


__all__ = [
    "EXPRESSION_PATTERN",
    "VARIABLE_OPEN",
    "Segment",
    "Temple",
    "VariableToken",
    "find_variables",
    "split_segments",
    "stringify",
]
