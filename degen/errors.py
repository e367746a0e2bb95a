"""Error taxonomy shared by ingestion, collections, and the template engine.

Every error carries a short code (``P101``, ``T200`` …) and the source path
of the page it concerns so a generation run can report failures per page.
Template errors additionally carry the template path and describe their
location as ``<page> via <template>``.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path


class DegenError(Exception):
    """Base class for every failure raised by degen."""

    code = "D000"

    def __init__(
        self,
        message: str,
        *,
        source_path: Path | str | None = None,
        template_path: Path | str | None = None,
    ) -> None:
        self.message = message
        self.source_path = source_path
        self.template_path = template_path
        super().__init__(f"[{self.code}] {message}")

    @property
    def location(self) -> str:
        """Return a human readable description of where the error occurred."""
        if self.source_path is None:
            return ""
        if self.template_path is None:
            return str(self.source_path)
        return f"{self.source_path} via {self.template_path}"


class ConfigNotFound(DegenError, FileNotFoundError):
    """Raised when the project configuration file cannot be located."""

    code = "D100"


class ProjectConfigError(DegenError, ValueError):
    """Raised when the project configuration is invalid or incomplete."""

    code = "D101"


class PageError(DegenError):
    """Base class for failures while turning a source document into a Page."""


class EmptyPage(PageError):
    code = "P101"


class MalformedHeader(PageError):
    code = "P102"


class HeaderMisconfigured(PageError):
    code = "P103"


class UnknownPropertyKey(PageError, LookupError):
    """Raised by ``PageData.get`` for keys the page does not define."""

    code = "P104"

    def __init__(self, key: str, *, source_path: Path | str | None = None) -> None:
        self.key = key
        super().__init__(
            f"key '{key}' does not exist in the header.", source_path=source_path
        )


class PropertyValidationFailed(PageError):
    code = "P105"


class RelativePathUnresolvable(PageError):
    code = "P106"


class TemplateError(DegenError):
    """Base class for failures while rendering a template against a page."""

    code = "T100"


class UndefinedVariable(TemplateError):
    """Raised when a variable token names a property the page lacks."""

    code = "T200"

    def __init__(
        self,
        variable: str,
        *,
        source_path: Path | str | None = None,
        template_path: Path | str | None = None,
    ) -> None:
        self.variable = variable
        super().__init__(
            f"Template Variable '{variable}', binds to an undefined property",
            source_path=source_path,
            template_path=template_path,
        )


class ExpressionRegexMismatch(TemplateError):
    """Raised when an expression or call-chain cannot be parsed."""

    code = "T300"


class ExpressionRuntimeError(TemplateError):
    """Raised when a parsed call-chain fails while it is being applied."""

    code = "T301"

    def __init__(
        self,
        cause: BaseException,
        *,
        source_path: Path | str | None = None,
        template_path: Path | str | None = None,
    ) -> None:
        self.cause = cause
        super().__init__(
            f"Error thrown during template expression runtime: {cause}",
            source_path=source_path,
            template_path=template_path,
        )


class UnorderedCollectionOperation(DegenError):
    """Raised when ``head``/``tail`` are requested on an unsorted collection."""

    code = "C400"


__all__ = [
    "ConfigNotFound",
    "DegenError",
    "EmptyPage",
    "ExpressionRegexMismatch",
    "ExpressionRuntimeError",
    "HeaderMisconfigured",
    "MalformedHeader",
    "PageError",
    "ProjectConfigError",
    "PropertyValidationFailed",
    "RelativePathUnresolvable",
    "TemplateError",
    "UndefinedVariable",
    "UnknownPropertyKey",
    "UnorderedCollectionOperation",
]
