"""Normalization errors.

Recoverable errors are raised where they are detected and caught at the
per-element boundary of a pass, where they become Diagnostic records.
SvgParseError is the only fatal one: it surfaces before any pass runs.
"""

from __future__ import annotations


class NormalizeError(ValueError):
    """Base error with a stable code for diagnostics and API mapping."""

    code = "error"
    severity = "error"

    def __init__(
        self,
        message: str,
        *,
        element_id: str | None = None,
        attribute: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.element_id = element_id
        self.attribute = attribute

    def __str__(self) -> str:
        return self.message


class GrammarError(NormalizeError):
    """Malformed path, point list or transform text in one attribute."""

    code = "grammar"


class ReferenceCycleError(NormalizeError):
    """A reference chain leads back to an element already being resolved."""

    code = "reference_cycle"


class MissingReferenceError(NormalizeError):
    """A by-id reference names an id that is not in the document."""

    code = "missing_reference"
    severity = "warning"


class SvgParseError(NormalizeError):
    """The input text is not a readable SVG document."""

    code = "parse"
