"""Diagnostic records collected while normalizing a document."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from svgnorm.errors import NormalizeError


class Diagnostic(BaseModel):
    """One recoverable problem found by a pass."""

    code: str
    severity: Literal["warning", "error"] = "warning"
    pass_id: str = ""
    element_id: str | None = None
    attribute: str | None = None
    message: str

    @classmethod
    def from_error(cls, error: NormalizeError, pass_id: str = "") -> Diagnostic:
        return cls(
            code=error.code,
            severity=error.severity,
            pass_id=pass_id,
            element_id=error.element_id,
            attribute=error.attribute,
            message=error.message,
        )
