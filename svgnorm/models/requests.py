"""API request models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class NormalizeRequest(BaseModel):
    svg: str = Field(..., description="Raw SVG code")
    precision: int | None = Field(
        default=None,
        description="Decimal places for numeric output (negative rounds to tens, hundreds...). "
        "Omit to use the server default, null to skip rounding.",
    )
    passes: list[str] | None = Field(
        default=None,
        description="Pass ids to run (e.g. ['N0.01', 'N3.01']); all passes when omitted",
    )
    scale_stroke_width: bool = Field(
        default=True,
        description="Scale declared stroke widths along with folded transforms",
    )
