"""Normalization configuration — controls which passes run and how."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class NormalizeConfig:
    """Options shared by every pass in one run."""

    # Decimal places for numeric output; <= 0 rounds to tens, hundreds...
    # None skips the rounding pass.
    precision: int | None = None

    # Multiply declared stroke-width by the scale folded out of a transform
    scale_stroke_width: bool = True

    # Pass ids to leave out of the run (e.g. {"N2.01"} keeps unused defs)
    skip_passes: set[str] = field(default_factory=set)
