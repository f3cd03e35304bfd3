"""NormalizeContext — the single mutable state object flowing through all passes.

The document is mutated in place; every pass appends what it could not
handle to ``diagnostics`` instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from svgnorm.engine.config import NormalizeConfig
from svgnorm.models.diagnostics import Diagnostic
from svgnorm.svg.document import SvgDocument


@dataclass
class NormalizeContext:
    """Shared state for one normalization run."""

    document: SvgDocument
    config: NormalizeConfig = field(default_factory=NormalizeConfig)

    # Recoverable problems found by the passes
    diagnostics: list[Diagnostic] = field(default_factory=list)

    # --- Pipeline metadata ---
    completed_passes: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)
