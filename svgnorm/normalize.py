"""Text in, text out: parse, run every pass, serialize."""

from __future__ import annotations

from svgnorm.engine.config import NormalizeConfig
from svgnorm.engine.context import NormalizeContext
from svgnorm.engine.pipeline import cleanup
from svgnorm.svg.parser import load_svg
from svgnorm.svg.serializer import serialize_svg


def normalize_svg(svg_text: str, config: NormalizeConfig | None = None) -> tuple[str, NormalizeContext]:
    """Load, clean up and serialize. Raises SvgParseError for unreadable input."""
    ctx = cleanup(load_svg(svg_text), config)
    return serialize_svg(ctx.document), ctx
