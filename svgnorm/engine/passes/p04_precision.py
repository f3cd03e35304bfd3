"""N3.01 — Numeric Precision.

Round every numeric token in attribute and inline-style values, keeping
unit suffixes. Path data goes through the path grammar so arc flags and
command letters survive; attributes holding names, colors or references are
never touched. Runs only when a precision is configured.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

from svgnorm.engine.context import NormalizeContext
from svgnorm.engine.registry import Stage, normalization_pass
from svgnorm.errors import GrammarError
from svgnorm.models.diagnostics import Diagnostic
from svgnorm.svg.document import XLINK_HREF, SvgDocument, local_name
from svgnorm.svg.path_grammar import (
    ARC_FLAG_INDEXES,
    Opcode,
    PathCommand,
    parse_path,
    serialize_path,
)
from svgnorm.svg.styles import parse_style, serialize_style
from svgnorm.utils.numbers import round_number, round_tokens

logger = logging.getLogger(__name__)

# Names, references and colors: digits in these are not quantities.
SKIPPED_PROPERTIES = frozenset({
    "id",
    "class",
    "href",
    XLINK_HREF,
    "version",
    "lang",
    "xml:lang",
    "{http://www.w3.org/XML/1998/namespace}lang",
    "{http://www.w3.org/XML/1998/namespace}space",
    "font-family",
    "unicode",
    "glyph-name",
    "fill",
    "stroke",
    "color",
    "stop-color",
    "flood-color",
    "lighting-color",
    "clip-path",
    "mask",
    "filter",
    "marker-start",
    "marker-mid",
    "marker-end",
    "requiredExtensions",
    "systemLanguage",
})


def round_path(commands: list[PathCommand], precision: int) -> list[PathCommand]:
    rounded = []
    for command in commands:
        operands = tuple(
            value
            if command.opcode is Opcode.ARC_TO and index in ARC_FLAG_INDEXES
            else round_number(value, precision)
            for index, value in enumerate(command.operands)
        )
        rounded.append(PathCommand(command.opcode, command.is_relative, operands))
    return rounded


def round_style(text: str, precision: int) -> str:
    declarations = parse_style(text)
    for name, value in declarations.items():
        if name not in SKIPPED_PROPERTIES:
            declarations[name] = round_tokens(value, precision)
    return serialize_style(declarations)


def _round_element(element: ET.Element, precision: int, pass_id: str, diagnostics: list[Diagnostic]) -> None:
    for name, value in list(element.attrib.items()):
        if name in SKIPPED_PROPERTIES:
            continue
        if name == "d":
            try:
                element.set("d", serialize_path(round_path(parse_path(value), precision)))
            except GrammarError as exc:
                exc.element_id = element.get("id")
                exc.attribute = "d"
                logger.warning("%s: <%s id=%s> d: %s", pass_id, local_name(element.tag), exc.element_id, exc)
                diagnostics.append(Diagnostic.from_error(exc, pass_id))
        elif name == "style":
            element.set("style", round_style(value, precision))
        else:
            element.set(name, round_tokens(value, precision))


def round_values(document: SvgDocument, precision: int, pass_id: str = "N3.01") -> list[Diagnostic]:
    """Round numeric tokens in every attribute and inline style, in place."""
    diagnostics: list[Diagnostic] = []
    count = 0
    for element in document.iter():
        _round_element(element, precision, pass_id, diagnostics)
        count += 1
    logger.debug("%s: rounded %d elements to precision %d", pass_id, count, precision)
    return diagnostics


@normalization_pass(
    id="N3.01",
    stage=Stage.OUTPUT,
    dependencies=["N2.01"],
    description="Round numeric values to the configured precision",
)
def numeric_precision(ctx: NormalizeContext) -> None:
    if ctx.config.precision is None:
        logger.debug("N3.01: no precision configured, nothing to round")
        return
    ctx.diagnostics.extend(round_values(ctx.document, ctx.config.precision))
