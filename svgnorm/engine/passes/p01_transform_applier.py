"""N0.01 / N1.02 — Transform Application.

Walk the tree accumulating ancestor transforms and fold them into each
element's own geometry, stripping the transform attributes consumed on the
way. Elements whose geometry cannot absorb the matrix keep a single
``matrix(...)`` carrying their full accumulated transform.

Stroke widths and user-space gradients follow the geometry: a width the
rewritten tree would no longer inherit correctly is written on the element,
and a gradient or pattern in ``userSpaceOnUse`` units gets a copy carrying
the folded matrix.

N1.02 re-runs the same walk after dereferencing, folding the transforms that
materialized ``use`` clones brought in.
"""

from __future__ import annotations

import copy
import logging
import re
import xml.etree.ElementTree as ET
from typing import NamedTuple

from svgnorm.engine.context import NormalizeContext
from svgnorm.engine.registry import Stage, normalization_pass
from svgnorm.errors import GrammarError
from svgnorm.models.diagnostics import Diagnostic
from svgnorm.svg.document import SvgDocument, local_name, local_reference
from svgnorm.svg.path_grammar import (
    parse_path,
    parse_points,
    serialize_path,
    serialize_points,
    transform_path,
)
from svgnorm.svg.styles import (
    parse_style,
    replace_url_references,
    serialize_style,
    url_references,
)
from svgnorm.svg.transform import AffineMatrix, parse_transform
from svgnorm.utils.numbers import format_number, parse_length

logger = logging.getLogger(__name__)

# Content is drawn somewhere else (or not at all): its coordinates are
# relative to the referencing element, not to the ancestors here.
RESET_CONTAINERS = frozenset({
    "defs",
    "symbol",
    "clipPath",
    "mask",
    "marker",
    "pattern",
    "filter",
    "linearGradient",
    "radialGradient",
})

# Geometry that is never rewritten; it keeps its accumulated matrix.
FALLBACK_ELEMENTS = frozenset({"image", "use", "foreignObject", "svg"})

# Paint servers laid out in the painted element's user space: units and transform attributes.
PAINT_SERVER_ATTRIBUTES = {
    "linearGradient": ("gradientUnits", "gradientTransform"),
    "radialGradient": ("gradientUnits", "gradientTransform"),
    "pattern": ("patternUnits", "patternTransform"),
}

_LIST_SPLIT_RE = re.compile(r"[\s,]+")


# --- Geometry handlers ---
# Each returns True when the element now lives in the parent's user space,
# False when the matrix shape rules it out.


def _lengths(element: ET.Element, *names: str) -> list[float] | None:
    values = [parse_length(element.get(name), 0.0) for name in names]
    if any(v is None for v in values):
        return None
    return values


def _rewrite_path(element: ET.Element, matrix: AffineMatrix) -> bool:
    d = element.get("d")
    if d is not None:
        element.set("d", serialize_path(transform_path(parse_path(d), matrix)))
    return True


def _rewrite_points(element: ET.Element, matrix: AffineMatrix) -> bool:
    points = element.get("points")
    if points is not None:
        element.set("points", serialize_points(matrix.transform_points(parse_points(points))))
    return True


def _rewrite_line(element: ET.Element, matrix: AffineMatrix) -> bool:
    coords = _lengths(element, "x1", "y1", "x2", "y2")
    if coords is None:
        return False
    x1, y1 = matrix.transform_point(coords[0], coords[1])
    x2, y2 = matrix.transform_point(coords[2], coords[3])
    for name, value in (("x1", x1), ("y1", y1), ("x2", x2), ("y2", y2)):
        element.set(name, format_number(value))
    return True


def _rewrite_circle(element: ET.Element, matrix: AffineMatrix) -> bool:
    values = _lengths(element, "cx", "cy", "r")
    if values is None:
        return False
    cx, cy, r = values
    if matrix.is_similarity:
        cx, cy = matrix.transform_point(cx, cy)
        element.set("cx", format_number(cx))
        element.set("cy", format_number(cy))
        element.set("r", format_number(r * matrix.mean_scale))
        return True
    if matrix.is_axis_aligned:
        # Non-uniform scale: the circle turns into an ellipse.
        cx, cy = matrix.transform_point(cx, cy)
        sx, sy = matrix.scale_factors
        element.tag = element.tag[: -len("circle")] + "ellipse"
        element.attrib.pop("r", None)
        element.set("cx", format_number(cx))
        element.set("cy", format_number(cy))
        element.set("rx", format_number(abs(r) * sx))
        element.set("ry", format_number(abs(r) * sy))
        return True
    return False


def _rewrite_ellipse(element: ET.Element, matrix: AffineMatrix) -> bool:
    if not matrix.is_axis_aligned:
        return False
    values = _lengths(element, "cx", "cy", "rx", "ry")
    if values is None:
        return False
    cx, cy, rx, ry = values
    cx, cy = matrix.transform_point(cx, cy)
    sx, sy = matrix.scale_factors
    element.set("cx", format_number(cx))
    element.set("cy", format_number(cy))
    element.set("rx", format_number(abs(rx) * sx))
    element.set("ry", format_number(abs(ry) * sy))
    return True


def _rewrite_rect(element: ET.Element, matrix: AffineMatrix) -> bool:
    if not matrix.is_axis_aligned:
        return False
    values = _lengths(element, "x", "y", "width", "height")
    if values is None:
        return False
    rx = parse_length(element.get("rx"))
    ry = parse_length(element.get("ry"))
    if (element.get("rx") is not None and rx is None) or (element.get("ry") is not None and ry is None):
        return False

    x, y, width, height = values
    x0, y0 = matrix.transform_point(x, y)
    x1, y1 = matrix.transform_point(x + width, y + height)
    element.set("x", format_number(min(x0, x1)))
    element.set("y", format_number(min(y0, y1)))
    element.set("width", format_number(abs(x1 - x0)))
    element.set("height", format_number(abs(y1 - y0)))

    if rx is not None or ry is not None:
        # A missing corner radius takes the value of the other one.
        rx = ry if rx is None else rx
        ry = rx if ry is None else ry
        sx, sy = matrix.scale_factors
        element.set("rx", format_number(abs(rx) * sx))
        element.set("ry", format_number(abs(ry) * sy))
    return True


def _shift_list(text: str, offset: float) -> str | None:
    shifted = []
    for token in _LIST_SPLIT_RE.split(text.strip()):
        value = parse_length(token)
        if value is None:
            return None
        shifted.append(format_number(value + offset))
    return " ".join(shifted)


def _rewrite_text(element: ET.Element, matrix: AffineMatrix) -> bool:
    if not matrix.is_translation:
        return False
    updates: dict[str, str] = {}
    for name, offset in (("x", matrix.e), ("y", matrix.f)):
        current = element.get(name)
        if current is None or not current.strip():
            # An unpositioned tspan follows the text flow of its parent.
            if local_name(element.tag) == "text" and offset:
                updates[name] = format_number(offset)
            continue
        shifted = _shift_list(current, offset)
        if shifted is None:
            return False
        updates[name] = shifted
    for name, value in updates.items():
        element.set(name, value)
    return True


_GEOMETRY = {
    "path": _rewrite_path,
    "polygon": _rewrite_points,
    "polyline": _rewrite_points,
    "line": _rewrite_line,
    "circle": _rewrite_circle,
    "ellipse": _rewrite_ellipse,
    "rect": _rewrite_rect,
    "text": _rewrite_text,
    "tspan": _rewrite_text,
}


def _declared(element: ET.Element, name: str) -> str | None:
    """Presentation property as declared on the element, inline style over attribute."""
    declarations = parse_style(element.get("style"))
    if name in declarations:
        return declarations[name]
    return element.get(name)


def _set_declared(element: ET.Element, name: str, value: str) -> None:
    declarations = parse_style(element.get("style"))
    if name in declarations:
        declarations[name] = value
        element.set("style", serialize_style(declarations))
    else:
        element.set(name, value)


def scale_stroke_width(element: ET.Element, factor: float) -> None:
    """Multiply a declared stroke-width (attribute and inline style) by ``factor``."""
    if abs(factor - 1.0) < 1e-12:
        return
    width = parse_length(element.get("stroke-width"))
    if width is not None:
        element.set("stroke-width", format_number(width * factor))

    declarations = parse_style(element.get("style"))
    if "stroke-width" in declarations:
        width = parse_length(declarations["stroke-width"])
        if width is not None:
            declarations["stroke-width"] = format_number(width * factor)
            element.set("style", serialize_style(declarations))


class _Inherited(NamedTuple):
    """Presentation values an element inherits from its ancestors.

    ``stroke_width`` is in the element's source user units, ``output_stroke_width``
    is what the rewritten tree hands down. None means unknown.
    """

    stroke_width: float | None
    output_stroke_width: float | None
    fill: str | None
    stroke: str | None

    def below(self, element: ET.Element, stroke_width: float | None, output_stroke_width: float | None) -> _Inherited:
        fill = _declared(element, "fill")
        stroke = _declared(element, "stroke")
        return _Inherited(
            stroke_width,
            output_stroke_width,
            self.fill if fill is None else fill,
            self.stroke if stroke is None else stroke,
        )


# Initial values of the root element.
DOCUMENT_DEFAULTS = _Inherited(1.0, 1.0, "black", "none")

# Definitions are painted with the values of whatever references them.
UNKNOWN = _Inherited(None, None, None, None)


class _PaintServers:
    """User-space gradients and patterns for geometry that absorbed a matrix.

    A server in ``userSpaceOnUse`` units is laid out in the user space of the
    element it paints, so it has to move with that element's coordinates.
    Each (server, matrix) pair gets one transformed copy; the original keeps
    serving geometry that did not move.
    """

    def __init__(self, document: SvgDocument, pass_id: str) -> None:
        self.document = document
        self.pass_id = pass_id
        self._copies: dict[str, list[tuple[AffineMatrix, str]]] = {}
        # Copy id -> the matrix it already carries
        self._moved: dict[str, AffineMatrix] = {}

    def align(self, element: ET.Element, inherited: _Inherited, matrix: AffineMatrix) -> None:
        for name in ("fill", "stroke"):
            value = _declared(element, name)
            if value is None:
                value = getattr(inherited, name)
            refs = url_references(value)
            if not refs:
                continue
            copy_id = self._copy_for(refs[0], matrix)
            if copy_id is not None:
                _set_declared(element, name, replace_url_references(value, {refs[0]: copy_id}))

    def _template_value(self, server: ET.Element, name: str) -> str | None:
        """Attribute value, looked up through the ``href`` template chain."""
        seen: set[str] = set()
        node: ET.Element | None = server
        while node is not None:
            if name in node.attrib:
                return node.get(name)
            ref = local_reference(node)
            if ref is None or ref in seen:
                return None
            seen.add(ref)
            node = self.document.get_by_id(ref)
        return None

    def _copy_for(self, server_id: str, matrix: AffineMatrix) -> str | None:
        server = self.document.get_by_id(server_id)
        if server is None or matrix.is_identity:
            return None
        if server_id in self._moved and self._moved[server_id].is_close(matrix):
            return None
        names = PAINT_SERVER_ATTRIBUTES.get(local_name(server.tag))
        if names is None:
            return None
        units_name, transform_name = names
        if self._template_value(server, units_name) != "userSpaceOnUse":
            return None

        for known, copy_id in self._copies.get(server_id, []):
            if known.is_close(matrix):
                return copy_id

        try:
            current = parse_transform(self._template_value(server, transform_name))
        except GrammarError:
            return None
        if current.has_skew:
            return None

        duplicate = copy.deepcopy(server)
        duplicate.tail = None
        assigned: set[str] = set()
        for node in duplicate.iter():
            old_id = node.get("id") if isinstance(node.tag, str) else None
            if old_id:
                new_id = self.document.fresh_id(old_id, assigned)
                assigned.add(new_id)
                node.set("id", new_id)
        duplicate.set(transform_name, (matrix @ current.to_matrix()).to_svg())
        self.document.append(self.document.parent(server), duplicate)

        copy_id = duplicate.get("id")
        self._copies.setdefault(server_id, []).append((matrix, copy_id))
        self._moved[copy_id] = matrix
        logger.debug("%s: #%s copied to #%s for a moved user space", self.pass_id, server_id, copy_id)
        return copy_id


# --- Traversal ---


class _TransformApplier:
    def __init__(self, document: SvgDocument, pass_id: str, scale_strokes: bool) -> None:
        self.document = document
        self.pass_id = pass_id
        self.scale_strokes = scale_strokes
        self.paint_servers = _PaintServers(document, pass_id)
        # Stylesheet rules may stroke any element.
        self.has_stylesheet = any(local_name(el.tag) == "style" for el in document.iter())
        self.diagnostics: list[Diagnostic] = []
        self.folded = 0
        self.kept = 0

    def run(self) -> list[Diagnostic]:
        self._visit(self.document.root, AffineMatrix.identity(), DOCUMENT_DEFAULTS)
        logger.debug(
            "%s: %d elements folded, %d kept a matrix",
            self.pass_id,
            self.folded,
            self.kept,
        )
        return self.diagnostics

    def _record(self, exc: GrammarError, element: ET.Element, attribute: str) -> None:
        exc.element_id = exc.element_id or element.get("id")
        exc.attribute = exc.attribute or attribute
        logger.warning("%s: <%s id=%s> %s: %s", self.pass_id, local_name(element.tag), exc.element_id, attribute, exc)
        self.diagnostics.append(Diagnostic.from_error(exc, self.pass_id))

    def _visit_children(self, element: ET.Element, ctm: AffineMatrix, inherited: _Inherited) -> None:
        for child in list(element):
            if isinstance(child.tag, str):
                self._visit(child, ctm, inherited)

    def _settle_stroke(
        self,
        element: ET.Element,
        inherited: _Inherited,
        scale: float,
        *,
        painted_only: bool = True,
    ) -> _Inherited:
        """Give the element the stroke width it had before rewriting.

        A declared width is scaled with the geometry. An inherited one is
        written out when the rewritten tree would hand down another value.
        Returns what the element's children inherit.
        """
        if not self.scale_strokes:
            return inherited.below(element, inherited.stroke_width, inherited.output_stroke_width)

        declared = _declared(element, "stroke-width")
        if declared is not None:
            scale_stroke_width(element, scale)
            width = parse_length(declared)
            return inherited.below(element, width, None if width is None else width * scale)

        width, output = inherited.stroke_width, inherited.output_stroke_width
        if width is not None:
            needed = width * scale
            paint = _declared(element, "stroke") or inherited.stroke
            stroked = paint is None or paint.strip() != "none" or self.has_stylesheet
            if (stroked or not painted_only) and (output is None or abs(needed - output) > 1e-9):
                element.set("stroke-width", format_number(needed))
                output = needed
        return inherited.below(element, width, output)

    def _visit(self, element: ET.Element, ctm: AffineMatrix, inherited: _Inherited) -> None:
        tag = local_name(element.tag)
        own_text = element.get("transform")

        if tag in RESET_CONTAINERS:
            self._visit_children(element, AffineMatrix.identity(), UNKNOWN)
            return

        try:
            own = parse_transform(own_text)
        except GrammarError as exc:
            self._record(exc, element, "transform")
            self._keep_own(element, ctm, own_text or "", inherited)
            return

        if own.has_skew:
            self._keep_own(element, ctm, own_text or "", inherited)
            return

        full = ctm @ own.to_matrix()
        if full.is_identity:
            element.attrib.pop("transform", None)
            below = self._settle_stroke(element, inherited, 1.0)
            self._visit_children(element, full, below)
            return

        if tag in FALLBACK_ELEMENTS and element is not self.document.root:
            self._fallback(element, full, inherited)
            return

        handler = _GEOMETRY.get(tag)
        if handler is not None:
            attribute = "points" if handler is _rewrite_points else "d"
            try:
                rewritten = handler(element, full)
            except GrammarError as exc:
                self._record(exc, element, attribute)
                rewritten = False
            if not rewritten:
                self._fallback(element, full, inherited)
                return
            self.paint_servers.align(element, inherited, full)

        # Rewritten geometry or a pure container: descendants absorb the matrix.
        element.attrib.pop("transform", None)
        if handler is not None:
            below = self._settle_stroke(element, inherited, full.mean_scale)
        else:
            below = self._settle_container(element, inherited, full.mean_scale)
        self.folded += 1
        self._visit_children(element, full, below)

    def _settle_container(self, element: ET.Element, inherited: _Inherited, scale: float) -> _Inherited:
        """Scale a group's declared stroke width; leave inherited widths to its geometry."""
        if self.scale_strokes and _declared(element, "stroke-width") is not None:
            return self._settle_stroke(element, inherited, scale)
        return inherited.below(element, inherited.stroke_width, inherited.output_stroke_width)

    def _fallback(self, element: ET.Element, full: AffineMatrix, inherited: _Inherited) -> None:
        element.set("transform", full.to_svg())
        self.kept += 1
        below = self._settle_stroke(element, inherited, 1.0, painted_only=False)
        self._visit_children(element, AffineMatrix.identity(), below)

    def _keep_own(self, element: ET.Element, ctm: AffineMatrix, own_text: str, inherited: _Inherited) -> None:
        """Keep an unfoldable transform, prefixed by the ancestors' matrix."""
        if not ctm.is_identity:
            element.set("transform", f"{ctm.to_svg()} {own_text.strip()}".strip())
        self.kept += 1
        below = self._settle_stroke(element, inherited, 1.0, painted_only=False)
        self._visit_children(element, AffineMatrix.identity(), below)


def apply_transforms(
    document: SvgDocument,
    scale_strokes: bool = True,
    pass_id: str = "N0.01",
) -> list[Diagnostic]:
    """Fold accumulated transforms into element geometry, in place."""
    return _TransformApplier(document, pass_id, scale_strokes).run()


@normalization_pass(
    id="N0.01",
    stage=Stage.GEOMETRY,
    description="Fold ancestor transforms into element geometry",
)
def transform_application(ctx: NormalizeContext) -> None:
    ctx.diagnostics.extend(
        apply_transforms(ctx.document, ctx.config.scale_stroke_width, "N0.01")
    )


@normalization_pass(
    id="N1.02",
    stage=Stage.REFERENCES,
    dependencies=["N1.01"],
    description="Fold transforms carried in by materialized references",
)
def materialized_transform_application(ctx: NormalizeContext) -> None:
    ctx.diagnostics.extend(
        apply_transforms(ctx.document, ctx.config.scale_stroke_width, "N1.02")
    )
