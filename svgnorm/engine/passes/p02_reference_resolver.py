"""N1.01 — Reference Dereferencing.

Replace every ``<use href="#id">`` with a materialized copy of its target:
the clone gets fresh collision-free ids, the ``use`` element's attributes
override the clone root's, and ``x``/``y`` become a translation. Gradient
and pattern templates (``href`` between paint servers) inherit what they do
not declare themselves.

A visited-id chain is threaded through the recursion so reference cycles
abort their branch with a diagnostic instead of recursing forever.
"""

from __future__ import annotations

import copy
import logging
import xml.etree.ElementTree as ET

from svgnorm.engine.context import NormalizeContext
from svgnorm.engine.registry import Stage, normalization_pass
from svgnorm.errors import (
    GrammarError,
    MissingReferenceError,
    NormalizeError,
    ReferenceCycleError,
)
from svgnorm.models.diagnostics import Diagnostic
from svgnorm.svg.document import (
    XLINK_HREF,
    SvgDocument,
    href_attribute,
    local_name,
    local_reference,
)
from svgnorm.svg.styles import parse_style, replace_url_references, serialize_style
from svgnorm.utils.numbers import format_number, parse_length

logger = logging.getLogger(__name__)

TEMPLATE_ELEMENTS = frozenset({"linearGradient", "radialGradient", "pattern"})

# Attributes a gradient inherits from a template of the other gradient kind.
_SHARED_GRADIENT_ATTRIBUTES = frozenset({"gradientUnits", "gradientTransform", "spreadMethod"})

# Attributes of <use> that describe the reference itself, not the clone.
_USE_ONLY = frozenset({"href", XLINK_HREF, "x", "y", "width", "height", "transform", "id"})

# Viewport attributes that mean nothing once a symbol becomes a group.
_SYMBOL_ONLY = ("viewBox", "preserveAspectRatio", "refX", "refY")


def _rename_tag(element: ET.Element, old: str, new: str) -> None:
    element.tag = element.tag[: -len(old)] + new


class _ReferenceResolver:
    def __init__(self, document: SvgDocument, pass_id: str) -> None:
        self.document = document
        self.pass_id = pass_id
        self.diagnostics: list[Diagnostic] = []
        self.materialized = 0
        self._failed_templates: set[ET.Element] = set()

    def run(self) -> list[Diagnostic]:
        snapshot = list(self.document.iter())

        for element in snapshot:
            if local_name(element.tag) in TEMPLATE_ELEMENTS and self.document.is_attached(element):
                self._resolve_template(element, frozenset())

        for element in snapshot:
            if local_name(element.tag) == "use" and self.document.is_attached(element):
                self._resolve_use(element, frozenset())

        logger.debug("%s: %d references materialized", self.pass_id, self.materialized)
        return self.diagnostics

    def _record(self, exc: NormalizeError, element: ET.Element) -> None:
        exc.element_id = exc.element_id or element.get("id")
        exc.attribute = exc.attribute or href_attribute(element)
        logger.warning("%s: <%s id=%s> %s", self.pass_id, local_name(element.tag), exc.element_id, exc)
        self.diagnostics.append(Diagnostic.from_error(exc, self.pass_id))

    # --- Cloning ---

    def _clone(self, target: ET.Element, root_id: str | None = None) -> ET.Element:
        """Deep copy with fresh ids, references inside the copy pointing at the copies.

        ``root_id`` names the copy's root instead of a fresh id.
        """
        clone = copy.deepcopy(target)
        clone.tail = None

        id_map: dict[str, str] = {}
        for node in clone.iter():
            old_id = node.get("id") if isinstance(node.tag, str) else None
            if node is clone and root_id:
                id_map[old_id or root_id] = root_id
                node.set("id", root_id)
            elif old_id:
                new_id = self.document.fresh_id(old_id, set(id_map.values()))
                id_map[old_id] = new_id
                node.set("id", new_id)

        if id_map:
            for node in clone.iter():
                if not isinstance(node.tag, str):
                    continue
                for name, value in list(node.attrib.items()):
                    if name in ("href", XLINK_HREF):
                        ref = value.strip()
                        if ref.startswith("#") and ref[1:] in id_map:
                            node.set(name, f"#{id_map[ref[1:]]}")
                    elif "url(" in value:
                        node.set(name, replace_url_references(value, id_map))
                if local_name(node.tag) == "style" and node.text:
                    node.text = replace_url_references(node.text, id_map)
        return clone

    # --- <use> ---

    def _is_cycle(self, use: ET.Element, target: ET.Element, target_id: str, chain: frozenset[str]) -> bool:
        if target_id in chain or target is use:
            return True
        return any(ancestor is target for ancestor in self.document.ancestors(use))

    def _resolve_use(self, use: ET.Element, chain: frozenset[str]) -> None:
        target_id = local_reference(use)
        if target_id is None:
            return

        target = self.document.get_by_id(target_id)
        if target is None:
            self._record(MissingReferenceError(f"No element with id {target_id!r}"), use)
            return
        if self._is_cycle(use, target, target_id, chain):
            self._record(ReferenceCycleError(f"Reference to {target_id!r} leads back to itself"), use)
            return

        x = parse_length(use.get("x"), 0.0)
        y = parse_length(use.get("y"), 0.0)
        if x is None or y is None:
            self._record(
                GrammarError(f"Unsupported use offset x={use.get('x')!r} y={use.get('y')!r}", attribute="x"),
                use,
            )
            return

        clone = self._clone(target, use.get("id"))
        if local_name(clone.tag) == "symbol":
            _rename_tag(clone, "symbol", "g")
            for name in _SYMBOL_ONLY:
                clone.attrib.pop(name, None)

        clone_transform = clone.get("transform")
        for name, value in use.attrib.items():
            if name in _USE_ONLY:
                continue
            if name == "style":
                merged = parse_style(clone.get("style"))
                merged.update(parse_style(value))
                clone.set("style", serialize_style(merged))
            else:
                clone.set(name, value)

        parts = [use.get("transform", "").strip()]
        if x or y:
            parts.append(f"translate({format_number(x)},{format_number(y)})")
        parts.append((clone_transform or "").strip())
        transform = " ".join(p for p in parts if p)
        if transform:
            clone.set("transform", transform)
        else:
            clone.attrib.pop("transform", None)

        self.document.replace(use, clone)
        self.materialized += 1
        logger.debug("%s: materialized #%s", self.pass_id, target_id)

        nested_chain = chain | {target_id}
        for nested in list(clone.iter()):
            if isinstance(nested.tag, str) and local_name(nested.tag) == "use" and self.document.is_attached(nested):
                self._resolve_use(nested, nested_chain)

    # --- Paint server templates ---

    def _resolve_template(self, element: ET.Element, chain: frozenset[str]) -> bool:
        """Inherit from the referenced template. Returns False when the reference stays."""
        if element in self._failed_templates:
            return False
        target_id = local_reference(element)
        if target_id is None:
            return True

        element_id = element.get("id")
        if element_id:
            chain = chain | {element_id}

        target = self.document.get_by_id(target_id)
        if target is None:
            self._failed_templates.add(element)
            self._record(MissingReferenceError(f"No element with id {target_id!r}"), element)
            return False
        if target_id in chain or target is element:
            self._failed_templates.add(element)
            self._record(ReferenceCycleError(f"Template chain through {target_id!r} is circular"), element)
            return False

        kind, target_kind = local_name(element.tag), local_name(target.tag)
        if target_kind not in TEMPLATE_ELEMENTS or (kind == "pattern") != (target_kind == "pattern"):
            logger.debug("%s: #%s is not a template for <%s>", self.pass_id, target_id, kind)
            return True

        if not self._resolve_template(target, chain):
            self._failed_templates.add(element)
            return False

        for name, value in target.attrib.items():
            if name in ("id", "href", XLINK_HREF) or name in element.attrib:
                continue
            if kind == target_kind or name in _SHARED_GRADIENT_ATTRIBUTES:
                element.set(name, value)

        if not any(isinstance(child.tag, str) for child in element):
            for child in target:
                if isinstance(child.tag, str):
                    self.document.append(element, self._clone(child))

        del element.attrib[href_attribute(element)]
        self.materialized += 1
        return True


def dereference(document: SvgDocument, pass_id: str = "N1.01") -> list[Diagnostic]:
    """Replace by-id references with materialized copies, in place."""
    return _ReferenceResolver(document, pass_id).run()


@normalization_pass(
    id="N1.01",
    stage=Stage.REFERENCES,
    dependencies=["N0.01"],
    description="Materialize use references and paint server templates",
)
def reference_dereferencing(ctx: NormalizeContext) -> None:
    ctx.diagnostics.extend(dereference(ctx.document, "N1.01"))
