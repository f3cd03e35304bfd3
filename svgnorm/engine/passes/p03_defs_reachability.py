"""N2.01 — Definition Reachability.

Mark-and-sweep over ``defs``: ids referenced from rendered content and from
every stylesheet seed a work-list, references inside each newly reached
element are followed in turn, and every removable definition whose subtree
holds no reachable id is deleted. Stylesheets, scripts, fonts and filters
are never deleted.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections import deque

from svgnorm.engine.context import NormalizeContext
from svgnorm.engine.registry import Stage, normalization_pass
from svgnorm.svg.document import (
    DEFINITION_CONTAINERS,
    XLINK_HREF,
    SvgDocument,
    local_name,
)
from svgnorm.svg.styles import url_references

logger = logging.getLogger(__name__)

# Element kinds an unreachable definition may be deleted as.
REMOVABLE_DEFINITIONS = frozenset(
    {
        "circle",
        "clipPath",
        "ellipse",
        "g",
        "line",
        "linearGradient",
        "marker",
        "mask",
        "path",
        "pattern",
        "polygon",
        "polyline",
        "radialGradient",
        "rect",
        "stop",
        "symbol",
    }
)


def element_references(element: ET.Element) -> set[str]:
    """Ids one element refers to through href, ``url(#id)`` or stylesheet text."""
    refs: set[str] = set()
    for name, value in element.attrib.items():
        if name in ("href", XLINK_HREF):
            value = value.strip()
            if value.startswith("#") and len(value) > 1:
                refs.add(value[1:])
        else:
            refs.update(url_references(value))
    if local_name(element.tag) == "style" and element.text:
        refs.update(url_references(element.text))
    return refs


def _rendered_elements(root: ET.Element):
    """Elements outside every definition section."""
    stack = [root]
    while stack:
        node = stack.pop()
        if not isinstance(node.tag, str) or local_name(node.tag) in DEFINITION_CONTAINERS:
            continue
        yield node
        stack.extend(reversed(list(node)))


def reachable_ids(document: SvgDocument) -> set[str]:
    """Ids transitively referenced from rendered content or any stylesheet."""
    queue: deque[str] = deque()
    for element in _rendered_elements(document.root):
        queue.extend(element_references(element))
    for element in document.iter():
        if local_name(element.tag) == "style":
            queue.extend(element_references(element))

    reached: set[str] = set()
    while queue:
        target_id = queue.popleft()
        if target_id in reached:
            continue
        reached.add(target_id)
        target = document.get_by_id(target_id)
        if target is None:
            continue
        for node in target.iter():
            if isinstance(node.tag, str):
                queue.extend(element_references(node) - reached)
    return reached


def _holds_reachable(element: ET.Element, reached: set[str]) -> bool:
    return any(node.get("id") in reached for node in element.iter() if isinstance(node.tag, str))


def purge_defs(document: SvgDocument) -> list[str]:
    """Remove unreachable definitions, in place, and return their ids. Idempotent."""
    reached = reachable_ids(document)
    removed: list[str] = []

    def sweep(container: ET.Element) -> None:
        for child in list(container):
            if not isinstance(child.tag, str):
                continue
            child_id = child.get("id")
            if child_id in reached:
                continue
            if (
                child_id
                and local_name(child.tag) in REMOVABLE_DEFINITIONS
                and not _holds_reachable(child, reached)
            ):
                document.remove(child)
                removed.append(child_id)
            else:
                sweep(child)

    sections = [el for el in document.iter() if local_name(el.tag) in DEFINITION_CONTAINERS]
    for section in sections:
        if document.is_attached(section):
            sweep(section)

    if removed:
        logger.info("Purged %d unreachable definitions: %s", len(removed), ", ".join(removed))
    return removed


@normalization_pass(
    id="N2.01",
    stage=Stage.DEFINITIONS,
    dependencies=["N1.02"],
    description="Remove definitions unreachable from rendered content",
)
def defs_reachability(ctx: NormalizeContext) -> None:
    purge_defs(ctx.document)
