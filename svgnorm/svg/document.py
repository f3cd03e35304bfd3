"""SvgDocument — mutable element tree with parent and id indexes.

ElementTree elements have no parent links, so the document keeps a parent
index and an id index beside the tree. Both are built once on load and
updated by the mutation helpers here; passes that mutate the tree go through
``replace``, ``remove`` and ``append`` so later lookups stay valid.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterator

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
XLINK_HREF = f"{{{XLINK_NS}}}href"

# Elements whose content is not rendered where it stands.
DEFINITION_CONTAINERS = frozenset({"defs"})


def local_name(name: object) -> str:
    """Tag or attribute name without its ``{namespace}`` prefix ("" for comments)."""
    if not isinstance(name, str):
        return ""
    return name.rsplit("}", 1)[-1]


def href_attribute(element: ET.Element) -> str | None:
    """Name of the element's href attribute (plain or xlink), if it has one."""
    if "href" in element.attrib:
        return "href"
    if XLINK_HREF in element.attrib:
        return XLINK_HREF
    return None


def local_reference(element: ET.Element) -> str | None:
    """Target id of a same-document ``href="#id"`` reference."""
    attr = href_attribute(element)
    if attr is None:
        return None
    value = element.attrib[attr].strip()
    if value.startswith("#") and len(value) > 1:
        return value[1:]
    return None


class SvgDocument:
    """Owns the element tree for one normalization run."""

    def __init__(self, root: ET.Element) -> None:
        self.root = root
        self._parents: dict[ET.Element, ET.Element] = {}
        self._ids: dict[str, ET.Element] = {}
        self._index(root, None)

    # --- Indexes ---

    def _index(self, element: ET.Element, parent: ET.Element | None) -> None:
        if parent is not None:
            self._parents[element] = parent
        for node in element.iter():
            for child in node:
                self._parents[child] = node
            node_id = node.get("id")
            if node_id and node_id not in self._ids and isinstance(node.tag, str):
                self._ids[node_id] = node

    def _unindex(self, element: ET.Element) -> None:
        for node in element.iter():
            self._parents.pop(node, None)
            node_id = node.get("id")
            if node_id and self._ids.get(node_id) is node:
                del self._ids[node_id]

    # --- Queries ---

    def iter(self) -> Iterator[ET.Element]:
        """Depth-first walk over elements, skipping comments and processing instructions."""
        for node in self.root.iter():
            if isinstance(node.tag, str):
                yield node

    def parent(self, element: ET.Element) -> ET.Element | None:
        return self._parents.get(element)

    def ancestors(self, element: ET.Element) -> Iterator[ET.Element]:
        node = self._parents.get(element)
        while node is not None:
            yield node
            node = self._parents.get(node)

    def is_attached(self, element: ET.Element) -> bool:
        return element is self.root or element in self._parents

    def in_definitions(self, element: ET.Element) -> bool:
        return any(local_name(a.tag) in DEFINITION_CONTAINERS for a in self.ancestors(element))

    def get_by_id(self, element_id: str) -> ET.Element | None:
        return self._ids.get(element_id)

    def has_id(self, element_id: str) -> bool:
        return element_id in self._ids

    def ids(self) -> set[str]:
        return set(self._ids)

    def fresh_id(self, base: str, reserved: set[str] | None = None) -> str:
        """Lowest ``<base>-<n>`` not used in the document or in ``reserved``."""
        reserved = reserved or set()
        n = 1
        while True:
            candidate = f"{base}-{n}"
            if candidate not in self._ids and candidate not in reserved:
                return candidate
            n += 1

    # --- Mutation ---

    def set_id(self, element: ET.Element, element_id: str) -> None:
        old = element.get("id")
        if old and self._ids.get(old) is element:
            del self._ids[old]
        element.set("id", element_id)
        if element_id not in self._ids and self.is_attached(element):
            self._ids[element_id] = element

    def replace(self, old: ET.Element, new: ET.Element) -> None:
        parent = self._parents.get(old)
        if parent is None:
            raise ValueError("Cannot replace the document root")
        index = list(parent).index(old)
        new.tail = old.tail
        self._unindex(old)
        parent.remove(old)
        parent.insert(index, new)
        self._index(new, parent)

    def remove(self, element: ET.Element) -> None:
        parent = self._parents.get(element)
        if parent is None:
            raise ValueError("Cannot remove the document root")
        self._unindex(element)
        parent.remove(element)

    def append(self, parent: ET.Element, child: ET.Element) -> None:
        parent.append(child)
        self._index(child, parent)
