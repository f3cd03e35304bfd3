"""SVG loader — raw SVG text → SvgDocument.

A document that cannot be read is fatal: SvgParseError is raised before any
pass gets to run.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

from svgnorm.errors import SvgParseError
from svgnorm.svg.document import SVG_NS, XLINK_NS, SvgDocument, local_name

logger = logging.getLogger(__name__)

# Keep familiar prefixes on output instead of ns0/ns1.
_NAMESPACES = {
    "": SVG_NS,
    "xlink": XLINK_NS,
    "inkscape": "http://www.inkscape.org/namespaces/inkscape",
    "sodipodi": "http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd",
    "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "dc": "http://purl.org/dc/elements/1.1/",
    "cc": "http://creativecommons.org/ns#",
}

for _prefix, _uri in _NAMESPACES.items():
    ET.register_namespace(_prefix, _uri)


def load_svg(svg_text: str) -> SvgDocument:
    """Parse raw SVG text into a document ready for the passes."""
    if not svg_text or not svg_text.strip():
        raise SvgParseError("Empty SVG input")

    try:
        root = ET.fromstring(svg_text)
    except ET.ParseError as e:
        raise SvgParseError(f"Unreadable SVG: {e}") from e

    if local_name(root.tag) != "svg":
        raise SvgParseError(f"Root element is <{local_name(root.tag)}>, expected <svg>")

    document = SvgDocument(root)
    logger.info("Loaded SVG: %d elements, %d ids", sum(1 for _ in document.iter()), len(document.ids()))
    return document
