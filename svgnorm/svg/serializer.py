"""Write SVG text from a normalized document."""

from __future__ import annotations

import xml.etree.ElementTree as ET

from svgnorm.svg.document import SvgDocument


def serialize_svg(document: SvgDocument, xml_declaration: bool = False) -> str:
    """Serialize the document tree back to markup."""
    text = ET.tostring(document.root, encoding="unicode")
    if xml_declaration:
        return '<?xml version="1.0" encoding="UTF-8"?>\n' + text
    return text
