"""Inline ``style`` declarations and ``url(#id)`` references."""

from __future__ import annotations

import re

_URL_REF_RE = re.compile(r"url\(\s*['\"]?#([^'\")\s]+)['\"]?\s*\)")


def parse_style(text: str | None) -> dict[str, str]:
    """Split ``a:b; c:d`` into an ordered name → value mapping."""
    declarations: dict[str, str] = {}
    if not text:
        return declarations
    for part in text.split(";"):
        if ":" not in part:
            continue
        name, value = part.split(":", 1)
        name = name.strip()
        if name:
            declarations[name] = value.strip()
    return declarations


def serialize_style(declarations: dict[str, str]) -> str:
    return ";".join(f"{name}:{value}" for name, value in declarations.items())


def url_references(text: str | None) -> list[str]:
    """Ids named by ``url(#id)`` in attribute, style or stylesheet text."""
    if not text:
        return []
    return _URL_REF_RE.findall(text)


def replace_url_references(text: str, id_map: dict[str, str]) -> str:
    """Point ``url(#old)`` at ``url(#new)`` for every id in ``id_map``."""

    def _swap(match: re.Match[str]) -> str:
        new_id = id_map.get(match.group(1))
        return f"url(#{new_id})" if new_id else match.group(0)

    return _URL_REF_RE.sub(_swap, text)
