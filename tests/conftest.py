"""Shared test fixtures."""

from __future__ import annotations

import pytest

from svgnorm.svg.document import SvgDocument
from svgnorm.svg.parser import load_svg


SVG_NS = "http://www.w3.org/2000/svg"


def q(tag: str) -> str:
    """Qualified SVG tag for ElementTree lookups."""
    return f"{{{SVG_NS}}}{tag}"


# Sample SVGs

CIRCLE_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" width="24" height="24" viewBox="0 0 24 24" fill="none" stroke="currentColor" stroke-width="2">
  <circle cx="12" cy="12" r="10"/>
</svg>'''

TRANSLATED_GROUP_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">
  <g id="outer" transform="translate(10,20)">
    <path id="p" d="M0,0 L10,0 L10,10 Z"/>
    <rect id="r" x="1" y="2" width="3" height="4"/>
    <g id="inner" transform="scale(2)">
      <circle id="c" cx="1" cy="1" r="1" stroke-width="2"/>
      <line id="l" x1="0" y1="0" x2="5" y2="5"/>
    </g>
  </g>
</svg>'''

ROTATED_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">
  <g transform="rotate(90)">
    <rect id="r" x="0" y="0" width="10" height="5"/>
    <path id="p" d="M0,0 H10 V5"/>
    <image id="img" x="0" y="0" width="4" height="4" href="a.png"/>
  </g>
</svg>'''

SKEWED_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">
  <g transform="translate(5,5)">
    <path id="p" transform="skewX(30)" d="M0,0 L1,1"/>
  </g>
</svg>'''

SYMBOL_USE_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink" viewBox="0 0 100 100">
  <defs>
    <symbol id="a" viewBox="0 0 10 10">
      <path id="b" d="M0,0 L1,1" style="fill:red;stroke:blue"/>
    </symbol>
  </defs>
  <use id="u" xlink:href="#a" x="5" y="6" style="fill:green"/>
</svg>'''

CYCLE_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">
  <defs>
    <g id="loop">
      <use href="#loop"/>
    </g>
  </defs>
  <use id="top" href="#loop"/>
</svg>'''

MISSING_REF_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">
  <use id="dangling" href="#nowhere"/>
</svg>'''

GRADIENT_TEMPLATE_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">
  <defs>
    <linearGradient id="base" x1="0" x2="1" gradientUnits="userSpaceOnUse">
      <stop id="s1" offset="0" stop-color="#000"/>
      <stop id="s2" offset="1" stop-color="#fff"/>
    </linearGradient>
    <linearGradient id="derived" href="#base" x2="0.5"/>
  </defs>
  <rect x="0" y="0" width="10" height="10" fill="url(#derived)"/>
</svg>'''

DEFS_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">
  <style>.x { fill: url(#styled); }</style>
  <defs>
    <linearGradient id="used"><stop offset="0"/></linearGradient>
    <linearGradient id="unused"><stop offset="0"/></linearGradient>
    <linearGradient id="chained" href="#via-chain"/>
    <linearGradient id="via-chain"><stop offset="1"/></linearGradient>
    <radialGradient id="styled"/>
    <g id="wrapper">
      <path id="deep" d="M0,0"/>
      <path id="orphan" d="M1,1"/>
    </g>
    <clipPath><rect id="anon-child" width="1" height="1"/></clipPath>
  </defs>
  <rect fill="url(#used)" stroke="url(#chained)" width="1" height="1"/>
  <use href="#deep"/>
</svg>'''

PRECISION_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" width="107.65932px" height="93.123456" viewBox="0 0 107.65932 93.123456">
  <path id="p2" d="M1.23456,2.34567 A10.55555,10.55555 0 1 0 20.12345,30.98765" fill="#1a2b3c" style="stroke-width:1.55555;stroke:#123456;opacity:0.123456"/>
  <rect id="r1" x="0.33333" y="0.66666" width="50%" height="10.55555em" fill="url(#g12)"/>
</svg>'''


@pytest.fixture
def circle_svg() -> str:
    return CIRCLE_SVG


@pytest.fixture
def translated_doc() -> SvgDocument:
    return load_svg(TRANSLATED_GROUP_SVG)


@pytest.fixture
def symbol_doc() -> SvgDocument:
    return load_svg(SYMBOL_USE_SVG)


@pytest.fixture
def defs_doc() -> SvgDocument:
    return load_svg(DEFS_SVG)
