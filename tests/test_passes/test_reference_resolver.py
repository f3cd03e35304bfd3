"""Tests for reference dereferencing (N1.01)."""

from __future__ import annotations

from svgnorm.engine.passes.p02_reference_resolver import dereference
from svgnorm.svg.document import XLINK_HREF, local_name
from svgnorm.svg.parser import load_svg
from svgnorm.svg.serializer import serialize_svg
from tests.conftest import (
    CIRCLE_SVG,
    CYCLE_SVG,
    GRADIENT_TEMPLATE_SVG,
    MISSING_REF_SVG,
    TRANSLATED_GROUP_SVG,
    q,
)


def _svg(body: str) -> str:
    return (
        '<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink" '
        f'viewBox="0 0 100 100">{body}</svg>'
    )


class TestUse:
    def test_symbol_materialized(self, symbol_doc):
        before = symbol_doc.ids()
        diagnostics = dereference(symbol_doc)
        assert diagnostics == []

        group = symbol_doc.get_by_id("u")
        assert local_name(group.tag) == "g"
        assert group.get(XLINK_HREF) is None
        assert group.get("viewBox") is None
        assert group.get("transform") == "translate(5,6)"
        assert group.get("style") == "fill:green"

        child = group.find(q("path"))
        assert child is not None
        assert child.get("id") != "b"
        assert child.get("id") not in before
        assert symbol_doc.get_by_id(child.get("id")) is child
        # Target stays in place for the purge pass to judge
        assert symbol_doc.get_by_id("a") is not None
        assert not list(symbol_doc.root.iter(q("use")))

    def test_use_attributes_win(self):
        doc = load_svg(_svg(
            '<defs><rect id="r" width="1" height="1" fill="red" style="stroke:blue;opacity:0.5"/></defs>'
            '<use href="#r" fill="green" style="opacity:1"/>'
        ))
        dereference(doc)
        clone = [el for el in doc.iter() if local_name(el.tag) == "rect"][-1]
        assert clone.get("fill") == "green"
        assert clone.get("style") == "stroke:blue;opacity:1"
        assert clone.get("id") == "r-1"

    def test_transform_order(self):
        doc = load_svg(_svg(
            '<defs><path id="p" transform="scale(2)" d="M0 0"/></defs>'
            '<use id="u" href="#p" transform="rotate(10)" x="3"/>'
        ))
        dereference(doc)
        assert doc.get_by_id("u").get("transform") == "rotate(10) translate(3,0) scale(2)"

    def test_intra_clone_references_rewritten(self):
        doc = load_svg(_svg(
            '<defs><g id="icon"><linearGradient id="grad"/><rect id="box" fill="url(#grad)"/></g></defs>'
            '<use href="#icon"/><use href="#icon"/>'
        ))
        dereference(doc)
        clones = [el for el in doc.root if local_name(el.tag) == "g"]
        assert [g.get("id") for g in clones] == ["icon-1", "icon-2"]
        fills = [g.find(q("rect")).get("fill") for g in clones]
        assert fills == ["url(#grad-1)", "url(#grad-2)"]

    def test_nested_use_resolved(self):
        doc = load_svg(_svg(
            '<defs><circle id="dot" r="1"/><g id="pair"><use href="#dot" x="1"/><use href="#dot" x="2"/></g></defs>'
            '<use id="top" href="#pair"/>'
        ))
        dereference(doc)
        top = doc.get_by_id("top")
        circles = list(top.iter(q("circle")))
        assert len(circles) == 2
        assert not list(top.iter(q("use")))

    def test_use_of_use(self):
        doc = load_svg(_svg('<defs><rect id="r"/></defs><use id="a" href="#r"/><use id="b" href="#a"/>'))
        dereference(doc)
        assert local_name(doc.get_by_id("b").tag) == "rect"


class TestFailures:
    def test_cycle(self):
        doc = load_svg(CYCLE_SVG)
        diagnostics = dereference(doc)
        assert diagnostics
        assert {d.code for d in diagnostics} == {"reference_cycle"}
        # The offending reference stays in the tree
        assert any(el.get("href") == "#loop" for el in doc.iter())

    def test_mutual_cycle(self):
        doc = load_svg(
            _svg(
                '<defs><g id="a"><use href="#b"/></g><g id="b"><use href="#a"/></g></defs>'
                '<use id="top" href="#a"/>'
            )
        )
        diagnostics = dereference(doc)
        assert diagnostics
        assert {d.code for d in diagnostics} == {"reference_cycle"}
        # Materialized down to the point where the loop closes; that reference stays
        top = doc.get_by_id("top")
        assert local_name(top.tag) == "g"
        assert any(local_name(el.tag) == "use" for el in top.iter())

    def test_missing_target(self):
        doc = load_svg(MISSING_REF_SVG)
        diagnostics = dereference(doc)
        assert len(diagnostics) == 1
        assert diagnostics[0].code == "missing_reference"
        assert diagnostics[0].severity == "warning"
        assert diagnostics[0].element_id == "dangling"
        assert doc.get_by_id("dangling") is not None

    def test_external_reference_ignored(self):
        doc = load_svg(_svg('<use id="u" href="other.svg#x"/>'))
        assert dereference(doc) == []
        assert local_name(doc.get_by_id("u").tag) == "use"


class TestTemplates:
    def test_gradient_inherits(self):
        doc = load_svg(GRADIENT_TEMPLATE_SVG)
        assert dereference(doc) == []
        derived = doc.get_by_id("derived")
        assert derived.get("href") is None
        assert derived.get("x1") == "0"
        assert derived.get("x2") == "0.5"
        assert derived.get("gradientUnits") == "userSpaceOnUse"
        stops = derived.findall(q("stop"))
        assert [s.get("offset") for s in stops] == ["0", "1"]
        assert {s.get("id") for s in stops}.isdisjoint({"s1", "s2"})

    def test_template_cycle(self):
        doc = load_svg(_svg(
            '<defs><linearGradient id="g1" href="#g2"/><linearGradient id="g2" href="#g1"/></defs>'
        ))
        diagnostics = dereference(doc)
        assert [d.code for d in diagnostics] == ["reference_cycle"]


def test_no_references_is_noop():
    for source in (CIRCLE_SVG, TRANSLATED_GROUP_SVG):
        doc = load_svg(source)
        before = serialize_svg(doc)
        assert dereference(doc) == []
        assert serialize_svg(doc) == before
