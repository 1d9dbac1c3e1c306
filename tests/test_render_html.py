"""Tests for the HTML renderer and its lazy modes."""

from __future__ import annotations

import json
from typing import Any

import pytest

from dumpview.client.dom import parse_html
from dumpview.core.contracts.options import DumpOptions, LazyMode, LocationFlag
from dumpview.core.describer import describe
from dumpview.core.errors import UnknownIdentityError, UnsupportedValueError
from dumpview.core.model import CallSite, Description, ObjectRef
from dumpview.render.html import Renderer


class Node:
    def __init__(self) -> None:
        self.value = 1


def _render(value: Any, **kwargs: Any) -> str:
    options = DumpOptions(location=False, **kwargs)
    return Renderer(options).render_html(describe(value, options))


def test_eager_markup_has_no_payloads() -> None:
    html = _render([1, "ab"], lazy=LazyMode.OFF)

    assert html.startswith('<pre class="dumpview-dump">')
    assert '<span class="dumpview-number">1</span>' in html
    assert "<span class=\"dumpview-string\">'ab'</span> (2)" in html
    assert "data-dumpview-dump" not in html


def test_hybrid_defers_collapsed_root() -> None:
    html = _render(list(range(20)), lazy=LazyMode.HYBRID)

    toggle = parse_html(html).query_all(lambda el: el.has_attribute("data-dumpview-dump"))[0]
    assert toggle.tag == "span"
    assert toggle.has_class("dumpview-collapsed")
    assert toggle.get_attribute("data-dumpview-depth") == "0"
    assert json.loads(toggle.get_attribute("data-dumpview-dump") or "")[:2] == [[0, 0], [1, 1]]
    assert toggle.text_content == "array (20)"


def test_hybrid_keeps_small_nodes_inline() -> None:
    html = _render({"a": [1, 2]}, lazy=LazyMode.HYBRID)
    assert "data-dumpview-dump" not in html


def test_full_mode_ships_model_and_snapshot() -> None:
    inner = [1]
    html = _render([inner, inner], lazy=LazyMode.FULL, collapse_top=True)

    pre = parse_html(html).query_all(lambda el: el.tag == "pre")[0]
    assert pre.has_class("dumpview-collapsed")
    assert json.loads(pre.get_attribute("data-dumpview-dump") or "") == [
        [0, {"array": "p1"}, "p1"],
        [1, {"array": "p1"}, "p1"],
    ]
    assert json.loads(pre.get_attribute("data-dumpview-snapshot") or "") == {
        "p1": {"items": [[0, 1]]}
    }
    assert pre.text_content == ""


def test_full_mode_renders_scalars_directly() -> None:
    html = _render(5, lazy=LazyMode.FULL)
    assert "data-dumpview-dump" not in html
    assert '<span class="dumpview-number">5</span>' in html


def test_slices_skip_identities_already_shipped() -> None:
    """Two deferred siblings reaching one object ship it only once."""
    node = Node()
    html = _render({"a": [node] * 8, "b": [node] * 8}, lazy=LazyMode.HYBRID)

    deferred = parse_html(html).query_all(lambda el: el.has_attribute("data-dumpview-dump"))
    assert len(deferred) == 2
    assert deferred[0].get_attribute("data-dumpview-depth") == "1"
    snapshots = [el.get_attribute("data-dumpview-snapshot") for el in deferred]
    assert snapshots[0] is not None and json.loads(snapshots[0]).keys() == {"1"}
    assert snapshots[1] is None


def test_collapse_thresholds() -> None:
    """Top level collapses at 14 members, nested levels at 7."""
    top = _render(list(range(13)), lazy=LazyMode.OFF)
    assert "dumpview-collapsed" not in top

    nested = _render([list(range(7))], lazy=LazyMode.OFF)
    assert nested.count('class="dumpview-toggle dumpview-collapsed"') == 1


def test_location_attributes_and_link() -> None:
    options = DumpOptions(location=LocationFlag.ALL)
    description = describe([1], options)
    description.location = CallSite("app.py", 3, "dump(x)")

    html = Renderer(options).render_html(description)

    pre = parse_html(html).query_all(lambda el: el.tag == "pre")[0]
    assert pre.get_attribute("title") == "dump(x)\nin file app.py on line 3"
    assert pre.get_attribute("data-dumpview-href") == "editor://open/?file=app.py&line=3"
    assert html.endswith("<small>in <a href=\"editor://open/?file=app.py&amp;line=3\">app.py:3</a></small></pre>\n")


def test_unknown_identity_raises() -> None:
    with pytest.raises(UnknownIdentityError):
        Renderer(DumpOptions(location=False)).render_html(Description(ObjectRef(9)))


def test_unsupported_model_raises() -> None:
    with pytest.raises(UnsupportedValueError):
        Renderer(DumpOptions(location=False)).render_html(Description(object()))  # type: ignore[arg-type]
