"""Tests for the client expansion engine.

The engine must rebuild deferred nodes into the very text the server renders
eagerly, whatever lazy mode produced the page.
"""

from __future__ import annotations

import io
from typing import Any

import pytest

from dumpview.client.dom import Element, fragment, parse_html
from dumpview.client.engine import TOGGLE_EVENT, ExpansionEngine
from dumpview.core.contracts.options import DumpOptions, LazyMode
from dumpview.dumper import DumpSession, to_html, to_text


class Box:
    def __init__(self) -> None:
        self.a = 1
        self.b = 0.5
        self.c = "x" * 200
        self.d = None
        self.e = [1, 2, 3]
        self.f = b"raw"
        self._g = True
        self.me = self


class Leaf:
    def __init__(self) -> None:
        self.v = 1


class Holder:
    def __init__(self) -> None:
        self.loop: list[Any] = []
        self.child = Leaf()


def _sample() -> dict[str, Any]:
    shared = [1, 2]
    return {
        "box": Box(),
        "nums": list(range(20)),
        "many": list(range(300)),
        "shared": [shared, shared, [shared]],
        "stream": io.StringIO("data"),
        "token": "secret",
        "empty": [],
        "deep": [[[[[[[[1]]]]]]]],
    }


def _expanded_text(html: str) -> str:
    root = parse_html(html)
    engine = ExpansionEngine()
    engine.init(root)
    engine.expand_all(root)
    pres = root.query_all(lambda el: el.tag == "pre")
    return "".join(pre.text_content for pre in pres).replace("…", "...")


@pytest.mark.parametrize("lazy", [LazyMode.OFF, LazyMode.HYBRID, LazyMode.FULL])  # type: ignore[misc]
def test_expanded_page_matches_eager_text(lazy: LazyMode) -> None:
    value = _sample()
    options = DumpOptions(location=False, keys_to_hide=["token"], lazy=lazy)

    assert _expanded_text(to_html(value, options)) == to_text(value, options)


def test_deferred_payloads_are_consumed() -> None:
    html = to_html(_sample(), location=False, lazy=LazyMode.HYBRID)
    root = parse_html(html)

    ExpansionEngine().init(root)

    assert not root.query_all(lambda el: el.has_attribute("data-dumpview-dump"))
    assert not root.query_all(lambda el: el.has_attribute("data-dumpview-snapshot"))


def test_toggle_builds_children_once() -> None:
    engine = ExpansionEngine()
    root = fragment()
    root.append(engine.build([[i, i] for i in range(10)], depth=1))
    toggle = root.query_all(lambda el: el.has_class("dumpview-toggle"))[0]
    newline = toggle.next_sibling
    div = newline.next_sibling if newline is not None else None
    assert isinstance(div, Element)
    assert toggle.has_class("dumpview-collapsed")
    assert div.children == []

    engine.toggle(toggle, True)
    built = len(div.children)
    engine.toggle(toggle, False)
    engine.toggle(toggle, True)

    assert built == 10 * 5
    assert len(div.children) == built
    assert not toggle.listeners[TOGGLE_EVENT]
    assert not div.has_class("dumpview-collapsed")


def test_unknown_identity_renders_placeholder() -> None:
    built = ExpansionEngine().build({"object": 42})

    assert built.text_content == "missing 42\n"


def test_first_payload_wins_on_merge() -> None:
    engine = ExpansionEngine()
    engine.merge({"1": {"name": "First", "items": []}})
    engine.merge({"1": {"name": "Second", "items": []}})

    assert engine.build({"object": 1}).text_content == "First #1\n"


def test_session_page_round_trip() -> None:
    """Dumps sharing one flushed snapshot expand like standalone dumps."""
    session = DumpSession(location=False)
    first = {"a": list(range(10))}
    second = [Box(), "tail"]
    page = session.to_html(first) + session.to_html(second) + session.meta_tag()

    assert "data-dumpview-snapshot" not in page

    root = parse_html(page)
    engine = ExpansionEngine(session.options)
    engine.init(root)
    engine.expand_all(root)
    pres = root.query_all(lambda el: el.tag == "pre")

    assert [pre.text_content.replace("…", "...") for pre in pres] == [
        to_text(first, location=False),
        to_text(second, location=False),
    ]


def test_ancestor_reached_again_in_a_later_slice() -> None:
    """An object first shipped as an open ancestor still ships its members later."""
    holder = Holder()
    holder.loop = [holder, *range(10)]
    value = [holder, [holder, *range(10)]]
    options = DumpOptions(location=False, lazy=LazyMode.HYBRID)

    expanded = _expanded_text(to_html(value, options))

    assert "missing" not in expanded
    assert expanded == to_text(value, options)
