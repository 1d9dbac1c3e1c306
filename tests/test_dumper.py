"""Tests for the dumper facade, `dump()` and dump sessions."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
from rich.console import Console

from dumpview import DumpSession, Dumper, dump, to_terminal, to_text
from dumpview.core.contracts.options import LazyMode, LocationFlag
from dumpview.core.model import Field, Visibility
from dumpview.core.settings import load_settings


@pytest.fixture  # type: ignore[misc]
def fresh_settings() -> Iterator[None]:
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


def test_to_text() -> None:
    assert to_text([1], location=False) == "array (1)\n   0 => 1\n"


def test_link_suffix_names_the_caller() -> None:
    text = Dumper(location=LocationFlag.LINK).to_text(1)

    first, suffix = text.splitlines()
    assert first == "1"
    assert suffix.startswith("in ")
    assert "test_dumper.py:" in suffix


def test_no_call_site_without_location_flags() -> None:
    assert Dumper(location=False).describe(1).location is None


def test_dump_prints_and_returns_value() -> None:
    console = Console(record=True, width=120)
    value = {"a": [1, 2]}

    assert dump(value, console=console, location=False) is value
    assert console.export_text() == to_text(value, location=False)


def test_dump_is_silent_in_prod(fresh_settings: None, monkeypatch: Any) -> None:
    monkeypatch.setenv("DUMPVIEW_ENV", "prod")
    load_settings.cache_clear()
    console = Console(record=True)

    assert dump(42, console=console) == 42
    assert console.export_text() == ""


def test_to_terminal_is_colored() -> None:
    out = to_terminal({"a": 1}, location=False)
    assert "\x1b[" in out


def test_session_collects_snapshot_until_flushed() -> None:
    """Dumps carry their Model only; the snapshot is flushed once."""
    session = DumpSession(location=False)
    inner = [1]
    html = session.to_html([inner, inner])

    assert session.options.lazy is LazyMode.FULL
    assert "data-dumpview-dump=" in html
    assert "data-dumpview-snapshot" not in html
    assert session.dumps == 1
    assert session.meta_tag() == (
        '<meta itemprop="dumpview-snapshot" content=\'{"p1":{"items":[[0,1]]}}\'>'
    )
    assert session.meta_tag() == "<meta itemprop=\"dumpview-snapshot\" content='{}'>"


def test_session_numbers_identities_once() -> None:
    class Thing:
        pass

    session = DumpSession(location=False)
    first, second = Thing(), Thing()
    session.to_html([first])
    html = session.to_html([second, first])

    assert '{"object":2}' in html
    assert '{"object":1}' in html
    assert set(session.snapshot) == {1, 2}


def test_session_keeps_the_shallowest_expansion() -> None:
    """An object first met below the depth bound is expanded by a later dump."""

    class Thing:
        def __init__(self) -> None:
            self.v = 42

    session = DumpSession(location=False, max_depth=1)
    thing = Thing()

    session.to_html([thing])
    assert session.snapshot[1].items is None

    session.to_html(thing)
    assert session.snapshot[1].items == [Field("v", 42, Visibility.PUBLIC)]
    assert '"items":[["v",42,0]]' in session.meta_tag()
