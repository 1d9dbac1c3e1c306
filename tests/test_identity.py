"""Tests for identity tracking: numbering, aliasing and the ancestor stack."""

from __future__ import annotations

import pytest

from dumpview.core.describer import Describer
from dumpview.core.identity import HandleRegistry, IdentityTracker


class Point:
    def __init__(self) -> None:
        self.x = 1


def test_registry_numbers_are_stable() -> None:
    registry = HandleRegistry()
    a, b = Point(), Point()

    assert registry.number(a) == 1
    assert registry.number(b) == 2
    assert registry.number(a) == 1
    assert registry.known(b) == 2
    assert registry.known(Point()) is None
    assert [registry.next_reference(), registry.next_reference()] == ["p1", "p2"]


def test_opened_pops_on_error() -> None:
    """The ancestor stack is restored on every exit path."""
    tracker = IdentityTracker()
    value: list[int] = []

    with pytest.raises(RuntimeError):
        with tracker.opened(value):
            with tracker.opened(value):
                assert tracker.is_open(value)
            assert tracker.is_open(value)
            raise RuntimeError("boom")

    assert not tracker.is_open(value)


def test_sharing_requires_distinct_paths() -> None:
    tracker = IdentityTracker()
    inner: list[int] = []

    record = tracker.sight(inner, (1, 0))
    tracker.sight(inner, (1, 0))
    assert not record.shared

    tracker.sight(inner, (1, 1))
    assert record.shared

    frozen = (1,)
    first = tracker.sight(frozen, (1, 0), tracked=False)
    again = tracker.sight(frozen, (1, 1), tracked=False)
    assert again is first
    assert not again.shared


def test_identity_of_after_describe() -> None:
    """Aliased members report a reference id, objects their instance number."""
    inner = [1]
    point = Point()
    outer = {"a": inner, "b": inner, "c": [2], "d": point}

    describer = Describer()
    describer.describe(outer)
    tracker = describer.tracker

    assert tracker.identity_of(outer, "a") == "p1"
    assert tracker.identity_of(outer, "b") == "p1"
    assert tracker.identity_of(outer, "c") is None
    assert tracker.identity_of(outer, "d") == 1
    assert tracker.identity_of(outer, "missing") is None
