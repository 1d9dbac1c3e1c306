"""Tests for the `DumpOptions` contract."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from dumpview.core.contracts.options import DumpOptions, LazyMode, LocationFlag


@pytest.mark.parametrize("field", ["max_depth", "max_length", "max_items", "collapse_sub"])  # type: ignore[misc]
def test_bounds_must_be_positive(field: str) -> None:
    """Every bound is validated to be >= 1."""
    with pytest.raises(ValidationError):
        DumpOptions(**{field: 0})


def test_collapse_top_accepts_bool_or_positive_int() -> None:
    assert DumpOptions(collapse_top=True).collapse_top is True
    assert DumpOptions(collapse_top=3).collapse_top == 3
    with pytest.raises(ValidationError):
        DumpOptions(collapse_top=0)


def test_location_shorthand() -> None:
    """Booleans and plain ints are accepted for the location flags."""
    assert DumpOptions(location=True).location == LocationFlag.ALL
    assert DumpOptions(location=False).location == LocationFlag.NONE
    assert DumpOptions(location=2).location == LocationFlag.LINK


def test_keys_to_hide_is_case_insensitive() -> None:
    options = DumpOptions(keys_to_hide=["Password", "TOKEN"])
    assert options.is_hidden("password")
    assert options.is_hidden("Token")
    assert not options.is_hidden("name")
    assert not options.is_hidden(1)


def test_with_overrides_validates_and_copies() -> None:
    base = DumpOptions(max_depth=4, lazy=LazyMode.OFF)
    assert base.with_overrides() is base

    derived = base.with_overrides(max_items=9)
    assert derived.max_items == 9
    assert derived.max_depth == 4
    assert derived.lazy is LazyMode.OFF
    assert derived is not base

    with pytest.raises(ValidationError):
        base.with_overrides(max_items=-1)


def test_options_are_frozen() -> None:
    options = DumpOptions()
    with pytest.raises(ValidationError):
        options.max_depth = 3  # type: ignore[misc]
