"""Tests for the describer.

Covered properties
------------------
- Scalars and numbers: raw vs re-encoded (4.0 vs 0.1, huge ints, non-finite).
- Termination on cycles, with exactly one recursion marker.
- Depth and item bounds degrade to cut markers instead of raising.
- Sharing (same storage) vs equal values; sharing vs recursion.
- Redaction, visibility tags, exposer failures and resources.
"""

from __future__ import annotations

import io
import math
from collections import namedtuple
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import IntEnum
from typing import Any

from dumpview.core.contracts.options import DumpOptions
from dumpview.core.describer import Describer, describe
from dumpview.core.identity import HandleRegistry
from dumpview.core.model import (
    ArrayRef,
    Cut,
    Entry,
    Field,
    InlineArray,
    Number,
    ObjectRef,
    Redacted,
    ResourceRef,
    Text,
    Visibility,
)
from dumpview.render.text import render_text


class Node:
    def __init__(self, label: str = "n") -> None:
        self.label = label
        self.next: Any = None


@dataclass
class Account:
    name: str

    def __post_init__(self) -> None:
        self._cache = 1
        self.__secret = 2
        self.extra = 3


def _opts(**kwargs: Any) -> DumpOptions:
    return DumpOptions(location=False, **kwargs)


def test_scalars_and_numbers() -> None:
    """Floats with an integral value are re-encoded so 4.0 never reads as 4."""
    assert describe(None).value is None
    assert describe(True).value is True
    assert describe(7).value == 7
    assert describe(0.1).value == 0.1
    assert describe(4.0).value == Number("4.0")
    assert describe(math.inf).value == Number("INF")
    assert describe(-math.inf).value == Number("-INF")
    assert describe(math.nan).value == Number("NAN")
    assert describe(2**60).value == Number(str(2**60))
    assert describe(Decimal("1.5")).value == Number("1.5")


def test_strings_are_raw_unless_changed() -> None:
    assert describe("abc").value == "abc"
    assert describe("abcdefghij", max_length=5).value == Text("abcde…", 10)
    assert describe("a\x00").value == Text("a\\x00", 2)
    assert describe(b"ab").value == Text("ab", 2, binary=True)


def test_self_referencing_list_terminates() -> None:
    """A cycle yields one recursion cut; the container becomes a shared ref."""
    a: list[Any] = [1]
    a.append(a)

    desc = describe(a, _opts())

    assert desc.value == ArrayRef("p1")
    items = desc.snapshot["p1"].items
    assert items == [
        Entry(0, 1),
        Entry(1, ArrayRef(cut=Cut.RECURSION, length=2), "p1"),
    ]
    text = render_text(desc, _opts())
    assert text.count("RECURSION") == 1


def test_object_cycle_uses_instance_identity() -> None:
    node = Node()
    node.next = node

    desc = describe(node, _opts())

    assert desc.value == ObjectRef(1)
    struct = desc.snapshot[1]
    assert struct.name == f"{Node.__module__}.Node"
    assert struct.items == [
        Field("label", "n", Visibility.PUBLIC),
        Field("next", ObjectRef(1), Visibility.PUBLIC),
    ]
    assert render_text(desc, _opts()).count("RECURSION") == 1


def test_depth_bound_cuts_containers() -> None:
    desc = describe([[[[1]]]], _opts(max_depth=2))

    assert desc.value == InlineArray(
        (Entry(0, InlineArray((Entry(0, ArrayRef(cut=Cut.DEPTH, length=1)),))),)
    )


def test_depth_bound_leaves_object_stub() -> None:
    desc = describe([Node()], _opts(max_depth=1))

    assert desc.value == InlineArray((Entry(0, ObjectRef(1)),))
    assert desc.snapshot[1].items is None


def test_item_bound_keeps_true_length() -> None:
    """1000 entries with a 50 item limit: 50 shown, length 1000."""
    desc = describe(list(range(1000)), _opts(max_items=50))

    assert desc.value == ArrayRef("p1", cut=Cut.ITEMS, length=1000)
    struct = desc.snapshot["p1"]
    assert len(struct.items or []) == 50
    assert struct.length == 1000
    assert struct.truncated


def test_object_item_bound() -> None:
    obj = Node()
    obj.a, obj.b, obj.c = 1, 2, 3  # type: ignore[attr-defined]

    desc = describe(obj, _opts(max_items=2))

    struct = desc.snapshot[1]
    assert [f.key for f in struct.items or []] == ["label", "next"]
    assert struct.length == 5


def test_sharing_is_not_recursion() -> None:
    """The same list reached twice is shared by reference, never cut."""
    inner = [1, 2]
    desc = describe([inner, inner], _opts())

    assert desc.value == InlineArray(
        (Entry(0, ArrayRef("p1"), "p1"), Entry(1, ArrayRef("p1"), "p1"))
    )
    assert desc.snapshot["p1"].items == [Entry(0, 1), Entry(1, 2)]
    assert "RECURSION" not in render_text(desc, _opts())


def test_equal_values_are_not_shared() -> None:
    desc = describe([[1], [1]], _opts())

    assert desc.value == InlineArray(
        (Entry(0, InlineArray((Entry(0, 1),))), Entry(1, InlineArray((Entry(0, 1),))))
    )
    assert desc.snapshot == {}


def test_immutable_containers_are_not_shared() -> None:
    pair = (1,)
    desc = describe([pair, pair], _opts())

    assert isinstance(desc.value, InlineArray)
    assert all(entry.ref is None for entry in desc.value.entries)


def test_shallowest_expansion_wins() -> None:
    """An object first met below the depth bound is expanded when met higher up."""
    node = Node()
    desc = describe([[[node]], node], _opts(max_depth=3))

    struct = desc.snapshot[1]
    assert struct.depth == 1
    assert struct.items is not None


def test_redaction_by_key() -> None:
    options = _opts(keys_to_hide=["password", "token"])
    desc = describe({"password": "x", "Token": 5, "ok": 1}, options)

    assert desc.value == InlineArray(
        (
            Entry("password", Redacted("***** (str)")),
            Entry("Token", Redacted("***** (int)")),
            Entry("ok", 1),
        )
    )


def test_redaction_does_not_recurse() -> None:
    """A hidden container is not walked, so it gets no snapshot entry."""
    secret = list(range(100))
    desc = describe({"password": secret}, _opts(keys_to_hide=["password"], max_items=5))

    assert desc.snapshot == {}


def test_namedtuple_uses_field_names() -> None:
    Point = namedtuple("Point", "x y")
    desc = describe(Point(1, 2), _opts())

    assert desc.value == InlineArray((Entry("x", 1), Entry("y", 2)))


def test_visibility_tags() -> None:
    desc = describe(Account("ann"), _opts())

    items = desc.snapshot[1].items
    assert items == [
        Field("name", "ann", Visibility.PUBLIC),
        Field("_cache", 1, Visibility.PROTECTED),
        Field("__secret", 2, "Account"),
        Field("extra", 3, Visibility.DYNAMIC),
    ]


def test_exposer_failure_degrades_to_error_field() -> None:
    def broken(obj: Any) -> list[Any]:
        raise RuntimeError("boom")

    desc = describe(Node(), _opts(object_exposers={Node: broken}))

    assert desc.snapshot[1].items == [
        Field("!error", Redacted("!! RuntimeError: boom"), Visibility.VIRTUAL)
    ]


def test_resource_is_expanded_once() -> None:
    stream = io.StringIO("data")
    desc = describe([stream, stream], _opts())

    assert desc.value == InlineArray((Entry(0, ResourceRef("r1")), Entry(1, ResourceRef("r1"))))
    struct = desc.snapshot["r1"]
    assert struct.name == "stream resource"
    assert Entry("readable", True) in (struct.items or [])


def test_closed_resource_has_no_members() -> None:
    stream = io.StringIO()
    stream.close()

    desc = describe(stream, _opts())

    assert desc.value == ResourceRef("r1")
    assert desc.snapshot["r1"].name == "closed resource"
    assert desc.snapshot["r1"].items is None


def test_shared_registry_keeps_identities_unique() -> None:
    """Two describe calls sharing a registry never reuse an identity."""
    registry = HandleRegistry()
    describer = Describer(_opts(), registry)
    first, second = Node("a"), Node("b")

    assert describer.describe(first).value == ObjectRef(1)
    assert describer.describe(second).value == ObjectRef(2)
    assert describer.describe(first).value == ObjectRef(1)


class Level(IntEnum):
    LOW = 1


class BrokenMapping(Mapping[str, Any]):
    """A mapping whose values cannot be read."""

    def __getitem__(self, key: str) -> Any:
        raise RuntimeError("boom")

    def __iter__(self) -> Iterator[str]:
        return iter(["k"])

    def __len__(self) -> int:
        return 1


def test_repeated_immutable_containers_are_walked_once() -> None:
    """Tuples reached many times are walked once, so nesting stays linear."""
    walks = 0

    class CountingTuple(tuple[int, ...]):
        def __iter__(self) -> Iterator[int]:
            nonlocal walks
            walks += 1
            return super().__iter__()

    level: Any = CountingTuple((1, 2))
    for _ in range(3):
        level = (level,) * 20

    desc = describe(level, _opts(max_depth=7))

    assert walks == 1
    assert isinstance(desc.value, InlineArray)
    first, second = desc.value.entries[0], desc.value.entries[1]
    assert second.value is first.value
    assert first.ref is None


def test_unreadable_mapping_degrades_to_error_entry() -> None:
    desc = describe({"v": BrokenMapping()}, _opts())

    assert desc.value == InlineArray(
        (Entry("v", InlineArray((Entry("!error", Redacted("!! RuntimeError: boom")),))),)
    )


def test_unmeasurable_container_degrades_to_error_entry() -> None:
    """``len()`` overflows on huge ranges; the dump still completes."""
    desc = describe({"v": range(10**30)}, _opts())

    assert isinstance(desc.value, InlineArray)
    inner = desc.value.entries[0].value
    assert isinstance(inner, InlineArray)
    error = inner.entries[0]
    assert error.key == "!error"
    assert isinstance(error.value, Redacted)
    assert error.value.text.startswith("!! OverflowError")


def test_int_enum_members_use_the_enum_exposer() -> None:
    desc = describe(Level.LOW, _opts())

    assert desc.value == ObjectRef(1)
    assert desc.snapshot[1].items == [
        Field("name", "LOW", Visibility.VIRTUAL),
        Field("value", 1, Visibility.VIRTUAL),
    ]
