"""
Identity tracking for one describe call.

Identity notion
---------------
Python containers are always held by reference, so "the same storage" is
decided with ``id()``: a container reached through two or more distinct
access paths (parent container/object + position) within one describe call is
*aliased* and receives a reference id ``"p<n>"``. Equal but distinct
containers never share an id.

Immutable containers (``tuple``, ``frozenset``) only take part in cycle
detection. CPython freely shares equal constants (``()``, folded tuple
literals), which would otherwise show up as spurious aliasing. They are
still walked only once per call; later sightings reuse the first walk.

Every tracked value is kept alive until the tracker is dropped so that
``id()`` values cannot be recycled mid-call by temporaries that exposers
return.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from .model import Identity

# (id(parent), position) for members, None for the root value.
Edge = tuple[int, int] | None


class HandleRegistry:
    """Allocates instance numbers and reference ids.

    A registry is call-scoped by default. A :class:`~dumpview.dumper.DumpSession`
    passes one registry to every describe call it runs so identities stay
    unique across dumps that share one snapshot.
    """

    __slots__ = ("_numbers", "_alive", "_next_number", "_next_reference")

    def __init__(self) -> None:
        self._numbers: dict[int, int] = {}
        self._alive: list[object] = []
        self._next_number = 0
        self._next_reference = 0

    def number(self, value: object) -> int:
        """Return the stable instance number of ``value`` (1-based)."""
        key = id(value)
        number = self._numbers.get(key)
        if number is None:
            self._next_number += 1
            number = self._numbers[key] = self._next_number
            self._alive.append(value)
        return number

    def known(self, value: object) -> int | None:
        """Return the number of ``value`` if it was numbered before."""
        return self._numbers.get(id(value))

    def next_reference(self) -> str:
        """Mint a fresh reference id for a shared or truncated container."""
        self._next_reference += 1
        return f"p{self._next_reference}"


@dataclass(slots=True, eq=False)
class ContainerRecord:
    """What the describer learned about one container during the walk."""

    value: Any
    tracked: bool = True
    edges: set[Edge] = field(default_factory=set)
    depth: int | None = None
    length: int = 0
    entries: list[Any] | None = None
    truncated: bool = False
    identity: str | None = None

    @property
    def shared(self) -> bool:
        """True if reached through more than one distinct access path."""
        return self.tracked and len(self.edges) > 1


class IdentityTracker:
    """Assigns identities and keeps the open-ancestor stack of one walk."""

    def __init__(self, registry: HandleRegistry | None = None) -> None:
        self.registry = registry if registry is not None else HandleRegistry()
        self._records: dict[int, ContainerRecord] = {}
        self._open: dict[int, int] = {}
        self._resources: set[int] = set()

    # ------------------------------- ancestors --------------------------------

    @contextmanager
    def opened(self, value: object) -> Iterator[None]:
        """Mark ``value`` as an open ancestor for the duration of the block."""
        key = id(value)
        self._open[key] = self._open.get(key, 0) + 1
        try:
            yield
        finally:
            if self._open[key] == 1:
                del self._open[key]
            else:
                self._open[key] -= 1

    def is_open(self, value: object) -> bool:
        """Return True if ``value`` is on the active walk path."""
        return id(value) in self._open

    # ------------------------------- containers -------------------------------

    def sight(self, container: object, edge: Edge, *, tracked: bool = True) -> ContainerRecord:
        """Record one sighting of ``container`` through ``edge``.

        Untracked (immutable) containers keep one record per call, so they
        are walked once, but they are never reported as shared.
        """
        record = self._records.get(id(container))
        if record is None:
            record = self._records[id(container)] = ContainerRecord(container, tracked=tracked)
        record.edges.add(edge)
        return record

    def reference_id(self, record: ContainerRecord) -> str:
        """Return the snapshot identity of ``record``, minting it on first use."""
        if record.identity is None:
            record.identity = self.registry.next_reference()
        return record.identity

    # ------------------------------- lookups ----------------------------------

    def object_id(self, obj: object) -> int:
        """Instance identity of an object: always present."""
        return self.registry.number(obj)

    def resource_id(self, handle: object) -> str:
        """Handle-derived identity of a resource."""
        self._resources.add(id(handle))
        return f"r{self.registry.number(handle)}"

    def identity_of(self, container: object, key: Hashable) -> Identity | None:
        """Return the reference identity of ``container[key]`` after a walk.

        Objects and resources seen by the walk report their instance
        identity; containers report a reference id only when aliased.
        Unknown or unaliased members return ``None``.
        """
        try:
            if isinstance(container, Mapping):
                value = container[key]
            elif isinstance(container, Sequence) and isinstance(key, int):
                value = container[key]
            else:
                value = getattr(container, str(key))
        except (LookupError, AttributeError, TypeError):
            return None

        record = self._records.get(id(value))
        if record is not None:
            return self.reference_id(record) if record.shared else None
        number = self.registry.known(value)
        if number is not None and id(value) in self._resources:
            return f"r{number}"
        return number


__all__ = ["ContainerRecord", "Edge", "HandleRegistry", "IdentityTracker"]
