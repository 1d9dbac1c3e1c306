"""
Describer: bounded walk of a value graph into a Model plus a Snapshot.

Walk
----
One recursive pass visits the value. Scalars become Model nodes directly;
objects and resources go straight into the Snapshot; containers yield a
``_Slot`` placeholder bound to their :class:`~dumpview.core.identity.ContainerRecord`
because whether a container is aliased is only known once every sighting
has been made.

Finalize
--------
A second pass turns each slot into its Model node:

- recursion slot → ``ArrayRef(cut=RECURSION, length)``;
- never expanded (depth bound) → ``ArrayRef(cut=DEPTH, length)``;
- shared or item-limited → ``Structure("p<n>")`` + ``ArrayRef``;
- otherwise → ``InlineArray``.

The same pass resolves slots inside object and resource items.

Bounds
------
``max_depth`` stops expansion, ``max_items`` cuts members, ``max_length``
truncates strings. None of them raises.
"""

from __future__ import annotations

import enum
import math
import numbers
from collections import deque
from collections.abc import Iterator, Mapping, MappingView, Sequence, Set
from dataclasses import dataclass
from itertools import islice
from typing import Any

from .codec import format_key, hide_value, truncate_text
from .contracts.options import DumpOptions, LocationFlag
from .errors import UnsupportedValueError
from .exposers import expose_object, expose_resource, resource_kind
from .identity import ContainerRecord, Edge, HandleRegistry, IdentityTracker
from .location import resolve_declaration
from .model import (
    ArrayRef,
    CallSite,
    Cut,
    Description,
    Entry,
    Field,
    InlineArray,
    Model,
    Number,
    ObjectRef,
    Redacted,
    ResourceRef,
    Snapshot,
    Structure,
    Text,
    Visibility,
)
from .settings import get_logger

logger = get_logger(__name__)

_SAFE_INT = 2**53
_IMMUTABLE = (tuple, frozenset, range, MappingView)


@dataclass(slots=True, eq=False)
class _Slot:
    """Placeholder for a container until sharing is known."""

    record: ContainerRecord
    recursion: bool = False
    length: int = 0


def _is_container(value: object) -> bool:
    if isinstance(value, str | bytes | bytearray | memoryview):
        return False
    return isinstance(value, Mapping | Sequence | Set | MappingView | deque)


def _members(value: Any) -> Iterator[tuple[Any, Any]]:
    """Yield ``(key, member)`` pairs of a container in iteration order."""
    if isinstance(value, Mapping):
        yield from value.items()
    elif isinstance(value, tuple) and hasattr(value, "_fields"):
        yield from zip(value._fields, value)
    else:
        yield from enumerate(value)


def _class_name(value: object) -> str:
    cls = type(value)
    if cls.__module__ in ("builtins", "__main__"):
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def _error_field(exc: Exception) -> tuple[str, Any, Visibility]:
    return "!error", Redacted(f"!! {type(exc).__name__}: {exc}"), Visibility.VIRTUAL


class Describer:
    """Turns values into :class:`~dumpview.core.model.Description` objects.

    Parameters
    ----------
    options : DumpOptions | None
        Bounds, redaction set, exposer tables and location flags.
    registry : HandleRegistry | None
        Numbering shared across calls; a fresh one is used per call if omitted.
    """

    def __init__(
        self, options: DumpOptions | None = None, registry: HandleRegistry | None = None
    ) -> None:
        self.options = options if options is not None else DumpOptions()
        self.registry = registry
        self._tracker = IdentityTracker()
        self._snapshot: Snapshot = {}
        self._inlined: dict[int, InlineArray] = {}

    def describe(self, value: Any, location: CallSite | None = None) -> Description:
        """Walk ``value`` and return its Model, Snapshot and call site."""
        registry = self.registry if self.registry is not None else HandleRegistry()
        self._tracker = IdentityTracker(registry)
        self._snapshot = {}
        self._inlined = {}

        walked = self._describe(value, 0, None)
        model = self._finalize(walked)
        for struct in list(self._snapshot.values()):
            if struct.kind != "array" and struct.items is not None:
                struct.items = [self._finalize_item(item, struct.kind) for item in struct.items]
        return Description(value=model, snapshot=self._snapshot, location=location)

    @property
    def tracker(self) -> IdentityTracker:
        """Identity tracker of the last describe call."""
        return self._tracker

    # ---------------------------------- walk ----------------------------------

    def _describe(self, value: Any, depth: int, edge: Edge) -> Any:
        if value is None or isinstance(value, bool):
            return value
        if isinstance(value, enum.Enum):
            return self._describe_object(value, depth)
        if isinstance(value, int):
            return self._describe_int(value)
        if isinstance(value, float):
            return self._describe_float(value)
        if isinstance(value, numbers.Number):
            return Number(str(value))
        if isinstance(value, str):
            display, length, _ = truncate_text(value, self.options.max_length)
            return value if display == value else Text(display, length)
        if isinstance(value, bytes | bytearray | memoryview):
            display, length, _ = truncate_text(value, self.options.max_length)
            return Text(display, length, binary=True)

        kind = resource_kind(value)
        if kind is not None:
            return self._describe_resource(value, kind, depth)
        if _is_container(value):
            return self._describe_container(value, depth, edge)
        return self._describe_object(value, depth)

    @staticmethod
    def _describe_int(value: int) -> Any:
        if -_SAFE_INT < value < _SAFE_INT:
            return int(value)
        try:
            return Number(str(value))
        except ValueError:
            # beyond the interpreter's int→str digit limit
            return Number(hex(value))

    @staticmethod
    def _describe_float(value: float) -> Any:
        if math.isnan(value):
            return Number("NAN")
        if math.isinf(value):
            return Number("INF" if value > 0 else "-INF")
        if value.is_integer():
            return Number(repr(float(value)))
        return float(value)

    def _describe_container(self, value: Any, depth: int, edge: Edge) -> _Slot:
        tracker = self._tracker
        record = tracker.sight(value, edge, tracked=not isinstance(value, _IMMUTABLE))
        try:
            length = len(value)
        except Exception as exc:
            logger.debug("len() failed for %s: %r", type(value).__name__, exc)
            return self._broken_container(record, exc, depth)

        if tracker.is_open(value):
            return _Slot(record, recursion=True, length=length)
        if length and depth >= self.options.max_depth:
            record.length = length
            return _Slot(record, length=length)
        if record.depth is not None and record.depth <= depth:
            return _Slot(record, length=record.length)

        max_items = self.options.max_items
        try:
            members = list(islice(_members(value), max_items))
        except Exception as exc:
            logger.debug("Iterating %s failed: %r", type(value).__name__, exc)
            return self._broken_container(record, exc, depth)

        record.depth = depth
        record.length = length
        entries: list[tuple[Any, Any]] = []
        with tracker.opened(value):
            for position, (key, member) in enumerate(members):
                display_key = format_key(key, self.options.max_length)
                if self.options.is_hidden(key):
                    entries.append((display_key, Redacted(hide_value(member))))
                else:
                    child = self._describe(member, depth + 1, (id(value), position))
                    entries.append((display_key, child))
        record.entries = entries
        record.truncated = length > max_items
        return _Slot(record, length=length)

    @staticmethod
    def _broken_container(record: ContainerRecord, exc: Exception, depth: int) -> _Slot:
        """A container whose length or members cannot be read shows one error entry."""
        key, error, _ = _error_field(exc)
        record.depth = depth
        record.length = 1
        record.entries = [(key, error)]
        record.truncated = False
        return _Slot(record, length=1)

    def _describe_object(self, obj: Any, depth: int) -> ObjectRef:
        identity = self._tracker.object_id(obj)
        struct = self._snapshot.get(identity)
        if struct is not None and struct.depth <= depth:
            return ObjectRef(identity)

        if struct is None:
            struct = Structure(identity, "object", name=_class_name(obj), depth=depth)
            self._snapshot[identity] = struct
            if self.options.location & LocationFlag.CLASS:
                struct.editor = resolve_declaration(obj)
        struct.depth = depth

        if depth < self.options.max_depth:
            struct.items, struct.length = self._expose(obj, depth)
        return ObjectRef(identity)

    def _expose(self, obj: Any, depth: int) -> tuple[list[Any], int | None]:
        options = self.options
        try:
            triples = expose_object(obj, options)
        except Exception as exc:
            logger.debug("Exposer failed for %s: %r", type(obj).__name__, exc)
            triples = [_error_field(exc)]

        items: list[Any] = []
        with self._tracker.opened(obj):
            for position, (key, member, visibility) in enumerate(triples[: options.max_items]):
                if options.is_hidden(key):
                    items.append((key, Redacted(hide_value(member)), visibility))
                elif isinstance(member, Redacted):
                    items.append((key, member, visibility))
                else:
                    child = self._describe(member, depth + 1, (id(obj), position))
                    items.append((key, child, visibility))
        length = len(triples) if len(triples) > options.max_items else None
        return items, length

    def _describe_resource(self, handle: Any, kind: str, depth: int) -> ResourceRef:
        identity = self._tracker.resource_id(handle)
        if identity in self._snapshot:
            return ResourceRef(identity)

        struct = Structure(identity, "resource", name=f"{kind} resource", depth=depth)
        self._snapshot[identity] = struct
        try:
            pairs = expose_resource(handle, kind, self.options)
        except Exception as exc:
            logger.debug("Resource exposer failed for %s: %r", kind, exc)
            pairs = [_error_field(exc)[:2]]
        if pairs is not None:
            items: list[Any] = []
            with self._tracker.opened(handle):
                for position, (key, member) in enumerate(pairs):
                    if isinstance(member, Redacted):
                        items.append((key, member))
                    else:
                        items.append((key, self._describe(member, depth + 1, (id(handle), position))))
            struct.items = items
        return ResourceRef(identity)

    # -------------------------------- finalize --------------------------------

    def _finalize(self, walked: Any) -> Model:
        if not isinstance(walked, _Slot):
            if isinstance(walked, (Number, Text, Redacted, ObjectRef, ResourceRef)):
                return walked
            if walked is None or isinstance(walked, bool | int | float | str):
                return walked
            raise UnsupportedValueError(walked)

        record = walked.record
        if walked.recursion:
            return ArrayRef(cut=Cut.RECURSION, length=walked.length)
        if record.entries is None:
            return ArrayRef(cut=Cut.DEPTH, length=record.length)
        if not (record.shared or record.truncated):
            # one node per record: immutable containers may be sighted many times
            inline = self._inlined.get(id(record))
            if inline is None:
                inline = InlineArray(tuple(self._finalize_entry(e) for e in record.entries))
                self._inlined[id(record)] = inline
            return inline

        identity = self._tracker.reference_id(record)
        if identity not in self._snapshot:
            struct = Structure(identity, "array", depth=record.depth or 0)
            self._snapshot[identity] = struct
            struct.items = [self._finalize_entry(e) for e in record.entries]
            struct.length = record.length if record.truncated else None
        if record.truncated:
            return ArrayRef(identity, cut=Cut.ITEMS, length=record.length)
        return ArrayRef(identity)

    def _ref_of(self, walked: Any) -> str | None:
        if isinstance(walked, _Slot) and walked.record.shared:
            return self._tracker.reference_id(walked.record)
        return None

    def _finalize_entry(self, entry: tuple[Any, Any]) -> Entry:
        key, walked = entry
        return Entry(key, self._finalize(walked), self._ref_of(walked))

    def _finalize_item(self, item: tuple[Any, ...], kind: str) -> Entry | Field:
        if kind == "object":
            key, walked, visibility = item
            return Field(str(key), self._finalize(walked), visibility, self._ref_of(walked))
        key, walked = item
        return Entry(format_key(key, self.options.max_length), self._finalize(walked))


def describe(value: Any, options: DumpOptions | None = None, **overrides: Any) -> Description:
    """Describe ``value`` with ``options`` (plus keyword overrides)."""
    options = (options or DumpOptions()).with_overrides(**overrides)
    return Describer(options).describe(value)


__all__ = ["Describer", "describe"]
