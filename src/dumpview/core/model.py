"""
Model nodes and snapshot structures produced by the describer.

A *Model* is the bounded description of one value. It is a closed union:

- raw scalars: ``None``, ``bool``, small ``int``, non-integral finite ``float``
  and short ``str`` are carried by value;
- :class:`Number`, :class:`Text`, :class:`Redacted` wrap scalars that need
  re-encoding, truncation or hiding;
- :class:`InlineArray` embeds a small, unshared container directly;
- :class:`ArrayRef`, :class:`ObjectRef`, :class:`ResourceRef` point into the
  :data:`Snapshot`, an identity-keyed table of :class:`Structure` records.

Design Notes
------------
- Model nodes are frozen, slotted dataclasses: they are built once per
  describe call and never mutated afterwards.
- :class:`Structure` is mutable while the describer walks; the renderer only
  reads it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import Literal, NamedTuple, TypeAlias

Identity: TypeAlias = int | str
Key: TypeAlias = int | str


class Cut(StrEnum):
    """Why a container was not expanded (wire codes are single letters)."""

    RECURSION = "r"
    DEPTH = "d"
    ITEMS = "i"


class Visibility(IntEnum):
    """Visibility tags for object fields.

    Private fields are tagged with the *name of the declaring class* (a
    ``str``) instead of :attr:`PRIVATE`; the enum member exists so renderers
    can index their class table.
    """

    PUBLIC = 0
    PROTECTED = 1
    PRIVATE = 2
    DYNAMIC = 3
    VIRTUAL = 4


FieldTag: TypeAlias = Visibility | int | str


@dataclass(frozen=True, slots=True)
class Number:
    """A number whose plain JSON form would be ambiguous or lossy."""

    text: str


@dataclass(frozen=True, slots=True)
class Text:
    """A truncated or escaped string; ``binary`` marks byte strings."""

    display: str
    length: int
    binary: bool = False


@dataclass(frozen=True, slots=True)
class Redacted:
    """Placeholder for a hidden value, e.g. ``'***** (str)'``."""

    text: str


class Entry(NamedTuple):
    """One container (or resource) member: key, value and optional reference id."""

    key: Key
    value: Model
    ref: str | None = None


class Field(NamedTuple):
    """One object field with its visibility tag and optional reference id."""

    key: str
    value: Model
    visibility: FieldTag = Visibility.PUBLIC
    ref: str | None = None


@dataclass(frozen=True, slots=True)
class InlineArray:
    """A small unshared container embedded directly in the Model."""

    entries: tuple[Entry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True, slots=True)
class ArrayRef:
    """A container stored in the snapshot, or a cut marker.

    ``identity`` is ``None`` for recursion and depth cuts; ``length`` carries the
    true member count for every cut.
    """

    identity: Identity | None = None
    cut: Cut | None = None
    length: int | None = None


@dataclass(frozen=True, slots=True)
class ObjectRef:
    identity: Identity


@dataclass(frozen=True, slots=True)
class ResourceRef:
    identity: Identity


Model: TypeAlias = (
    None
    | bool
    | int
    | float
    | str
    | Number
    | Text
    | Redacted
    | InlineArray
    | ArrayRef
    | ObjectRef
    | ResourceRef
)

RefNode = (ArrayRef, ObjectRef, ResourceRef)


@dataclass(frozen=True, slots=True)
class EditorLocation:
    """Where a class or function is declared, plus an optional editor URI."""

    file: str
    line: int
    url: str | None = None


StructureKind = Literal["array", "object", "resource"]


@dataclass(slots=True)
class Structure:
    """Snapshot entry describing one shared identity.

    Attributes
    ----------
    identity : Identity
        Objects use a per-call (or per-session) instance number, resources
        ``"r<n>"``, shared or truncated containers ``"p<n>"``.
    kind : StructureKind
        Which kind of ref points here; decides the shape of ``items``.
    name : str | None
        Class or resource-kind name. ``None`` for plain containers.
    depth : int
        Shallowest depth at which the identity has been expanded.
    items : list | None
        ``None`` means "not expanded" (depth bound hit); an empty list means
        "no members".
    length : int | None
        True member count when ``items`` was cut by the item limit.
    editor : EditorLocation | None
        Declaration site, when location display is enabled.
    """

    identity: Identity
    kind: StructureKind
    name: str | None = None
    depth: int = 0
    items: list[Entry] | list[Field] | None = None
    length: int | None = None
    editor: EditorLocation | None = None

    @property
    def count(self) -> int:
        """Number of members, counting those cut by the item limit."""
        if self.length is not None:
            return self.length
        return len(self.items or ())

    @property
    def truncated(self) -> bool:
        """True if ``items`` holds fewer members than the value had."""
        return self.length is not None and self.length > len(self.items or ())


Snapshot: TypeAlias = dict[Identity, Structure]


@dataclass(slots=True)
class CallSite:
    """The source line that requested a dump."""

    file: str
    line: int
    code: str = ""


@dataclass(slots=True)
class Description:
    """Result of one describe call: the Model, its Snapshot and the call site."""

    value: Model
    snapshot: Snapshot = field(default_factory=dict)
    location: CallSite | None = None


def is_structural(model: Model) -> bool:
    """Return True for nodes the client can expand (non-empty containers and refs)."""
    if isinstance(model, InlineArray):
        return bool(model.entries)
    if isinstance(model, ArrayRef):
        return model.cut not in (Cut.RECURSION, Cut.DEPTH)
    return isinstance(model, ObjectRef | ResourceRef)


__all__ = [
    "ArrayRef",
    "CallSite",
    "Cut",
    "Description",
    "EditorLocation",
    "Entry",
    "Field",
    "FieldTag",
    "Identity",
    "InlineArray",
    "Key",
    "Model",
    "Number",
    "ObjectRef",
    "Redacted",
    "RefNode",
    "ResourceRef",
    "Snapshot",
    "Structure",
    "StructureKind",
    "Text",
    "Visibility",
    "is_structural",
]
