"""
JSON wire format for Model nodes and Snapshot payloads.

Shapes
------
- scalars are emitted raw;
- ``{"number": "4.0"}``, ``{"text": "***** (str)"}``;
- ``{"string": "...", "length": N}`` / ``{"bin": "...", "length": N}``;
- inline containers: ``[[key, value], [key, value, "p1"], ...]``;
- refs: ``{"object": 3}``, ``{"array": "p1"}``, ``{"resource": "r2"}``;
- cuts: ``{"array": [], "cut": "r"|"d", "length": N}`` and
  ``{"array": "p1", "cut": "i", "length": N}``.

Snapshots serialize as ``{identity: {"name"?, "items"?, "length"?, "editor"?}}``.
The walk ``depth`` is internal and never shipped.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from .errors import UnsupportedValueError
from .model import (
    ArrayRef,
    Cut,
    Entry,
    Field,
    Identity,
    InlineArray,
    Model,
    Number,
    ObjectRef,
    Redacted,
    ResourceRef,
    Structure,
    Text,
)


def to_wire(model: Model) -> Any:
    """Return the JSON-ready form of ``model``.

    Raises
    ------
    UnsupportedValueError
        If ``model`` is not one of the Model kinds.
    """
    match model:
        case None | bool() | int() | float() | str():
            return model
        case Number(text=text):
            return {"number": text}
        case Redacted(text=text):
            return {"text": text}
        case Text(display=display, length=length, binary=binary):
            return {"bin" if binary else "string": display, "length": length}
        case InlineArray(entries=entries):
            return [_entry_to_wire(e) for e in entries]
        case ArrayRef(cut=Cut.RECURSION | Cut.DEPTH as cut, length=length):
            return {"array": [], "cut": cut.value, "length": length}
        case ArrayRef(identity=identity, cut=Cut.ITEMS, length=length):
            return {"array": identity, "cut": Cut.ITEMS.value, "length": length}
        case ArrayRef(identity=identity):
            return {"array": identity}
        case ObjectRef(identity=identity):
            return {"object": identity}
        case ResourceRef(identity=identity):
            return {"resource": identity}
    raise UnsupportedValueError(model)


def _entry_to_wire(entry: Entry) -> list[Any]:
    res: list[Any] = [entry.key, to_wire(entry.value)]
    if entry.ref:
        res.append(entry.ref)
    return res


def _field_to_wire(field: Field) -> list[Any]:
    res: list[Any] = [field.key, to_wire(field.value), _tag_to_wire(field.visibility)]
    if field.ref:
        res.append(field.ref)
    return res


def _tag_to_wire(tag: int | str) -> int | str:
    return tag if isinstance(tag, str) else int(tag)


def structure_to_wire(struct: Structure) -> dict[str, Any]:
    """Serialize one snapshot entry."""
    res: dict[str, Any] = {}
    if struct.name is not None:
        res["name"] = struct.name
    if struct.items is not None:
        if struct.kind == "object":
            res["items"] = [_field_to_wire(f) for f in struct.items]  # type: ignore[arg-type]
        else:
            res["items"] = [_entry_to_wire(e) for e in struct.items]  # type: ignore[arg-type]
    if struct.length is not None:
        res["length"] = struct.length
    if struct.editor is not None:
        res["editor"] = {
            "file": struct.editor.file,
            "line": struct.editor.line,
            "url": struct.editor.url,
        }
    return res


def snapshot_to_wire(snapshot: Mapping[Identity, Structure]) -> dict[str, Any]:
    """Serialize a snapshot (or a slice of one); keys become strings."""
    return {str(identity): structure_to_wire(s) for identity, s in snapshot.items()}


def dumps_attribute(payload: Any) -> str:
    """Encode ``payload`` as JSON safe for a single-quoted HTML attribute."""
    text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return (
        text.replace("&", "\\u0026")
        .replace("'", "\\u0027")
        .replace("<", "\\u003C")
        .replace(">", "\\u003E")
    )


__all__ = ["to_wire", "structure_to_wire", "snapshot_to_wire", "dumps_attribute"]
