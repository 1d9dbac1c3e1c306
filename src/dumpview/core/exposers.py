"""
Property exposers: how objects and resources show their members.

An *object exposer* maps an instance to ordered ``(key, value, visibility)``
triples; a *resource exposer* maps a handle to ``(key, value)`` pairs.

Lookup order for objects
------------------------
1. ``DumpOptions.object_exposers`` then :data:`OBJECT_EXPOSERS`, walking the
   class MRO most-derived first (user entries win at each class);
2. an ``isinstance`` pass over both tables for ABC-registered classes;
3. the ``__rich_repr__`` debug view when ``debug_info`` is enabled;
4. :func:`expose_attributes`, the default attribute exposer.
"""

from __future__ import annotations

import dataclasses
import enum
import inspect
import io
import selectors
import socket
import types
from collections.abc import Callable, Iterable, Iterator, Mapping
from pathlib import PurePath
from typing import Any

from pydantic import BaseModel

from .contracts.options import DumpOptions
from .model import FieldTag, Visibility

Triple = tuple[str, Any, FieldTag]

_MISSING = object()


# ------------------------------ default exposer ------------------------------


def _declared_names(cls: type) -> set[str]:
    names: set[str] = set()
    for klass in cls.__mro__:
        names.update(inspect.get_annotations(klass))
        slots = klass.__dict__.get("__slots__", ())
        names.update([slots] if isinstance(slots, str) else slots)
    return names


def _slot_names(cls: type) -> list[str]:
    names: list[str] = []
    for klass in reversed(cls.__mro__):
        slots = klass.__dict__.get("__slots__", ())
        for name in [slots] if isinstance(slots, str) else slots:
            if name not in ("__dict__", "__weakref__") and name not in names:
                names.append(name)
    return names


def _visibility(cls: type, name: str, declared: set[str]) -> tuple[str, FieldTag]:
    """Return the display key and visibility tag of attribute ``name``."""
    for klass in cls.__mro__:
        prefix = f"_{klass.__name__.lstrip('_')}__"
        if name.startswith(prefix) and len(name) > len(prefix):
            return "__" + name[len(prefix):], klass.__name__
    if name.startswith("_"):
        return name, Visibility.PROTECTED
    if declared and name not in declared:
        return name, Visibility.DYNAMIC
    return name, Visibility.PUBLIC


def expose_attributes(obj: Any) -> list[Triple]:
    """Default exposer: instance ``__dict__`` plus slots, dunders skipped.

    Dataclass fields come first, in declaration order.
    """
    cls = type(obj)
    declared = _declared_names(cls)

    values: dict[str, Any] = {}
    if dataclasses.is_dataclass(obj):
        for f in dataclasses.fields(obj):
            value = getattr(obj, f.name, _MISSING)
            if value is not _MISSING:
                values[f.name] = value
    instance_dict = getattr(obj, "__dict__", None)
    if isinstance(instance_dict, Mapping):
        for name, value in instance_dict.items():
            values.setdefault(str(name), value)
    for name in _slot_names(cls):
        value = getattr(obj, name, _MISSING)
        if value is not _MISSING:
            values.setdefault(name, value)

    res: list[Triple] = []
    for name, value in values.items():
        if name.startswith("__") and name.endswith("__"):
            continue
        key, tag = _visibility(cls, name, declared)
        res.append((key, value, tag))
    return res


# ------------------------------ built-in exposers -----------------------------


def expose_function(fn: Any) -> list[Triple]:
    """Functions and closures: name, signature, captured variables."""
    res: list[Triple] = [("name", getattr(fn, "__qualname__", repr(fn)), Visibility.VIRTUAL)]
    try:
        res.append(("signature", str(inspect.signature(fn)), Visibility.VIRTUAL))
    except (TypeError, ValueError):
        pass
    if isinstance(fn, types.MethodType):
        res.append(("self", fn.__self__, Visibility.VIRTUAL))
    elif isinstance(fn, types.FunctionType) and fn.__closure__:
        for name, value in inspect.getclosurevars(fn).nonlocals.items():
            res.append((name, value, Visibility.VIRTUAL))
    return res


def expose_class(cls: type) -> list[Triple]:
    return [
        ("name", cls.__qualname__, Visibility.VIRTUAL),
        ("module", cls.__module__, Visibility.VIRTUAL),
        ("bases", tuple(b.__qualname__ for b in cls.__bases__), Visibility.VIRTUAL),
    ]


def expose_module(module: types.ModuleType) -> list[Triple]:
    return [
        ("name", module.__name__, Visibility.VIRTUAL),
        ("file", getattr(module, "__file__", None), Visibility.VIRTUAL),
    ]


def expose_exception(exc: BaseException) -> list[Triple]:
    """Message and args, chained causes, then regular attributes."""
    res: list[Triple] = [
        ("message", str(exc), Visibility.VIRTUAL),
        ("args", exc.args, Visibility.VIRTUAL),
    ]
    if exc.__cause__ is not None:
        res.append(("cause", exc.__cause__, Visibility.VIRTUAL))
    elif exc.__context__ is not None and not exc.__suppress_context__:
        res.append(("context", exc.__context__, Visibility.VIRTUAL))
    return res + expose_attributes(exc)


def expose_enum(member: enum.Enum) -> list[Triple]:
    return [("name", member.name, Visibility.VIRTUAL), ("value", member.value, Visibility.VIRTUAL)]


def expose_path(path: PurePath) -> list[Triple]:
    return [("path", str(path), Visibility.VIRTUAL)]


def expose_pydantic(model: BaseModel) -> list[Triple]:
    """Declared fields, then extras (dynamic), then computed fields (virtual)."""
    cls = type(model)
    res: list[Triple] = [
        (name, getattr(model, name, None), Visibility.PUBLIC) for name in cls.model_fields
    ]
    for name, value in (model.model_extra or {}).items():
        res.append((name, value, Visibility.DYNAMIC))
    for name in cls.model_computed_fields:
        res.append((name, getattr(model, name), Visibility.VIRTUAL))
    return res


OBJECT_EXPOSERS: dict[type, Callable[[Any], Iterable[Triple]]] = {
    types.FunctionType: expose_function,
    types.BuiltinFunctionType: expose_function,
    types.MethodType: expose_function,
    type: expose_class,
    types.ModuleType: expose_module,
    BaseException: expose_exception,
    enum.Enum: expose_enum,
    PurePath: expose_path,
    BaseModel: expose_pydantic,
}


def _rich_repr(obj: Any) -> Iterator[Triple]:
    """Translate the ``__rich_repr__`` protocol into field triples."""
    for position, item in enumerate(obj.__rich_repr__()):
        if isinstance(item, tuple) and len(item) >= 2 and isinstance(item[0], str):
            yield item[0], item[1], Visibility.PUBLIC
        elif isinstance(item, tuple) and len(item) >= 2 and item[0] is None:
            yield str(position), item[1], Visibility.PUBLIC
        else:
            yield str(position), item, Visibility.PUBLIC


def find_object_exposer(obj: Any, options: DumpOptions) -> Callable[[Any], Iterable[Triple]]:
    """Pick the exposer for ``obj`` following the module-level lookup order."""
    tables = (options.object_exposers, OBJECT_EXPOSERS)
    for klass in type(obj).__mro__:
        for table in tables:
            exposer = table.get(klass)
            if exposer is not None:
                return exposer
    for table in tables:
        for klass, exposer in table.items():
            if isinstance(obj, klass):
                return exposer
    if options.debug_info and callable(getattr(obj, "__rich_repr__", None)):
        return _rich_repr
    return expose_attributes


def expose_object(obj: Any, options: DumpOptions) -> list[Triple]:
    """Return the ordered field triples of ``obj``. Exposer errors propagate."""
    return list(find_object_exposer(obj, options)(obj))


# --------------------------------- resources ----------------------------------


def resource_kind(value: Any) -> str | None:
    """Return the resource kind of ``value`` or None for non-resources."""
    if isinstance(value, io.IOBase):
        return "closed" if value.closed else "stream"
    if isinstance(value, socket.socket):
        return "closed" if value.fileno() == -1 else "socket"
    if isinstance(value, selectors.BaseSelector):
        return "selector"
    return None


def expose_stream(handle: io.IOBase) -> list[tuple[str, Any]]:
    return [
        ("name", getattr(handle, "name", None)),
        ("mode", getattr(handle, "mode", None)),
        ("encoding", getattr(handle, "encoding", None)),
        ("readable", handle.readable()),
        ("writable", handle.writable()),
        ("seekable", handle.seekable()),
    ]


def expose_socket(sock: socket.socket) -> list[tuple[str, Any]]:
    res: list[tuple[str, Any]] = [
        ("family", sock.family.name),
        ("type", sock.type.name),
        ("blocking", sock.getblocking()),
    ]
    try:
        res.append(("local", sock.getsockname()))
    except OSError:
        pass
    return res


def expose_selector(selector: selectors.BaseSelector) -> list[tuple[str, Any]]:
    return [("registered", len(selector.get_map() or {}))]


RESOURCE_EXPOSERS: dict[str, Callable[[Any], Iterable[tuple[str, Any]]]] = {
    "stream": expose_stream,
    "socket": expose_socket,
    "selector": expose_selector,
}


def expose_resource(handle: Any, kind: str, options: DumpOptions) -> list[tuple[str, Any]] | None:
    """Return the members of a resource, or None when its kind has no exposer."""
    exposer = options.resource_exposers.get(kind) or RESOURCE_EXPOSERS.get(kind)
    return None if exposer is None else list(exposer(handle))


__all__ = [
    "OBJECT_EXPOSERS",
    "RESOURCE_EXPOSERS",
    "expose_attributes",
    "expose_object",
    "expose_resource",
    "find_object_exposer",
    "resource_kind",
]
