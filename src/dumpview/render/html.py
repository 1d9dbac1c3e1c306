"""
HTML renderer for Model + Snapshot pairs.

Markup
------
The root is ``<pre class="dumpview-dump">``. Every expandable node is a
``<span class="dumpview-toggle">`` header followed by ``\\n`` and a ``<div>``
holding one line per member::

    <span class="dumpview-indent">   |  </span><span class="dumpview-key">a</span> => ...

Lazy modes
----------
- ``off``: everything is rendered now, no payloads.
- ``full``: the root carries the whole Model in ``data-dumpview-dump`` and the
  whole Snapshot in ``data-dumpview-snapshot``; the client builds it all.
- ``hybrid``: nodes that start collapsed are emitted as a bare toggle carrying
  their own Model, the Snapshot slice reachable from it (minus identities
  already shipped by this render), their render depth and the open
  ancestors, so the client can build them exactly as the server would have.
"""

from __future__ import annotations

from html import escape
from typing import Any, cast

from dumpview.core.contracts.options import DumpOptions, LazyMode, LocationFlag
from dumpview.core.errors import UnknownIdentityError, UnsupportedValueError
from dumpview.core.location import editor_uri
from dumpview.core.model import (
    ArrayRef,
    CallSite,
    Cut,
    Description,
    Entry,
    Field,
    Identity,
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
    is_structural,
)
from dumpview.core.wire import dumps_attribute, snapshot_to_wire, to_wire

VISIBILITY_CLASSES: dict[int, str] = {
    Visibility.PUBLIC: "dumpview-public",
    Visibility.PROTECTED: "dumpview-protected",
    Visibility.PRIVATE: "dumpview-private",
    Visibility.DYNAMIC: "dumpview-dynamic",
    Visibility.VIRTUAL: "dumpview-virtual",
}

ARRAY_HEAD = '<span class="dumpview-array">array</span> ('


def indent(depth: int) -> str:
    return f'<span class="dumpview-indent">   {"|  " * depth}</span>'


def string_markup(display: str, length: int, binary: bool = False) -> str:
    """Markup of a (possibly truncated) string with its length suffix."""
    prefix = "b" if binary else ""
    suffix = f" ({length})" if length > 1 else ""
    return f"<span class=\"dumpview-string\">{prefix}'{escape(display)}'</span>{suffix}\n"


def format_snapshot_attribute(snapshot: Snapshot) -> str:
    """Return a single-quoted attribute value holding ``snapshot``."""
    return "'" + dumps_attribute(snapshot_to_wire(snapshot)) + "'"


class Renderer:
    """Renders one Description at a time; not thread-safe.

    Parameters
    ----------
    options : DumpOptions | None
        Collapse thresholds, lazy mode and location flags.
    collecting : bool
        Session mode: payloads never carry snapshot data, the caller flushes
        the collected snapshot once for the whole page.
    """

    def __init__(self, options: DumpOptions | None = None, *, collecting: bool = False) -> None:
        self.options = options if options is not None else DumpOptions()
        self.collecting = collecting
        self._lazy = self.options.lazy
        self._snapshot: Snapshot = {}
        self._parents: list[Identity] = []
        self._shipped: set[Identity] = set()

    # --------------------------------- entry ----------------------------------

    def render_html(self, description: Description) -> str:
        """Render ``description`` as a ``<pre>`` block."""
        model = description.value
        self._reset(description.snapshot, self.options.lazy)

        html = ""
        payload: Any = None
        snapshot: Snapshot | None = None
        if self._lazy is LazyMode.FULL and is_structural(model):
            payload = to_wire(model)
            snapshot = None if self.collecting else self._snapshot
        else:
            html = self._render_var(model, 0)

        classes = "dumpview-dump"
        if payload is not None and self.options.collapse_top is True:
            classes += " dumpview-collapsed"
        out = f'<pre class="{classes}"' + self._location_attributes(description.location)
        if snapshot is not None:
            out += " data-dumpview-snapshot=" + format_snapshot_attribute(snapshot)
        if payload is not None:
            out += " data-dumpview-dump='" + dumps_attribute(payload) + "'"
        return out + ">" + html + self._location_link(description.location) + "</pre>\n"

    def render_markup(self, description: Description) -> str:
        """Render ``description`` eagerly, without the ``<pre>`` wrapper."""
        self._reset(description.snapshot, LazyMode.OFF)
        return self._render_var(description.value, 0)

    def _reset(self, snapshot: Snapshot, lazy: LazyMode) -> None:
        self._snapshot = snapshot
        self._lazy = lazy
        self._parents = []
        self._shipped = set()

    # -------------------------------- location --------------------------------

    def _location_attributes(self, location: CallSite | None) -> str:
        if location is None or not self.options.location & LocationFlag.SOURCE:
            return ""
        title = f"{location.code}\nin file {location.file} on line {location.line}"
        out = f' title="{escape(title)}"'
        url = editor_uri(location.file, location.line)
        if url:
            out += f' data-dumpview-href="{escape(url)}"'
        return out

    def _location_link(self, location: CallSite | None) -> str:
        if location is None or not self.options.location & LocationFlag.LINK:
            return ""
        url = editor_uri(location.file, location.line)
        href = f' href="{escape(url)}"' if url else ""
        return f"<small>in <a{href}>{escape(location.file)}:{location.line}</a></small>"

    # --------------------------------- nodes ----------------------------------

    def _render_var(self, model: Model, depth: int) -> str:
        match model:
            case None:
                return '<span class="dumpview-null">None</span>\n'
            case bool():
                return f'<span class="dumpview-bool">{model}</span>\n'
            case int():
                return f'<span class="dumpview-number">{model}</span>\n'
            case float():
                return f'<span class="dumpview-number">{model!r}</span>\n'
            case str():
                return string_markup(model, len(model))
            case Number(text=text):
                return f'<span class="dumpview-number">{escape(text)}</span>\n'
            case Redacted(text=text):
                return f"<span>{escape(text)}</span>\n"
            case Text(display=display, length=length, binary=binary):
                return string_markup(display, length, binary)
            case InlineArray() | ArrayRef():
                return self._render_array(model, depth)
            case ObjectRef():
                return self._render_object(model, depth)
            case ResourceRef():
                return self._render_resource(model, depth)
        raise UnsupportedValueError(model)

    def _lookup(self, identity: Identity) -> Structure:
        try:
            return self._snapshot[identity]
        except KeyError:
            raise UnknownIdentityError(identity) from None

    def _collapsed(self, count: int, depth: int) -> bool:
        if depth:
            return count >= self.options.collapse_sub
        top = self.options.collapse_top
        return top if isinstance(top, bool) else count >= top

    def _render_array(self, model: InlineArray | ArrayRef, depth: int) -> str:
        if isinstance(model, ArrayRef) and model.cut in (Cut.RECURSION, Cut.DEPTH):
            marker = "[ <i>RECURSION</i> ]" if model.cut is Cut.RECURSION else "[ … ]"
            return f"{ARRAY_HEAD}{model.length}) {marker}\n"

        identity: Identity | None = None
        if isinstance(model, InlineArray):
            items: list[Any] = list(model.entries)
            count, cut = len(items), False
        else:
            identity = model.identity
            struct = self._lookup(identity)  # type: ignore[arg-type]
            items, count, cut = list(struct.items or ()), struct.count, struct.truncated
            if identity in self._parents:
                return f"{ARRAY_HEAD}{count}) [ <i>RECURSION</i> ]\n"

        if not items:
            return ARRAY_HEAD + ")\n"
        header = f"{ARRAY_HEAD}{count})"
        collapsed = self._collapsed(count, depth)
        if collapsed and self._lazy is not LazyMode.OFF:
            return self._deferred(model, header, depth)

        out = self._toggle(header, collapsed)
        pad = indent(depth)
        if identity is not None:
            self._parents.append(identity)
        for entry in items:
            out += pad + f'<span class="dumpview-key">{escape(str(entry.key))}</span> => '
            out += self._hash(entry.ref) + self._render_var(entry.value, depth + 1)
        if identity is not None:
            self._parents.pop()
        if cut:
            out += pad + "…\n"
        return out + "</div>"

    def _render_object(self, model: ObjectRef, depth: int) -> str:
        identity = model.identity
        struct = self._lookup(identity)
        attrs = ""
        if struct.editor is not None:
            title = f"Declared in file {struct.editor.file} on line {struct.editor.line}"
            attrs = f' title="{escape(title)}"'
            if struct.editor.url:
                attrs += f' data-dumpview-href="{escape(struct.editor.url)}"'
        header = (
            f'<span class="dumpview-object"{attrs}>{escape(struct.name or "")}</span>'
            f' <span class="dumpview-hash">#{identity}</span>'
        )

        if struct.items is None:
            return header + " { … }\n"
        if not struct.items:
            return header + "\n"
        if identity in self._parents:
            return header + " { <i>RECURSION</i> }\n"

        collapsed = self._collapsed(len(struct.items), depth)
        if collapsed and self._lazy is not LazyMode.OFF:
            return self._deferred(model, header, depth)

        out = self._toggle(header, collapsed)
        pad = indent(depth)
        self._parents.append(identity)
        fields = cast(list[Field], struct.items)
        for field in fields:
            out += pad + self._field_key(field) + ": "
            out += self._hash(field.ref) + self._render_var(field.value, depth + 1)
        self._parents.pop()
        if struct.truncated:
            out += pad + "…\n"
        return out + "</div>"

    def _render_resource(self, model: ResourceRef, depth: int) -> str:
        identity = model.identity
        struct = self._lookup(identity)
        header = (
            f'<span class="dumpview-resource">{escape(struct.name or "")}</span>'
            f' <span class="dumpview-hash">@{str(identity)[1:]}</span>'
        )
        if not struct.items or identity in self._parents:
            return header + "\n"

        out = self._toggle(header, True)
        pad = indent(depth)
        self._parents.append(identity)
        for entry in struct.items:
            out += pad + f'<span class="dumpview-virtual">{escape(str(entry.key))}</span>: '
            out += self._render_var(entry.value, depth + 1)
        self._parents.pop()
        return out + "</div>"

    # -------------------------------- helpers ---------------------------------

    @staticmethod
    def _toggle(header: str, collapsed: bool) -> str:
        if collapsed:
            return (
                f'<span class="dumpview-toggle dumpview-collapsed">{header}</span>\n'
                '<div class="dumpview-collapsed">'
            )
        return f'<span class="dumpview-toggle">{header}</span>\n<div>'

    @staticmethod
    def _hash(ref: str | None) -> str:
        return f'<span class="dumpview-hash">&amp;{ref}</span> ' if ref else ""

    @staticmethod
    def _field_key(field: Field) -> str:
        if isinstance(field.visibility, str):
            title = escape(f"declared in {field.visibility}")
            return f'<span class="dumpview-private" title="{title}">{escape(field.key)}</span>'
        css = VISIBILITY_CLASSES[int(field.visibility)]
        return f'<span class="{css}">{escape(field.key)}</span>'

    def _deferred(self, model: Model, header: str, depth: int) -> str:
        """Emit a collapsed toggle the client builds on first activation."""
        out = '<span class="dumpview-toggle dumpview-collapsed"'
        out += " data-dumpview-dump='" + dumps_attribute(to_wire(model)) + "'"
        out += f' data-dumpview-depth="{depth}"'
        if self._parents:
            out += " data-dumpview-parents='" + dumps_attribute(list(self._parents)) + "'"
        if not self.collecting:
            selection = self._select(model)
            if selection:
                out += " data-dumpview-snapshot=" + format_snapshot_attribute(selection)
        return out + f">{header}</span>\n"

    def _select(self, model: Model) -> Snapshot:
        """Snapshot slice reachable from ``model`` that was not shipped yet.

        Open ancestors are shipped for their header only; their members are
        already on the page.
        """
        selection: Snapshot = {}
        stack: list[Model] = [model]
        while stack:
            node = stack.pop()
            if isinstance(node, InlineArray):
                stack.extend(entry.value for entry in reversed(node.entries))
                continue
            if not isinstance(node, ArrayRef | ObjectRef | ResourceRef) or node.identity is None:
                continue
            identity = node.identity
            if identity in self._shipped:
                continue
            struct = self._lookup(identity)
            selection[identity] = struct
            if identity in self._parents:
                # header only; a later slice may still need its members
                continue
            self._shipped.add(identity)
            if struct.items:
                items: list[Entry] | list[Field] = struct.items
                stack.extend(item.value for item in reversed(items))
        return selection


def render_html(description: Description, options: DumpOptions | None = None) -> str:
    """Render ``description`` with a throwaway :class:`Renderer`."""
    return Renderer(options).render_html(description)


__all__ = [
    "ARRAY_HEAD",
    "Renderer",
    "VISIBILITY_CLASSES",
    "format_snapshot_attribute",
    "indent",
    "render_html",
    "string_markup",
]
