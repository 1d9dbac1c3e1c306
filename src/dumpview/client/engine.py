"""
Client expansion engine.

Rebuilds deferred nodes from the wire format, producing the same markup text
the server renderer emits for an eager render. Collapsed nodes get a one-shot
``dumpview-toggle`` listener that removes itself before building its children,
so repeated activation never builds twice.
"""

from __future__ import annotations

import json
from typing import Any

from dumpview.core.contracts.options import DumpOptions
from dumpview.core.settings import get_logger

from .dom import Element, Event, Node, TextNode, fragment

logger = get_logger(__name__)

TOGGLE_EVENT = "dumpview-toggle"

_KIND_ARRAY, _KIND_OBJECT, _KIND_RESOURCE = "array", "object", "resource"

_VISIBILITY_CLASSES = [
    "dumpview-public",
    "dumpview-protected",
    "dumpview-private",
    "dumpview-dynamic",
    "dumpview-virtual",
]


def _span(css: str | None, content: list[Node | str], **attrs: str | None) -> Element:
    return Element("span", {"class": css, **attrs}, content)


def _indent(depth: int) -> Element:
    return _span("dumpview-indent", ["   " + "|  " * depth])


def _array_head(count: int | str) -> list[Node | str]:
    return [_span("dumpview-array", ["array"]), f" ({count})"]


def _recursion(before: str, after: str) -> list[Node | str]:
    return [before, Element("i", None, ["RECURSION"]), after]


class ExpansionEngine:
    """Builds and expands dumpview markup inside a headless DOM.

    Parameters
    ----------
    options : DumpOptions | None
        Only the collapse thresholds are used; they must match the ones the
        server rendered with.
    """

    def __init__(self, options: DumpOptions | None = None) -> None:
        self.options = options if options is not None else DumpOptions()
        self.repository: dict[str, dict[str, Any]] = {}

    # --------------------------------- setup ----------------------------------

    def init(self, root: Element) -> None:
        """Merge snapshot payloads under ``root`` and build every placeholder."""
        elements = ([root] if root.tag is not None else []) + list(root.iter())

        for el in elements:
            if el.tag == "meta" and el.get_attribute("itemprop") == "dumpview-snapshot":
                self.merge(json.loads(el.get_attribute("content") or "{}"))
            elif el.has_attribute("data-dumpview-snapshot"):
                self.merge(json.loads(el.get_attribute("data-dumpview-snapshot") or "{}"))
                el.remove_attribute("data-dumpview-snapshot")

        for el in elements:
            payload = el.get_attribute("data-dumpview-dump")
            if payload is None:
                continue
            el.remove_attribute("data-dumpview-dump")
            data = json.loads(payload)
            if el.tag == "pre":
                self._build_root(el, data)
            else:
                self._build_deferred(el, data)

    def merge(self, snapshot: dict[str, Any]) -> None:
        """Add ``snapshot`` to the repository; the first payload for an id wins."""
        for identity, struct in snapshot.items():
            self.repository.setdefault(str(identity), struct)

    def _build_root(self, pre: Element, data: Any) -> None:
        collapsed = True if pre.has_class("dumpview-collapsed") else None
        built = self.build(data, depth=0, parents=[], collapsed=collapsed)
        last = pre.last_child
        reference = last if isinstance(last, Element) and last.tag == "small" else None
        pre.insert_before(built, reference)
        pre.toggle_class("dumpview-collapsed", False)

    def _build_deferred(self, toggle: Element, data: Any) -> None:
        parent = toggle.parent
        if parent is None:
            return
        depth = int(toggle.get_attribute("data-dumpview-depth") or 0)
        parents = json.loads(toggle.get_attribute("data-dumpview-parents") or "[]")
        after = toggle.next_sibling
        if isinstance(after, TextNode) and after.data.startswith("\n"):
            after.data = after.data[1:]
            if not after.data:
                parent.remove_child(after)
        built = self.build(data, depth=depth, parents=parents, collapsed=True)
        parent.replace_child(built, toggle)

    # --------------------------------- build ----------------------------------

    def build(
        self,
        data: Any,
        depth: int = 0,
        parents: list[Any] | None = None,
        collapsed: bool | None = None,
    ) -> Element:
        """Build the fragment for one wire node, newline included."""
        parents = parents or []
        if data is None:
            return fragment([_span("dumpview-null", ["None"]), "\n"])
        if isinstance(data, bool):
            return fragment([_span("dumpview-bool", [str(data)]), "\n"])
        if isinstance(data, int | float):
            return fragment([_span("dumpview-number", [repr(data)]), "\n"])
        if isinstance(data, str):
            return self._string(data, len(data), binary=False)
        if isinstance(data, list):
            return self._array(data, None, depth, parents, collapsed)
        if "number" in data:
            return fragment([_span("dumpview-number", [data["number"]]), "\n"])
        if "text" in data:
            return fragment([_span(None, [data["text"]]), "\n"])
        if "string" in data:
            return self._string(data["string"], data["length"], binary=False)
        if "bin" in data:
            return self._string(data["bin"], data["length"], binary=True)
        if "array" in data:
            if data.get("cut") == "r":
                return fragment(_array_head(data["length"]) + _recursion(" [ ", " ]\n"))
            if data.get("cut") == "d":
                return fragment(_array_head(data["length"]) + [" [ … ]\n"])
            if isinstance(data["array"], list):
                return self._array(data["array"], None, depth, parents, collapsed)
            return self._array(None, data["array"], depth, parents, collapsed)
        if "object" in data:
            return self._object(data["object"], depth, parents, collapsed)
        if "resource" in data:
            return self._resource(data["resource"], depth, parents)
        logger.debug("Unknown wire node: %r", data)
        return fragment([_span("dumpview-missing", [f"unknown {data!r}"]), "\n"])

    def _collapsed(self, count: int, depth: int, forced: bool | None) -> bool:
        if forced is not None:
            return forced
        if depth:
            return count >= self.options.collapse_sub
        top = self.options.collapse_top
        return top if isinstance(top, bool) else count >= top

    @staticmethod
    def _string(display: str, length: int, binary: bool) -> Element:
        prefix = "b" if binary else ""
        content: list[Node | str] = [_span("dumpview-string", [f"{prefix}'{display}'"])]
        if length > 1:
            content.append(f" ({length})")
        return fragment(content + ["\n"])

    @staticmethod
    def _missing(identity: Any) -> Element:
        logger.debug("Identity %r missing from the repository", identity)
        return fragment([Element("i", {"class": "dumpview-missing"}, [f"missing {identity}"]), "\n"])

    def _array(
        self,
        inline: list[Any] | None,
        identity: Any,
        depth: int,
        parents: list[Any],
        collapsed: bool | None,
    ) -> Element:
        if inline is not None:
            items, count, cut = inline, len(inline), False
        else:
            struct = self.repository.get(str(identity))
            if struct is None:
                return self._missing(identity)
            items = struct.get("items") or []
            length = struct.get("length")
            count = len(items) if length is None else length
            cut = length is not None and length > len(items)
            if identity in parents:
                return fragment(_array_head(count) + _recursion(" [ ", " ]\n"))
            parents = parents + [identity]

        if not items:
            return fragment(_array_head("") + ["\n"])
        return self._struct(
            _array_head(count),
            items,
            self._collapsed(count, depth, collapsed),
            cut,
            _KIND_ARRAY,
            depth,
            parents,
        )

    def _object(
        self, identity: Any, depth: int, parents: list[Any], collapsed: bool | None
    ) -> Element:
        struct = self.repository.get(str(identity))
        if struct is None:
            return self._missing(identity)

        attrs: dict[str, str | None] = {}
        editor = struct.get("editor")
        if editor:
            attrs["title"] = f"Declared in file {editor['file']} on line {editor['line']}"
            attrs["data-dumpview-href"] = editor.get("url")
        header: list[Node | str] = [
            _span("dumpview-object", [struct.get("name") or ""], **attrs),
            " ",
            _span("dumpview-hash", [f"#{identity}"]),
        ]

        items = struct.get("items")
        if items is None:
            return fragment(header + [" { … }\n"])
        if not items:
            return fragment(header + ["\n"])
        if identity in parents:
            return fragment(header + _recursion(" { ", " }\n"))

        length = struct.get("length")
        return self._struct(
            header,
            items,
            self._collapsed(len(items), depth, collapsed),
            length is not None and length > len(items),
            _KIND_OBJECT,
            depth,
            parents + [identity],
        )

    def _resource(self, identity: Any, depth: int, parents: list[Any]) -> Element:
        struct = self.repository.get(str(identity))
        if struct is None:
            return self._missing(identity)
        header: list[Node | str] = [
            _span("dumpview-resource", [struct.get("name") or ""]),
            " ",
            _span("dumpview-hash", [f"@{str(identity)[1:]}"]),
        ]
        items = struct.get("items")
        if not items or identity in parents:
            return fragment(header + ["\n"])
        return self._struct(header, items, True, False, _KIND_RESOURCE, depth, parents + [identity])

    def _struct(
        self,
        header: list[Node | str],
        items: list[Any],
        collapsed: bool,
        cut: bool,
        kind: str,
        depth: int,
        parents: list[Any],
    ) -> Element:
        toggle = _span("dumpview-toggle dumpview-collapsed" if collapsed else "dumpview-toggle", header)
        div = Element("div", {"class": "dumpview-collapsed" if collapsed else None})

        def fill() -> None:
            self._create_items(div, items, kind, depth, parents)
            if cut:
                div.append(_indent(depth))
                div.append("…\n")

        if collapsed:

            def handler(event: Event) -> None:
                toggle.remove_event_listener(TOGGLE_EVENT, handler)
                fill()

            toggle.add_event_listener(TOGGLE_EVENT, handler)
        else:
            fill()
        return fragment([toggle, "\n", div])

    def _create_items(
        self, div: Element, items: list[Any], kind: str, depth: int, parents: list[Any]
    ) -> None:
        for item in items:
            div.append(_indent(depth))
            if kind == _KIND_ARRAY:
                key, value = item[0], item[1]
                ref = item[2] if len(item) > 2 else None
                div.append(_span("dumpview-key", [str(key)]))
                div.append(" => ")
            elif kind == _KIND_OBJECT:
                key, value, visibility = item[0], item[1], item[2]
                ref = item[3] if len(item) > 3 else None
                if isinstance(visibility, str):
                    div.append(
                        _span("dumpview-private", [str(key)], title=f"declared in {visibility}")
                    )
                else:
                    div.append(_span(_VISIBILITY_CLASSES[visibility], [str(key)]))
                div.append(": ")
            else:
                key, value, ref = item[0], item[1], None
                div.append(_span("dumpview-virtual", [str(key)]))
                div.append(": ")
            if ref:
                div.append(_span("dumpview-hash", [f"&{ref}"]))
                div.append(" ")
            div.append(self.build(value, depth + 1, parents))

    # ------------------------------- activation -------------------------------

    def toggle(self, toggle: Element, show: bool | None = None) -> None:
        """Expand or collapse ``toggle`` and the ``<div>`` that follows it."""
        show = toggle.has_class("dumpview-collapsed") if show is None else show
        toggle.toggle_class("dumpview-collapsed", not show)
        sibling = toggle.next_sibling
        while sibling is not None and not isinstance(sibling, Element):
            sibling = sibling.next_sibling
        if isinstance(sibling, Element) and sibling.tag == "div":
            sibling.toggle_class("dumpview-collapsed", not show)
        if show:
            toggle.dispatch(TOGGLE_EVENT, collapsed=False)

    def expand_all(self, root: Element) -> int:
        """Expand every collapsed toggle, including the ones expansion creates.

        Returns the number of activations performed.
        """
        count = 0
        while True:
            pending = root.query_all(
                lambda el: el.has_class("dumpview-toggle") and el.has_class("dumpview-collapsed")
            )
            if not pending:
                return count
            for el in pending:
                self.toggle(el, True)
                count += 1


__all__ = ["ExpansionEngine", "TOGGLE_EVENT"]
