"""
A small headless DOM for the expansion engine.

Only what the engine needs: elements with attributes, class lists and event
listeners, text nodes, fragments, tree surgery and ``text_content``. Markup is
parsed with :class:`html.parser.HTMLParser`, which also decodes entities.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from html import escape
from html.parser import HTMLParser
from typing import Any

VOID_TAGS = frozenset({"area", "br", "col", "hr", "img", "input", "link", "meta", "source", "wbr"})

Listener = Callable[["Event"], Any]


class Event:
    """A dispatched event; ``detail`` carries handler arguments."""

    def __init__(self, type: str, target: Element, **detail: Any) -> None:
        self.type = type
        self.target = target
        self.detail = detail


class Node:
    parent: Element | None = None

    @property
    def text_content(self) -> str:
        raise NotImplementedError

    @property
    def next_sibling(self) -> Node | None:
        if self.parent is None:
            return None
        siblings = self.parent.children
        index = siblings.index(self)
        return siblings[index + 1] if index + 1 < len(siblings) else None

    def to_html(self) -> str:
        raise NotImplementedError


class TextNode(Node):
    def __init__(self, data: str) -> None:
        self.data = data

    @property
    def text_content(self) -> str:
        return self.data

    def to_html(self) -> str:
        return escape(self.data, quote=False)

    def __repr__(self) -> str:
        return f"TextNode({self.data!r})"


class Element(Node):
    """An element node. ``tag=None`` makes a document fragment."""

    def __init__(
        self,
        tag: str | None,
        attrs: dict[str, str | None] | None = None,
        children: list[Node | str] | None = None,
    ) -> None:
        self.tag = tag
        self.attrs: dict[str, str] = {k: v for k, v in (attrs or {}).items() if v is not None}
        self.children: list[Node] = []
        self.listeners: dict[str, list[Listener]] = {}
        for child in children or ():
            self.append(child)

    def __repr__(self) -> str:
        return f"Element({self.tag!r}, {self.attrs!r})"

    # ------------------------------- attributes -------------------------------

    def get_attribute(self, name: str) -> str | None:
        return self.attrs.get(name)

    def set_attribute(self, name: str, value: str) -> None:
        self.attrs[name] = value

    def has_attribute(self, name: str) -> bool:
        return name in self.attrs

    def remove_attribute(self, name: str) -> None:
        self.attrs.pop(name, None)

    @property
    def classes(self) -> list[str]:
        return self.attrs.get("class", "").split()

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def toggle_class(self, name: str, force: bool | None = None) -> bool:
        """Add or remove ``name``; returns whether the class is now present."""
        classes = [c for c in self.classes if c != name]
        wanted = name not in self.classes if force is None else force
        if wanted:
            classes.append(name)
        if classes:
            self.attrs["class"] = " ".join(classes)
        else:
            self.attrs.pop("class", None)
        return wanted

    # --------------------------------- tree -----------------------------------

    def _adopt(self, child: Node | str) -> list[Node]:
        if isinstance(child, str):
            child = TextNode(child)
        if isinstance(child, Element) and child.tag is None:
            nodes = list(child.children)
            child.children = []
        else:
            if child.parent is not None:
                child.parent.remove_child(child)
            nodes = [child]
        for node in nodes:
            node.parent = self
        return nodes

    def append(self, child: Node | str) -> None:
        self.children.extend(self._adopt(child))

    def insert_before(self, child: Node | str, reference: Node | None) -> None:
        nodes = self._adopt(child)
        index = len(self.children) if reference is None else self.children.index(reference)
        self.children[index:index] = nodes

    def remove_child(self, child: Node) -> None:
        self.children.remove(child)
        child.parent = None

    def replace_child(self, new: Node | str, old: Node) -> None:
        self.insert_before(new, old)
        self.remove_child(old)

    @property
    def last_child(self) -> Node | None:
        return self.children[-1] if self.children else None

    def iter(self) -> Iterator[Element]:
        """Descendant elements in document order (self excluded)."""
        for child in self.children:
            if isinstance(child, Element):
                yield child
                yield from child.iter()

    def query_all(self, predicate: Callable[[Element], bool]) -> list[Element]:
        return [el for el in self.iter() if predicate(el)]

    @property
    def text_content(self) -> str:
        return "".join(child.text_content for child in self.children)

    def to_html(self) -> str:
        inner = "".join(child.to_html() for child in self.children)
        if self.tag is None:
            return inner
        attrs = "".join(f' {k}="{escape(v)}"' for k, v in self.attrs.items())
        if self.tag in VOID_TAGS:
            return f"<{self.tag}{attrs}>"
        return f"<{self.tag}{attrs}>{inner}</{self.tag}>"

    # -------------------------------- events ----------------------------------

    def add_event_listener(self, type: str, listener: Listener) -> None:
        self.listeners.setdefault(type, []).append(listener)

    def remove_event_listener(self, type: str, listener: Listener) -> None:
        handlers = self.listeners.get(type, [])
        if listener in handlers:
            handlers.remove(listener)

    def dispatch(self, type: str, **detail: Any) -> Event:
        """Run listeners of ``type`` to completion, in registration order."""
        event = Event(type, self, **detail)
        for listener in list(self.listeners.get(type, ())):
            listener(event)
        return event


def fragment(children: list[Node | str] | None = None) -> Element:
    return Element(None, None, children)


class _TreeBuilder(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.root = fragment()
        self._stack: list[Element] = [self.root]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        element = Element(tag, {k: ("" if v is None else v) for k, v in attrs})
        self._stack[-1].append(element)
        if tag not in VOID_TAGS:
            self._stack.append(element)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._stack[-1].append(Element(tag, {k: ("" if v is None else v) for k, v in attrs}))

    def handle_endtag(self, tag: str) -> None:
        for index in range(len(self._stack) - 1, 0, -1):
            if self._stack[index].tag == tag:
                del self._stack[index:]
                return

    def handle_data(self, data: str) -> None:
        self._stack[-1].append(data)


def parse_html(markup: str) -> Element:
    """Parse ``markup`` into a fragment."""
    builder = _TreeBuilder()
    builder.feed(markup)
    builder.close()
    return builder.root


__all__ = ["Element", "Event", "Node", "TextNode", "VOID_TAGS", "fragment", "parse_html"]
