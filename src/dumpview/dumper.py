"""
Dumper facade: options in, markup or text out.

Usage
-----
    >>> from dumpview import dump, to_html, to_text
    >>> to_text({"a": [1, 2]}, location=False)
    "array (1)\\n   a => array (2)\\n   |  0 => 1\\n   |  1 => 2\\n"

Sessions
--------
A :class:`DumpSession` renders many dumps onto one page. Each dump ships its
Model only; the session keeps the Structures and flushes them once through
:meth:`DumpSession.meta_tag` (or :meth:`DumpSession.format_snapshot_attribute`).
Identities are numbered by one registry for the whole session, so two dumps
never disagree on what ``#3`` or ``p1`` means.
"""

from __future__ import annotations

from typing import Any, TypeVar

from rich.console import Console
from rich.text import Text

from dumpview.core.contracts.options import DumpOptions, LazyMode, LocationFlag
from dumpview.core.describer import Describer
from dumpview.core.identity import HandleRegistry
from dumpview.core.location import find_call_site
from dumpview.core.model import CallSite, Description, Snapshot, Structure
from dumpview.core.settings import get_logger, load_settings
from dumpview.render.html import Renderer, format_snapshot_attribute
from dumpview.render.text import render_colored, render_text, to_rich_text

logger = get_logger(__name__)

T = TypeVar("T")


def _call_site(options: DumpOptions) -> CallSite | None:
    if options.location & (LocationFlag.SOURCE | LocationFlag.LINK):
        return find_call_site()
    return None


def _expands_further(new: Structure, known: Structure) -> bool:
    """True if ``new`` was expanded where ``known`` was only a stub, or shallower."""
    if known.items is None:
        return new.items is not None
    return new.items is not None and new.depth < known.depth


class Dumper:
    """Describes and renders values with one set of options."""

    def __init__(self, options: DumpOptions | None = None, **overrides: Any) -> None:
        self.options = (options if options is not None else DumpOptions()).with_overrides(
            **overrides
        )

    def describe(self, value: Any) -> Description:
        return Describer(self.options).describe(value, _call_site(self.options))

    def to_html(self, value: Any) -> str:
        return Renderer(self.options).render_html(self.describe(value))

    def to_text(self, value: Any) -> str:
        return render_text(self.describe(value), self.options)

    def to_terminal(self, value: Any) -> str:
        return render_colored(self.describe(value), self.options)

    def to_rich_text(self, value: Any) -> Text:
        return to_rich_text(self.describe(value), self.options)


class DumpSession:
    """Collects the snapshot of several HTML dumps for a single flush."""

    def __init__(self, options: DumpOptions | None = None, **overrides: Any) -> None:
        base = options if options is not None else DumpOptions()
        self.options = base.with_overrides(lazy=LazyMode.FULL, **overrides)
        self.registry = HandleRegistry()
        self.snapshot: Snapshot = {}
        self.dumps = 0

    def to_html(self, value: Any) -> str:
        """Render ``value``; its Structures join the session snapshot."""
        description = Describer(self.options, self.registry).describe(
            value, _call_site(self.options)
        )
        for identity, struct in description.snapshot.items():
            known = self.snapshot.get(identity)
            if known is None or _expands_further(struct, known):
                self.snapshot[identity] = struct
        self.dumps += 1
        return Renderer(self.options, collecting=True).render_html(description)

    def format_snapshot_attribute(self) -> str:
        """Return the collected snapshot as an attribute value and clear it."""
        res = format_snapshot_attribute(self.snapshot)
        logger.debug("Flushing %d structures from %d dumps", len(self.snapshot), self.dumps)
        self.snapshot = {}
        return res

    def meta_tag(self) -> str:
        """Return ``<meta itemprop="dumpview-snapshot">`` carrying the snapshot."""
        return f'<meta itemprop="dumpview-snapshot" content={self.format_snapshot_attribute()}>'


def to_html(value: Any, options: DumpOptions | None = None, **overrides: Any) -> str:
    return Dumper(options, **overrides).to_html(value)


def to_text(value: Any, options: DumpOptions | None = None, **overrides: Any) -> str:
    return Dumper(options, **overrides).to_text(value)


def to_terminal(value: Any, options: DumpOptions | None = None, **overrides: Any) -> str:
    return Dumper(options, **overrides).to_terminal(value)


def dump(value: T, *, console: Console | None = None, **overrides: Any) -> T:
    """Print ``value`` to the console and return it unchanged.

    Colors are used when the console is a terminal. Does nothing in ``prod``.
    """
    if load_settings().is_prod:
        return value
    console = console if console is not None else Console()
    console.print(Dumper(**overrides).to_rich_text(value), end="", soft_wrap=True)
    return value


__all__ = ["DumpSession", "Dumper", "dump", "to_html", "to_terminal", "to_text"]
