"""
Text renderers built on the eager HTML markup.

The markup is tokenized into a :class:`rich.text.Text`: every
``<span class="dumpview-<kind>">`` opens a style looked up in
``DumpOptions.colors``, other tags are dropped, entities are decoded and the
ellipsis becomes ``...``. Plain output is the text without styles; colored
output is the same text printed through a :class:`rich.console.Console`.
"""

from __future__ import annotations

import re
from html import unescape

from rich.console import Console
from rich.text import Text

from dumpview.core.contracts.options import DumpOptions, LocationFlag
from dumpview.core.model import Description

from .html import Renderer

_TOKEN = re.compile(r'<span class="dumpview-(\w+)"[^>]*>|<span[^>]*>|</span>|<[^>]+>')


def to_rich_text(description: Description, options: DumpOptions | None = None) -> Text:
    """Return the styled text tree of ``description``."""
    options = options if options is not None else DumpOptions()
    markup = Renderer(options).render_markup(description)

    text = Text(end="")
    styles: list[str | None] = []
    pos = 0
    for match in _TOKEN.finditer(markup):
        _append(text, markup[pos : match.start()], styles)
        pos = match.end()
        tag = match.group(0)
        if tag.startswith("<span"):
            kind = match.group(1)
            styles.append(options.colors.get(kind) if kind else None)
        elif tag == "</span>" and styles:
            styles.pop()
    _append(text, markup[pos:], styles)

    location = description.location
    if location is not None and options.location & LocationFlag.LINK:
        text.append(f"in {location.file}:{location.line}\n")
    return text


def _append(text: Text, chunk: str, styles: list[str | None]) -> None:
    if not chunk:
        return
    style = next((s for s in reversed(styles) if s), None)
    text.append(unescape(chunk).replace("…", "..."), style=style)


def render_text(description: Description, options: DumpOptions | None = None) -> str:
    """Plain, uncolored text tree."""
    return to_rich_text(description, options).plain


def render_colored(description: Description, options: DumpOptions | None = None) -> str:
    """Text tree with ANSI styles for terminals."""
    console = Console(force_terminal=True, color_system="standard", soft_wrap=True)
    with console.capture() as capture:
        console.print(to_rich_text(description, options), end="")
    return capture.get()


__all__ = ["render_colored", "render_text", "to_rich_text"]
