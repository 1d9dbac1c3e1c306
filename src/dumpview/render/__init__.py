"""Renderers: HTML markup with lazy payloads, plain and colored text."""

from __future__ import annotations

from .html import Renderer, render_html
from .text import render_colored, render_text, to_rich_text

__all__ = ["Renderer", "render_colored", "render_html", "render_text", "to_rich_text"]
