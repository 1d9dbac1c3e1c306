"""Client side of the lazy-expansion protocol, run against a headless DOM."""

from __future__ import annotations

from .dom import Element, parse_html
from .engine import ExpansionEngine

__all__ = ["Element", "ExpansionEngine", "parse_html"]
