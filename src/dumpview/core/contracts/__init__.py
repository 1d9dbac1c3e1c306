"""Typed contracts shared by the describer, the renderers and the API."""

from __future__ import annotations

from .options import DumpOptions, LazyMode, LocationFlag

__all__ = ["DumpOptions", "LazyMode", "LocationFlag"]
