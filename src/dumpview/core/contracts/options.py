"""Dump options contract.

`DumpOptions` is the single configuration surface shared by the describer,
the renderers and the client engine. Defaults for the bounds, the redaction
set and the location flag come from :mod:`dumpview.core.settings`, so an
`.env` file can tune every dump without code changes.

Bounds
------
`max_depth`, `max_length` and `max_items` are validated to be >= 1. There is no
"unlimited" sentinel: the bounds are what guarantees termination on huge or
cyclic input, so seeing more always means choosing a larger number.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from enum import IntFlag, StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dumpview.core.settings import load_settings


class LazyMode(StrEnum):
    """How much of the tree the HTML renderer defers to the client."""

    OFF = "off"
    FULL = "full"
    HYBRID = "hybrid"


class LocationFlag(IntFlag):
    """Which source locations to show."""

    NONE = 0
    SOURCE = 0b001  # call site as a title on the root element
    LINK = 0b010  # visible link / text-mode "in file:line" suffix
    CLASS = 0b100  # where classes and functions are declared
    ALL = SOURCE | LINK | CLASS


ObjectExposer = Callable[[Any], Iterable[tuple[Any, Any, Any]]]
ResourceExposer = Callable[[Any], Iterable[tuple[Any, Any]]]

DEFAULT_TERMINAL_COLORS: dict[str, str] = {
    "bool": "bold yellow",
    "null": "bold yellow",
    "number": "bold green",
    "string": "bold cyan",
    "array": "bold red",
    "public": "bold white",
    "protected": "bold white",
    "private": "bold white",
    "dynamic": "bold white",
    "virtual": "bold white",
    "object": "bold red",
    "resource": "bold white",
    "indent": "bright_black",
}


def _default_location() -> LocationFlag:
    return LocationFlag.ALL if load_settings().show_location else LocationFlag.NONE


class DumpOptions(BaseModel):
    """Validated options for one dump.

    Attributes
    ----------
    max_depth : int
        How many nested levels of containers/objects to expand.
    max_length : int
        Longest string (characters) or byte string (bytes) shown untruncated.
    max_items : int
        How many members per container/object to show.
    collapse_top : int | bool
        Top-level container size at which it starts collapsed; ``True`` always
        collapses the root, ``False`` never does.
    collapse_sub : int
        Same threshold for nested containers.
    lazy : LazyMode
        Deferral strategy of the HTML renderer. Text output is always eager.
    keys_to_hide : frozenset[str]
        Keys whose values are redacted (compared case-insensitively).
    debug_info : bool
        Use the ``__rich_repr__`` debug view of objects lacking an exposer.
    location : LocationFlag
        Source locations to resolve and display; ``True`` means all.
    object_exposers / resource_exposers
        Extra exposers, keyed by class and by resource kind; they take
        precedence over the built-in tables.
    colors : dict[str, str]
        Rich style per node class for colored terminal output.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    max_depth: int = Field(default_factory=lambda: load_settings().max_depth, ge=1)
    max_length: int = Field(default_factory=lambda: load_settings().max_length, ge=1)
    max_items: int = Field(default_factory=lambda: load_settings().max_items, ge=1)
    collapse_top: bool | int = 14
    collapse_sub: int = Field(default=7, ge=1)
    lazy: LazyMode = LazyMode.HYBRID
    keys_to_hide: frozenset[str] = Field(
        default_factory=lambda: frozenset(load_settings().hidden_keys)
    )
    debug_info: bool = False
    location: LocationFlag = Field(default_factory=_default_location)
    object_exposers: dict[type, Callable[..., Any]] = Field(default_factory=dict)
    resource_exposers: dict[str, Callable[..., Any]] = Field(default_factory=dict)
    colors: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_TERMINAL_COLORS))

    @field_validator("collapse_top")
    @classmethod
    def _positive_threshold(cls, v: bool | int) -> bool | int:
        """Integer thresholds must be >= 1; booleans force the decision."""
        if not isinstance(v, bool) and v < 1:
            raise ValueError("collapse_top must be a boolean or an integer >= 1")
        return v

    @field_validator("keys_to_hide", mode="before")
    @classmethod
    def _normalize_keys(cls, v: Any) -> Any:
        """Lower-case the redaction set; accept any iterable of strings."""
        if isinstance(v, str):
            v = [v]
        return frozenset(str(k).lower() for k in v)

    @field_validator("location", mode="before")
    @classmethod
    def _location_from_bool(cls, v: Any) -> Any:
        """Accept ``True``/``False`` as shorthand for all/no locations."""
        if isinstance(v, bool):
            return LocationFlag.ALL if v else LocationFlag.NONE
        if isinstance(v, int):
            return LocationFlag(v)
        return v

    def is_hidden(self, key: object) -> bool:
        """Return True if ``key`` names a value that must be redacted."""
        return isinstance(key, str) and key.lower() in self.keys_to_hide

    def with_overrides(self, **overrides: Any) -> DumpOptions:
        """Return a validated copy with ``overrides`` applied."""
        if not overrides:
            return self
        data = {name: getattr(self, name) for name in type(self).model_fields}
        data.update(overrides)
        return type(self).model_validate(data)


__all__ = [
    "DEFAULT_TERMINAL_COLORS",
    "DumpOptions",
    "LazyMode",
    "LocationFlag",
    "ObjectExposer",
    "ResourceExposer",
]
