"""Exception hierarchy for dumpview.

Only two conditions are raised. Every bound (depth, items, length) degrades to
a structural truncation marker instead, and location lookup is best-effort.
"""

from __future__ import annotations


class DumpviewError(Exception):
    """Base class for all dumpview errors."""


class UnsupportedValueError(DumpviewError, TypeError):
    """A value or Model node falls outside the closed set of known kinds."""

    def __init__(self, value: object) -> None:
        self.kind = type(value).__name__
        super().__init__(f"Unsupported value kind: {self.kind}")


class UnknownIdentityError(DumpviewError, KeyError):
    """A reference points to an identity absent from the available snapshot."""

    def __init__(self, identity: object) -> None:
        self.identity = identity
        super().__init__(f"Unknown snapshot identity: {identity!r}")

    def __str__(self) -> str:
        return str(self.args[0])


__all__ = ["DumpviewError", "UnsupportedValueError", "UnknownIdentityError"]
