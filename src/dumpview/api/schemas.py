"""
Request and response models of the HTTP API.

`DumpRequestOptions` is the JSON-facing subset of
:class:`~dumpview.core.contracts.options.DumpOptions`: exposer tables and
terminal colors cannot travel over the wire, everything else can.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from dumpview.core.contracts.options import DumpOptions, LazyMode


class DumpRequestOptions(BaseModel):
    """Per-request overrides; unset fields fall back to the server settings."""

    max_depth: int | None = Field(default=None, ge=1)
    max_length: int | None = Field(default=None, ge=1)
    max_items: int | None = Field(default=None, ge=1)
    collapse_top: bool | int | None = None
    collapse_sub: int | None = Field(default=None, ge=1)
    lazy: LazyMode | None = None
    keys_to_hide: list[str] | None = None
    debug_info: bool | None = None

    def to_options(self) -> DumpOptions:
        """Build validated `DumpOptions`; invalid combinations raise `ValueError`."""
        return DumpOptions(location=False, **self.model_dump(exclude_none=True))


class DumpRequest(BaseModel):
    value: Any = None
    options: DumpRequestOptions = Field(default_factory=DumpRequestOptions)


class DumpResponse(BaseModel):
    """A rendered dump plus its wire form."""

    html: str
    text: str
    model: Any
    snapshot: dict[str, Any]


class SessionInfo(BaseModel):
    session_id: str
    created_at: datetime
    dumps: int = 0


class SessionDumpResponse(BaseModel):
    session_id: str
    html: str


class SessionSnapshotResponse(BaseModel):
    """The flushed session snapshot as a ready-to-embed meta tag."""

    session_id: str
    meta: str


__all__ = [
    "DumpRequest",
    "DumpRequestOptions",
    "DumpResponse",
    "SessionDumpResponse",
    "SessionInfo",
    "SessionSnapshotResponse",
]
