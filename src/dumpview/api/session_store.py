"""
In-memory store of dump sessions.

A session groups the HTML dumps of one page: each dump ships only its Model
and the session flushes the shared snapshot once. This is a volatile store;
sessions are lost when the server restarts.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import ClassVar

from dumpview.api.schemas import SessionInfo
from dumpview.core.contracts.options import DumpOptions
from dumpview.dumper import DumpSession


@dataclass(slots=True)
class SessionRecord:
    session_id: str
    session: DumpSession
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def info(self) -> SessionInfo:
        return SessionInfo(
            session_id=self.session_id, created_at=self.created_at, dumps=self.session.dumps
        )


class SessionStore:
    """A dictionary-backed store of `SessionRecord` objects."""

    # Singleton instance placeholder (initialized in app startup)
    _instance: ClassVar[SessionStore | None] = None

    def __init__(self) -> None:
        self._sessions: dict[str, SessionRecord] = {}

    @classmethod
    def get_instance(cls) -> SessionStore:
        """Accessor for the global singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def create_session(self, options: DumpOptions | None = None) -> SessionRecord:
        """Register a new session under a fresh UUID4."""
        session_id = str(uuid.uuid4())
        record = SessionRecord(session_id=session_id, session=DumpSession(options))
        self._sessions[session_id] = record
        return record

    def get_session(self, session_id: str) -> SessionRecord | None:
        """Retrieve a session, or None if not found."""
        return self._sessions.get(session_id)

    def drop_session(self, session_id: str) -> bool:
        """Forget a session; returns whether it existed."""
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)


def get_session_store() -> SessionStore:
    return SessionStore.get_instance()


__all__ = ["SessionRecord", "SessionStore", "get_session_store"]
