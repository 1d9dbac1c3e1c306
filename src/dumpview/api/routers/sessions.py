"""
API routes for dump sessions.

Endpoints
---------
- `POST /sessions`: open a session (optional options body).
- `GET /sessions/{session_id}`: session metadata.
- `POST /sessions/{session_id}/dump`: render one value without its snapshot.
- `GET /sessions/{session_id}/snapshot`: flush the collected snapshot as a meta tag.
- `DELETE /sessions/{session_id}`: close a session.
"""

from __future__ import annotations

from fastapi import APIRouter, Body, HTTPException, Response, status

from dumpview.api.schemas import (
    DumpRequest,
    DumpRequestOptions,
    SessionDumpResponse,
    SessionInfo,
    SessionSnapshotResponse,
)
from dumpview.api.session_store import SessionRecord, get_session_store

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def _require(session_id: str) -> SessionRecord:
    record = get_session_store().get_session(session_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found",
        )
    return record


@router.post(
    "",
    response_model=SessionInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Open a dump session",
)
async def create_session(
    options: DumpRequestOptions | None = Body(default=None),
) -> SessionInfo:
    record = get_session_store().create_session((options or DumpRequestOptions()).to_options())
    return record.info()


@router.get("/{session_id}", response_model=SessionInfo, summary="Get session metadata")
async def get_session(session_id: str) -> SessionInfo:
    return _require(session_id).info()


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Close a session",
)
async def delete_session(session_id: str) -> Response:
    """Forget the session and release every value its registry keeps alive."""
    if not get_session_store().drop_session(session_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{session_id}/dump",
    response_model=SessionDumpResponse,
    summary="Render a value inside a session",
)
async def dump_in_session(session_id: str, request: DumpRequest) -> SessionDumpResponse:
    """
    Render ``request.value`` with the session's options.

    The returned HTML carries the Model only; its Structures wait in the
    session until the snapshot is flushed. Per-request options are ignored.
    """
    record = _require(session_id)
    return SessionDumpResponse(session_id=session_id, html=record.session.to_html(request.value))


@router.get(
    "/{session_id}/snapshot",
    response_model=SessionSnapshotResponse,
    summary="Flush the session snapshot",
)
async def flush_snapshot(session_id: str) -> SessionSnapshotResponse:
    record = _require(session_id)
    return SessionSnapshotResponse(session_id=session_id, meta=record.session.meta_tag())


__all__ = ["router"]
