"""FastAPI endpoints for calculator sessions.

Routes
------
POST   /sessions              Open a new calculator session
GET    /sessions/{id}         Current display, preview and error
POST   /sessions/{id}/keys    Press one keypad key
DELETE /sessions/{id}         Close a session
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from models import KeyPress, SessionView
from store import SessionNotFoundError, SessionStore, StateInvariantError

router = APIRouter(prefix="/sessions", tags=["sessions"])

# The store instance is injected by the app factory (see app.py).
_store: SessionStore | None = None


def set_store(store: SessionStore) -> None:
    """Inject the store instance. Called once at app startup."""
    global _store
    _store = store


def get_store() -> SessionStore:
    assert _store is not None, "Store not initialized"
    return _store


def _not_found(session_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Session not found: {session_id}")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=SessionView, status_code=201)
def create_session() -> SessionView:
    """Open a new calculator session."""
    return get_store().create()


@router.get("/{session_id}", response_model=SessionView)
def get_session(session_id: str) -> SessionView:
    try:
        return get_store().get(session_id)
    except SessionNotFoundError:
        raise _not_found(session_id)


@router.post("/{session_id}/keys", response_model=SessionView)
def press_key(session_id: str, payload: KeyPress) -> SessionView:
    """Press one key: an input token or a command ('C', 'DEL', '+/-', '%', '=')."""
    try:
        return get_store().press(session_id, payload.key)
    except SessionNotFoundError:
        raise _not_found(session_id)
    except StateInvariantError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.delete("/{session_id}", response_model=SessionView)
def delete_session(session_id: str) -> SessionView:
    """Close a session and return its last view."""
    try:
        return get_store().delete(session_id)
    except SessionNotFoundError:
        raise _not_found(session_id)
