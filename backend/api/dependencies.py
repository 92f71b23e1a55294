"""Shared dependencies for API routes."""

from fastapi import HTTPException

from services import session_store
from services.session_store import Session, SessionNotFoundError


def get_session(session_id: str) -> Session:
    try:
        return session_store.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=404,
            detail={"error": "not_found", "message": "Session not found"},
        )
