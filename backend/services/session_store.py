"""In-memory session registry.

A module-level dict with `clear()` for tests. Each session carries a `loading`
flag so at most one Gemini call is in flight per session; nothing persists
across restarts.

Sessions idle for longer than `settings.session_ttl_minutes` are dropped, and
the registry never holds more than `settings.max_sessions` entries: when full,
the least recently used idle session is evicted to make room.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator

from config import settings
from models.schemas.wizard_state import WizardState

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    pass


class SessionBusyError(RuntimeError):
    """Another request for this session is still waiting on Gemini."""


class SessionLimitError(RuntimeError):
    """Every session slot is taken by a request still in flight."""


@dataclass
class Session:
    session_id: str
    state: WizardState
    loading: bool = False
    touched_at: float = field(default_factory=time.monotonic)


_sessions: dict[str, Session] = {}


def _is_expired(session: Session, now: float) -> bool:
    # Sessions with a call in flight never expire
    return not session.loading and now - session.touched_at > settings.session_ttl_minutes * 60


def prune() -> int:
    """Drop idle sessions past their TTL. Returns how many were removed."""
    now = time.monotonic()
    expired = [sid for sid, session in _sessions.items() if _is_expired(session, now)]
    for sid in expired:
        del _sessions[sid]
    if expired:
        logger.info("Expired %d idle session(s)", len(expired))
    return len(expired)


def _evict_least_recent() -> None:
    idle = [session for session in _sessions.values() if not session.loading]
    if not idle:
        raise SessionLimitError(f"All {len(_sessions)} sessions are busy")
    oldest = min(idle, key=lambda session: session.touched_at)
    del _sessions[oldest.session_id]
    logger.warning("Session limit reached, evicted session %s", oldest.session_id)


def create(state: WizardState) -> Session:
    prune()
    while len(_sessions) >= max(settings.max_sessions, 1):
        _evict_least_recent()
    session = Session(session_id=uuid.uuid4().hex, state=state)
    _sessions[session.session_id] = session
    logger.info("Created session %s", session.session_id)
    return session


def get(session_id: str) -> Session:
    session = _sessions.get(session_id)
    now = time.monotonic()
    if session is not None and _is_expired(session, now):
        del _sessions[session_id]
        logger.info("Expired idle session %s", session_id)
        session = None
    if session is None:
        raise SessionNotFoundError(session_id)
    session.touched_at = now
    return session


def delete(session_id: str) -> None:
    get(session_id)
    del _sessions[session_id]
    logger.info("Deleted session %s", session_id)


def update(session_id: str, state: WizardState) -> Session:
    """Replace a session's state outright (for synchronous edits)."""
    session = get(session_id)
    if session.loading:
        raise SessionBusyError(session_id)
    session.state = state
    return session


@asynccontextmanager
async def lease(session_id: str) -> AsyncIterator[Session]:
    """Hold the session's loading flag for the duration of a Gemini call.

    The caller assigns `session.state` only after the call succeeds, so a
    failure leaves the previous state in place.
    """
    session = get(session_id)
    if session.loading:
        raise SessionBusyError(session_id)
    session.loading = True
    try:
        yield session
    finally:
        session.loading = False
        session.touched_at = time.monotonic()


def count() -> int:
    return len(_sessions)


def clear() -> None:
    """Drop all sessions. Useful for testing."""
    _sessions.clear()
