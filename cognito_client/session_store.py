"""
In-memory server-side sessions, keyed by the cognito_session cookie.
Holds the CSRF state between /login and /callback and the logged-in username afterwards.
Single-process only; idle sessions expire after SESSION_TTL.
"""
import secrets
import threading
import time
from dataclasses import dataclass, field
from typing import Any

# TTL seconds for an idle session (abandoned logins become unreachable and are dropped)
SESSION_TTL = 1800


@dataclass
class Session:
    data: dict[str, Any] = field(default_factory=dict)
    touched_at: float = field(default_factory=time.monotonic)

    def expired(self) -> bool:
        return (time.monotonic() - self.touched_at) > SESSION_TTL


_sessions: dict[str, Session] = {}
# Sync routes run in the threadpool
_lock = threading.Lock()


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def get_session(session_id: str | None) -> tuple[str, dict[str, Any]]:
    """
    Return (session_id, data) for an existing live session, or a fresh empty one.
    The returned dict is the live session data; writes to it persist.
    """
    with _lock:
        _clean_expired()
        if session_id:
            session = _sessions.get(session_id)
            if session is not None and not session.expired():
                session.touched_at = time.monotonic()
                return session_id, session.data
        session_id = new_session_id()
        session = Session()
        _sessions[session_id] = session
        return session_id, session.data


def rotate_session(session_id: str) -> tuple[str, dict[str, Any]]:
    """Move the session's data to a fresh id after login; the old id stops working."""
    with _lock:
        session = _sessions.pop(session_id, None) or Session()
        session.touched_at = time.monotonic()
        new_id = new_session_id()
        _sessions[new_id] = session
        return new_id, session.data


def _clean_expired() -> None:
    for s, sess in list(_sessions.items()):
        if sess.expired():
            _sessions.pop(s, None)
