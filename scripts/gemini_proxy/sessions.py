"""Cookie sessions for the credential management endpoints."""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional


SESSION_COOKIE = "gemini_session"


@dataclass
class Session:
    token: str
    expires_at: float


class SessionStore:
    """Track management sessions opened through ``/auth/verify``."""

    def __init__(self, ttl: float = 24 * 60 * 60, clock: Callable[[], float] = time.time) -> None:
        self.ttl = ttl
        self._clock = clock
        self._sessions: Dict[str, Session] = {}

    def create(self, token: str) -> str:
        session_id = secrets.token_hex(32)
        self._sessions[session_id] = Session(token=token, expires_at=self._clock() + self.ttl)
        return session_id

    def is_valid(self, session_id: Optional[str]) -> bool:
        """Return True for a live session; expired ones are dropped on lookup."""
        if not session_id:
            return False
        session = self._sessions.get(session_id)
        if session is None:
            return False
        if session.expires_at < self._clock():
            self._sessions.pop(session_id, None)
            return False
        return True

    def delete(self, session_id: Optional[str]) -> None:
        if session_id:
            self._sessions.pop(session_id, None)


__all__ = ["SESSION_COOKIE", "Session", "SessionStore"]
