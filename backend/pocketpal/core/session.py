"""
Per-session state.

An authenticated session is identified by the `jti` of its access token.
The registry lives on `app.state.sessions` (one per application instance), so
nothing leaks between apps or test runs. Entries are dropped on logout or once
their token has expired.
"""

import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, Optional, Set

from fastapi import Depends, Request

from pocketpal.core.auth import CurrentUser, get_current_user


@dataclass
class SessionState:
    """What has already happened during this login session."""
    user_id: int
    auto_snapshot_done: bool = False
    declined_recurring_months: Set[str] = field(default_factory=set)
    expires_at: Optional[float] = None  # epoch seconds, from the token

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class SessionRegistry:
    """In-memory map of token id -> SessionState."""

    def __init__(self):
        self._sessions: Dict[str, SessionState] = {}
        self._revoked: Dict[str, Optional[float]] = {}  # jti -> token exp
        self._lock = Lock()

    def get(
        self,
        session_id: str,
        user_id: int,
        expires_at: Optional[float] = None,
        now: Optional[float] = None,
    ) -> SessionState:
        now = time.time() if now is None else now
        with self._lock:
            self._prune(now)
            state = self._sessions.get(session_id)
            if state is None or state.user_id != user_id:
                state = SessionState(user_id=user_id, expires_at=expires_at)
                self._sessions[session_id] = state
            return state

    def _prune(self, now: float) -> None:
        expired = [sid for sid, state in self._sessions.items() if state.is_expired(now)]
        for sid in expired:
            del self._sessions[sid]
        for sid, expires_at in list(self._revoked.items()):
            if expires_at is not None and expires_at <= now:
                del self._revoked[sid]

    def end(self, session_id: str, expires_at: Optional[float] = None) -> None:
        """Forget the session and refuse its token until the token expires."""
        with self._lock:
            self._sessions.pop(session_id, None)
            self._revoked[session_id] = expires_at

    def is_revoked(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._revoked

    def __len__(self) -> int:
        return len(self._sessions)


def get_session_state(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
) -> SessionState:
    """Dependency: state for the session that made this request."""
    registry: SessionRegistry = request.app.state.sessions
    return registry.get(user.session_id, user.id, expires_at=user.expires_at)
