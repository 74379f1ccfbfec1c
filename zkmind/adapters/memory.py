"""
In-memory session store with expiry.

Used for tests and single-process deployments. Entries carry a deadline;
an entry past its deadline reads as missing and is dropped on access.
"""

from __future__ import annotations
import logging
import time
from typing import Callable

from ..engine_core.state import Session
from ..ports import SessionStore

logger = logging.getLogger(__name__)


class InMemorySessionStore(SessionStore):
    """
    Dict-backed SessionStore.

    Usage:
        store = InMemorySessionStore(default_ttl=3600)
        store.set(1, session)
        store.extend_ttl(1, 3600)
    """

    def __init__(
        self,
        default_ttl: int = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self._clock = clock
        self._sessions: dict[int, Session] = {}
        self._deadlines: dict[int, float] = {}

    def get(self, session_id: int) -> Session | None:
        if not self._is_live(session_id):
            return None
        # Hand out copies so callers cannot mutate stored state in place
        return self._sessions[session_id].clone()

    def set(self, session_id: int, session: Session) -> None:
        live = self._is_live(session_id)
        self._sessions[session_id] = session.clone()
        if not live:
            self._deadlines[session_id] = self._clock() + self.default_ttl

    def extend_ttl(self, session_id: int, ttl_seconds: int) -> None:
        if session_id not in self._sessions:
            return
        deadline = self._clock() + ttl_seconds
        self._deadlines[session_id] = max(self._deadlines.get(session_id, 0.0), deadline)

    def expires_in(self, session_id: int) -> float | None:
        """Seconds until a session expires, or None if absent."""
        if not self._is_live(session_id):
            return None
        return self._deadlines[session_id] - self._clock()

    def list_sessions(self) -> list[int]:
        """IDs of live sessions."""
        return [sid for sid in list(self._sessions) if self._is_live(sid)]

    def _is_live(self, session_id: int) -> bool:
        deadline = self._deadlines.get(session_id)
        if session_id not in self._sessions or deadline is None:
            return False
        if self._clock() >= deadline:
            logger.info("Session %s expired", session_id)
            self._sessions.pop(session_id, None)
            self._deadlines.pop(session_id, None)
            return False
        return True
