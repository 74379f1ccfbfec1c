"""
Session Registry - Loads and stores sessions through a SessionStore.

Every write renews the session's expiry. Operations run inside a unit of
work: the caller stages the new state, and it is written only if the
whole block completes. An exception or an unstaged block writes nothing.
"""

from __future__ import annotations
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from ..config import DEFAULT_SESSION_TTL
from ..engine_core.errors import ErrorCode, GameError
from ..engine_core.state import Session
from ..ports import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class UnitOfWork:
    """Staging area for one operation on one session."""
    session_id: int
    current: Session | None
    staged: Session | None = None

    def stage(self, session: Session):
        self.staged = session


class SessionRegistry:
    """
    Typed repository for sessions.

    Usage:
        registry = SessionRegistry(store)

        with registry.unit_of_work(session_id) as uow:
            new_state = transition(uow.current)
            uow.stage(new_state)
        # written here, only if nothing raised
    """

    def __init__(self, store: SessionStore, ttl_seconds: int = DEFAULT_SESSION_TTL):
        self.store = store
        self.ttl_seconds = ttl_seconds

    def find(self, session_id: int) -> Session | None:
        return self.store.get(session_id)

    def load(self, session_id: int) -> Session:
        """Get a session or raise GameNotFound."""
        session = self.store.get(session_id)
        if session is None:
            raise GameError(ErrorCode.GAME_NOT_FOUND, f"Session {session_id} not found")
        return session

    def save(self, session_id: int, session: Session):
        self.store.set(session_id, session)
        self.store.extend_ttl(session_id, self.ttl_seconds)

    @contextmanager
    def unit_of_work(self, session_id: int) -> Iterator[UnitOfWork]:
        uow = UnitOfWork(session_id=session_id, current=self.find(session_id))
        yield uow
        if uow.staged is not None:
            self.save(session_id, uow.staged)
            logger.debug("Session %s committed", session_id)
