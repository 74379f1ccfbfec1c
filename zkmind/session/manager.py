"""
Session Manager - The public operations of the game.

LIFECYCLE:
1. Both players approve → session starts, Hub is told
2. Codemaker commits to a secret code
3. Loop:
   - Codebreaker submits a guess (session locks)
   - Codemaker answers with exact/partial and a proof
   - Gate checks the proof is bound to this exact claim
4. Four exact matches, or the last attempt → session ends, Hub is told

ATOMICITY:
- Each operation is one unit of work against one session
- Validation, approvals, proof checks and Hub calls all happen before the
  write; any failure leaves the stored session untouched
- Game errors come back as ActionResult failures, never as exceptions
"""

from __future__ import annotations
import copy
import logging
import threading
import weakref
from collections import OrderedDict
from typing import Callable, Generic, Sequence, TypeVar

from ..config import DeploymentConfig, Settings
from ..engine_core.action import Action, ActionType, ActionResult
from ..engine_core.errors import ErrorCode, GameError
from ..engine_core.reducer import Reducer
from ..engine_core.state import MAX_ATTEMPTS
from ..ports import Authenticator, Hub, ProofVerifier
from ..proofs.blob import KNOWN_PROOF_FIELD_COUNTS
from ..proofs.gate import VerificationGate
from .registry import SessionRegistry
from .settlement import SettlementBridge

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Runs game operations against the session registry.

    The Hub and ProofVerifier are resolved from the deployment config on
    every call, so admin changes apply to the next operation.

    Usage:
        manager = SessionManager(registry, authenticator, config,
                                 hub_factory=..., verifier_factory=...)
        manager.start_session(1, "alice", "bob", 100, 100)
        manager.commit(1, commitment)
        result = manager.submit_guess(1, [1, 2, 3, 4])
        manager.submit_feedback(1, result.guess_id, 1, 2, proof_blob)
    """

    def __init__(
        self,
        registry: SessionRegistry,
        authenticator: Authenticator,
        config: DeploymentConfig,
        hub_factory: Callable[[str], Hub],
        verifier_factory: Callable[[str], ProofVerifier],
        game_identifier: str = "zkmind",
        max_attempts: int = MAX_ATTEMPTS,
        proof_field_counts: Sequence[int] = KNOWN_PROOF_FIELD_COUNTS,
    ):
        self.registry = registry
        self.authenticator = authenticator
        self.config = config
        self.hub_factory = hub_factory
        self.verifier_factory = verifier_factory
        self.game_identifier = game_identifier
        self.max_attempts = max_attempts
        self.proof_field_counts = tuple(proof_field_counts)

        # Entries vanish once no operation holds or waits on the lock
        self._locks: weakref.WeakValueDictionary[int, threading.Lock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def with_authenticator(self, authenticator: Authenticator) -> SessionManager:
        """Manager for one request; shares registry, config and locks."""
        manager = copy.copy(self)
        manager.authenticator = authenticator
        return manager

    # =========================================================================
    # Operations
    # =========================================================================

    def start_session(
        self,
        session_id: int,
        codemaker: str,
        codebreaker: str,
        stake_codemaker: int,
        stake_codebreaker: int,
    ) -> ActionResult:
        """Create a session after both players approve their stakes."""
        return self._execute(Action.start_session(
            session_id, codemaker, codebreaker, stake_codemaker, stake_codebreaker,
            max_attempts=self.max_attempts,
        ))

    def commit(self, session_id: int, commitment: bytes) -> ActionResult:
        """Codemaker binds to the secret code."""
        return self._execute(Action.commit(session_id, commitment))

    def submit_guess(self, session_id: int, code: Sequence[int]) -> ActionResult:
        """Codebreaker guesses; result.guess_id is the assigned id."""
        return self._execute(Action.submit_guess(session_id, tuple(code)))

    def submit_feedback(
        self,
        session_id: int,
        guess_id: int,
        exact: int,
        partial: int,
        proof: bytes,
    ) -> ActionResult:
        """Codemaker answers the pending guess with a proof."""
        return self._execute(Action.submit_feedback(session_id, guess_id, exact, partial, proof))

    def get_session(self, session_id: int) -> ActionResult:
        """Query a session; result.session is a detached copy."""
        try:
            session = self.registry.load(session_id)
        except GameError as e:
            return ActionResult.from_error(e)
        return ActionResult.success_with_state(session)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _execute(self, action: Action) -> ActionResult:
        session_id = action.session_id
        with self._lock_for(session_id):
            try:
                with self.registry.unit_of_work(session_id) as uow:
                    result = self._reducer_for(action).apply(uow.current, action)
                    if not result.success:
                        reason = result.error_code.value if result.error_code else result.error
                        logger.info(
                            "Session %s %s rejected: %s",
                            session_id, action.action_type.value, reason,
                        )
                        return result

                    if action.action_type == ActionType.START_SESSION:
                        self._settlement().announce_start(session_id, result.new_state)
                    if result.ended_game:
                        self._settlement().settle(session_id, uow.current, result.new_state)

                    uow.stage(result.new_state)
            except GameError as e:
                logger.warning(
                    "Session %s %s aborted: %s", session_id, action.action_type.value, e.message,
                )
                return ActionResult.from_error(e)

        for change in result.state_changes:
            logger.info("Session %s: %s", session_id, change)
        return result

    def _reducer_for(self, action: Action) -> Reducer:
        gate = None
        if action.action_type == ActionType.SUBMIT_FEEDBACK:
            gate = self._gate()
        return Reducer(
            authenticator=self.authenticator,
            gate=gate,
            max_attempts=self.max_attempts,
        )

    def _gate(self) -> VerificationGate:
        verifier = None
        if self.config.verifier_address:
            verifier = self.verifier_factory(self.config.verifier_address)
        return VerificationGate(verifier, self.proof_field_counts)

    def _settlement(self) -> SettlementBridge:
        hub = self.hub_factory(self.config.require_hub())
        return SettlementBridge(hub, self.game_identifier)

    def _lock_for(self, session_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[session_id] = lock
            return lock


AdapterT = TypeVar("AdapterT")


class AdapterCache(Generic[AdapterT]):
    """
    One adapter per address, built on first use.

    Keeps the most recently used `maxsize` adapters. An adapter pushed out
    by a new address is closed.

    Usage:
        hubs = AdapterCache(HttpHub)
        hub = hubs("http://hub:8000")
    """

    def __init__(self, factory: Callable[[str], AdapterT], maxsize: int = 4):
        self.factory = factory
        self.maxsize = maxsize
        self._adapters: OrderedDict[str, AdapterT] = OrderedDict()
        self._guard = threading.Lock()

    def __call__(self, address: str) -> AdapterT:
        with self._guard:
            adapter = self._adapters.pop(address, None)
            if adapter is None:
                adapter = self.factory(address)
            self._adapters[address] = adapter
            while len(self._adapters) > self.maxsize:
                evicted_address, evicted = self._adapters.popitem(last=False)
                logger.info("Closing adapter for %s", evicted_address)
                evicted.close()
            return adapter

    def __len__(self) -> int:
        return len(self._adapters)

    def close(self) -> None:
        with self._guard:
            while self._adapters:
                _, adapter = self._adapters.popitem()
                adapter.close()


def build_services(settings: Settings):
    """
    Wire a SessionManager and AdminConsole from settings.

    Returns (manager, admin_console). Both share one DeploymentConfig.
    """
    from ..adapters import (
        FileSessionStore,
        InMemorySessionStore,
        HmacAuthenticator,
        OpenAuthenticator,
        HttpHub,
        HttpProofVerifier,
    )
    from .admin import AdminConsole

    if settings.store_dir:
        store = FileSessionStore(settings.store_dir, default_ttl=settings.session_ttl)
    else:
        store = InMemorySessionStore(default_ttl=settings.session_ttl)

    if settings.keyring_path:
        authenticator = HmacAuthenticator.from_file(settings.keyring_path)
    else:
        logger.warning("No keyring configured; every approval will be granted")
        authenticator = OpenAuthenticator()

    config = DeploymentConfig.from_settings(settings)
    manager = SessionManager(
        registry=SessionRegistry(store, ttl_seconds=settings.session_ttl),
        authenticator=authenticator,
        config=config,
        hub_factory=AdapterCache(HttpHub),
        verifier_factory=AdapterCache(HttpProofVerifier),
        game_identifier=settings.game_id,
        max_attempts=settings.max_attempts,
    )
    return manager, AdminConsole(config, authenticator)
