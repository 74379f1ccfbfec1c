"""
Reducer - Applies actions to sessions.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- Copy-on-write: (session, action) -> staged new session
- Validates before applying, in a fixed order per action
- Returns ActionResult with success/failure
- Delegates proof checks to the VerificationGate

Transitions:
    NO_COMMITMENT -> AWAITING_GUESS -> AWAITING_FEEDBACK
        -> AWAITING_GUESS | ENDED
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING
import time

from .state import (
    Session, GuessRecord, FeedbackRecord, COMMITMENT_SIZE, MAX_ATTEMPTS, SESSION_ID_MAX,
)
from .action import Action, ActionType, ActionResult
from .errors import ErrorCode, GameError
from .rules import is_valid_code, is_valid_feedback
from ..ports import ApprovalDenied

if TYPE_CHECKING:
    from ..ports import Authenticator
    from ..proofs.gate import VerificationGate


@dataclass
class Reducer:
    """
    Reducer applies actions to a session.

    Stateless - all game state is in Session.
    The authenticator supplies participant approvals; the gate checks
    feedback proofs. Neither is consulted before the cheap state checks
    that precede it.
    """
    authenticator: Authenticator
    gate: VerificationGate | None = None
    max_attempts: int = MAX_ATTEMPTS

    def apply(self, session: Session | None, action: Action) -> ActionResult:
        """
        Apply an action to a session.

        `session` is None only for START_SESSION on an unused id.
        The input session is never modified.
        """
        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
            )

        if action.action_type != ActionType.START_SESSION and session is None:
            return ActionResult.failure(
                f"Session {action.session_id} not found",
                error_code=ErrorCode.GAME_NOT_FOUND,
            )

        try:
            result = handler(session, action)
        except GameError as e:
            return ActionResult.from_error(e)

        if result.success and result.new_state is not None:
            result.new_state.updated_at = action.timestamp or time.time()
        return result

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.START_SESSION: self._handle_start_session,
            ActionType.COMMIT: self._handle_commit,
            ActionType.SUBMIT_GUESS: self._handle_submit_guess,
            ActionType.SUBMIT_FEEDBACK: self._handle_submit_feedback,
        }
        return handlers.get(action_type)

    # =========================================================================
    # Approvals
    # =========================================================================

    def _require_approvals(self, action: Action, codemaker: str, codebreaker: str):
        """Every role the action names must have approved its parameters."""
        identities = {"codemaker": codemaker, "codebreaker": codebreaker}
        for role, params in action.required_approvals():
            identity = identities[role]
            try:
                self.authenticator.require_approval(identity, params)
            except ApprovalDenied as e:
                raise GameError(ErrorCode.NOT_PLAYER, str(e))

    # =========================================================================
    # Handlers
    # =========================================================================

    def _handle_start_session(self, session: Session | None, action: Action) -> ActionResult:
        """Create a session in NO_COMMITMENT."""
        p = action.payload
        if not 0 <= action.session_id <= SESSION_ID_MAX:
            return ActionResult.failure(
                f"Session id {action.session_id} does not fit in 32 bits",
                error_code=ErrorCode.INVALID_SESSION_ID,
            )
        if not p.codemaker or not p.codebreaker:
            return ActionResult.failure(
                "Both participants are required",
                error_code=ErrorCode.NOT_PLAYER,
            )
        if p.codemaker == p.codebreaker:
            return ActionResult.failure(
                "Codemaker and codebreaker must be different identities",
                error_code=ErrorCode.SELF_PLAY,
            )

        self._require_approvals(action, p.codemaker, p.codebreaker)

        if session is not None:
            return ActionResult.failure(
                f"Session {action.session_id} already exists",
                error_code=ErrorCode.SESSION_EXISTS,
            )

        now = action.timestamp or time.time()
        new_session = Session(
            codemaker=p.codemaker,
            codebreaker=p.codebreaker,
            stake_codemaker=p.stake_codemaker,
            stake_codebreaker=p.stake_codebreaker,
            max_attempts=p.max_attempts or self.max_attempts,
            created_at=now,
            updated_at=now,
        )
        return ActionResult.success_with_state(
            new_session,
            changes=[f"Session {action.session_id} started"],
        )

    def _handle_commit(self, session: Session, action: Action) -> ActionResult:
        """Record the codemaker's commitment."""
        if session.ended:
            return ActionResult.failure("Game has ended", error_code=ErrorCode.GAME_ALREADY_ENDED)

        self._require_approvals(action, session.codemaker, session.codebreaker)

        if session.commitment is not None:
            return ActionResult.failure(
                "Commitment already set",
                error_code=ErrorCode.COMMITMENT_ALREADY_SET,
            )

        commitment = action.payload.commitment
        if commitment is None or len(commitment) != COMMITMENT_SIZE:
            return ActionResult.failure(
                f"Commitment must be {COMMITMENT_SIZE} bytes",
                error_code=ErrorCode.INVALID_COMMITMENT,
            )

        new_session = session.clone()
        new_session.commitment = bytes(commitment)
        return ActionResult.success_with_state(
            new_session,
            changes=["Commitment recorded"],
        )

    def _handle_submit_guess(self, session: Session, action: Action) -> ActionResult:
        """Accept a guess and lock the session until feedback arrives."""
        if session.ended:
            return ActionResult.failure("Game has ended", error_code=ErrorCode.GAME_ALREADY_ENDED)
        if session.commitment is None:
            return ActionResult.failure(
                "Codemaker has not committed yet",
                error_code=ErrorCode.COMMITMENT_NOT_SET,
            )
        if session.attempts_used >= session.max_attempts:
            return ActionResult.failure(
                "No attempts remaining",
                error_code=ErrorCode.ATTEMPTS_EXHAUSTED,
            )
        if session.pending_guess_id is not None:
            return ActionResult.failure(
                f"Guess {session.pending_guess_id} is awaiting feedback",
                error_code=ErrorCode.GUESS_PENDING_FEEDBACK,
            )

        self._require_approvals(action, session.codemaker, session.codebreaker)

        guess = action.payload.guess or ()
        if not is_valid_code(guess):
            return ActionResult.failure(
                "Guess must be 4 distinct digits in 1..6",
                error_code=ErrorCode.INVALID_GUESS,
            )

        new_session = session.clone()
        guess_id = new_session.next_guess_id
        new_session.next_guess_id += 1
        new_session.pending_guess_id = guess_id
        new_session.guesses.append(GuessRecord(guess_id=guess_id, guess=tuple(guess)))

        return ActionResult.success_with_state(
            new_session,
            changes=[f"Guess {guess_id} accepted"],
            guess_id=guess_id,
        )

    def _handle_submit_feedback(self, session: Session, action: Action) -> ActionResult:
        """Resolve the pending guess with a proof-backed answer."""
        p = action.payload
        if session.ended:
            return ActionResult.failure("Game has ended", error_code=ErrorCode.GAME_ALREADY_ENDED)

        self._require_approvals(action, session.codemaker, session.codebreaker)

        if session.commitment is None:
            return ActionResult.failure(
                "Codemaker has not committed yet",
                error_code=ErrorCode.COMMITMENT_NOT_SET,
            )
        if session.pending_guess_id is None:
            return ActionResult.failure(
                "No guess is awaiting feedback",
                error_code=ErrorCode.NO_PENDING_GUESS,
            )
        if p.guess_id != session.pending_guess_id:
            return ActionResult.failure(
                f"Guess {p.guess_id} is not the pending guess",
                error_code=ErrorCode.INVALID_GUESS_ID,
            )
        if p.exact is None or p.partial is None or not is_valid_feedback(p.exact, p.partial):
            return ActionResult.failure(
                "Feedback must satisfy exact + partial <= 4",
                error_code=ErrorCode.INVALID_FEEDBACK,
            )

        guess = session.guess_by_id(p.guess_id)
        if guess is None:
            return ActionResult.failure(
                f"Guess {p.guess_id} was never recorded",
                error_code=ErrorCode.INVALID_GUESS_ID,
            )

        gate = self.gate
        if gate is None:
            from ..proofs.gate import VerificationGate
            gate = VerificationGate(None)
        outcome = gate.verify_feedback(
            action.session_id,
            p.guess_id,
            session.commitment,
            guess,
            p.exact,
            p.partial,
            p.proof or b"",
        )
        if not outcome.ok:
            return ActionResult.failure(
                outcome.detail or outcome.error_code.value,
                error_code=outcome.error_code,
            )

        new_session = session.clone()
        new_session.feedbacks.append(FeedbackRecord(
            guess_id=p.guess_id,
            exact=p.exact,
            partial=p.partial,
            proof_hash=outcome.proof_hash,
        ))
        new_session.pending_guess_id = None
        new_session.attempts_used += 1
        changes = [f"Guess {p.guess_id} resolved: exact={p.exact} partial={p.partial}"]

        if p.exact == 4:
            new_session.solved = True
            new_session.ended = True
            new_session.winner = new_session.codebreaker
            changes.append("Code broken, codebreaker wins")
            return ActionResult.success_with_state(
                new_session, changes=changes, ended_game=True, codemaker_won=False,
            )

        if new_session.attempts_used >= new_session.max_attempts:
            new_session.solved = False
            new_session.ended = True
            new_session.winner = new_session.codemaker
            changes.append("Attempts exhausted, codemaker wins")
            return ActionResult.success_with_state(
                new_session, changes=changes, ended_game=True, codemaker_won=True,
            )

        return ActionResult.success_with_state(new_session, changes=changes)


def apply_action(
    session: Session | None,
    action: Action,
    authenticator: Authenticator,
    gate: VerificationGate | None = None,
) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer(authenticator=authenticator, gate=gate)
    return reducer.apply(session, action)
