"""
Action System - Actions, payloads, and results.

Actions represent the four session transitions:
1. Start a session
2. Commit to a secret code
3. Submit a guess
4. Submit proof-backed feedback

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import ErrorCode


class ActionType(Enum):
    """Types of actions in the system."""
    START_SESSION = "start_session"
    COMMIT = "commit"
    SUBMIT_GUESS = "submit_guess"
    SUBMIT_FEEDBACK = "submit_feedback"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types have different payload shapes.
    This is a generic container; validation happens in the reducer.
    """
    # Start session
    codemaker: str | None = None
    codebreaker: str | None = None
    stake_codemaker: int = 0
    stake_codebreaker: int = 0
    max_attempts: int | None = None

    # Commit
    commitment: bytes | None = None

    # Guess
    guess: tuple[int, ...] | None = None

    # Feedback
    guess_id: int | None = None
    exact: int | None = None
    partial: int | None = None
    proof: bytes | None = None

    # Generic params
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class Action:
    """
    A complete action to be applied to a session.

    Actions are:
    - Validated before application
    - Applied atomically by the reducer
    """
    action_type: ActionType
    session_id: int
    payload: ActionPayload
    timestamp: float | None = None

    @classmethod
    def start_session(
        cls,
        session_id: int,
        codemaker: str,
        codebreaker: str,
        stake_codemaker: int,
        stake_codebreaker: int,
        max_attempts: int | None = None,
    ) -> Action:
        """Factory for session creation."""
        return cls(
            action_type=ActionType.START_SESSION,
            session_id=session_id,
            payload=ActionPayload(
                codemaker=codemaker,
                codebreaker=codebreaker,
                stake_codemaker=stake_codemaker,
                stake_codebreaker=stake_codebreaker,
                max_attempts=max_attempts,
            ),
        )

    @classmethod
    def commit(cls, session_id: int, commitment: bytes) -> Action:
        """Factory for the codemaker's commitment."""
        return cls(
            action_type=ActionType.COMMIT,
            session_id=session_id,
            payload=ActionPayload(commitment=commitment),
        )

    @classmethod
    def submit_guess(cls, session_id: int, guess: tuple[int, ...] | list[int]) -> Action:
        """Factory for a codebreaker guess."""
        return cls(
            action_type=ActionType.SUBMIT_GUESS,
            session_id=session_id,
            payload=ActionPayload(guess=tuple(guess)),
        )

    @classmethod
    def submit_feedback(
        cls,
        session_id: int,
        guess_id: int,
        exact: int,
        partial: int,
        proof: bytes,
    ) -> Action:
        """Factory for proof-backed feedback."""
        return cls(
            action_type=ActionType.SUBMIT_FEEDBACK,
            session_id=session_id,
            payload=ActionPayload(
                guess_id=guess_id,
                exact=exact,
                partial=partial,
                proof=proof,
            ),
        )

    def required_approvals(self) -> list[tuple[str, tuple[Any, ...]]]:
        """
        Roles that must approve this action, with the parameters each
        approval is bound to.

        Returns [(role, action_parameters), ...] where role is
        "codemaker" or "codebreaker".
        """
        name = self.action_type.value
        p = self.payload

        if self.action_type == ActionType.START_SESSION:
            return [
                ("codemaker", (name, self.session_id, p.stake_codemaker)),
                ("codebreaker", (name, self.session_id, p.stake_codebreaker)),
            ]
        if self.action_type == ActionType.COMMIT:
            commitment = p.commitment.hex() if p.commitment is not None else ""
            return [("codemaker", (name, self.session_id, commitment))]
        if self.action_type == ActionType.SUBMIT_GUESS:
            code = ",".join(str(d) for d in (p.guess or ()))
            return [("codebreaker", (name, self.session_id, code))]
        if self.action_type == ActionType.SUBMIT_FEEDBACK:
            from ..proofs.gate import proof_hash

            digest = proof_hash(p.proof or b"").hex()
            return [(
                "codemaker",
                (name, self.session_id, p.guess_id, p.exact, p.partial, digest),
            )]
        return []


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New staged state (if succeeded)
    - Error code and message (if failed)
    - Outcome details (assigned guess id, settlement)
    """
    success: bool
    new_state: Any | None = None  # Session
    error: str | None = None
    error_code: ErrorCode | None = None

    # Assigned by SUBMIT_GUESS
    guess_id: int | None = None

    # Set when this transition ended the game
    ended_game: bool = False
    codemaker_won: bool | None = None

    # Human-readable changes
    state_changes: list[str] = field(default_factory=list)

    @property
    def session(self) -> Any | None:
        return self.new_state

    @classmethod
    def failure(cls, error: str, error_code: ErrorCode | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def from_error(cls, exc: Any) -> ActionResult:
        """Create a failure result from a GameError."""
        return cls.failure(exc.message, error_code=exc.code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        **outcome: Any,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            **outcome,
        )
