"""
Session State - The per-session entity the state machine operates on.

Design principles:
- Append-only history: guesses and feedbacks are never edited
- One-way latch: once ended, a session never reopens
- Serializable: to_dict()/from_dict() round-trip through JSON
- Copy-on-write: the reducer clones before staging changes
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
from copy import deepcopy
from enum import Enum
import time


CODE_LENGTH = 4
MIN_DIGIT = 1
MAX_DIGIT = 6
MAX_ATTEMPTS = 12
COMMITMENT_SIZE = 32
SESSION_ID_MAX = 0xFFFFFFFF


class GamePhase(Enum):
    """Where a session sits in the commit -> guess -> feedback loop."""
    NO_COMMITMENT = "no_commitment"
    AWAITING_GUESS = "awaiting_guess"
    AWAITING_FEEDBACK = "awaiting_feedback"
    ENDED = "ended"


@dataclass(frozen=True)
class GuessRecord:
    """A guess as submitted by the codebreaker."""
    guess_id: int
    guess: tuple[int, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"guess_id": self.guess_id, "guess": list(self.guess)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GuessRecord:
        return cls(guess_id=int(data["guess_id"]), guess=tuple(data["guess"]))


@dataclass(frozen=True)
class FeedbackRecord:
    """
    A resolved guess.

    proof_hash is the keccak-256 of the whole proof artifact. It is kept
    for audit only and never fed back into verification.
    """
    guess_id: int
    exact: int
    partial: int
    proof_hash: bytes

    def to_dict(self) -> dict[str, Any]:
        return {
            "guess_id": self.guess_id,
            "exact": self.exact,
            "partial": self.partial,
            "proof_hash": self.proof_hash.hex(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FeedbackRecord:
        return cls(
            guess_id=int(data["guess_id"]),
            exact=int(data["exact"]),
            partial=int(data["partial"]),
            proof_hash=bytes.fromhex(data["proof_hash"]),
        )


@dataclass
class Session:
    """
    One game between a codemaker and a codebreaker.

    This is the canonical state the engine operates on.
    All state changes go through the reducer.
    """
    codemaker: str
    codebreaker: str
    stake_codemaker: int = 0
    stake_codebreaker: int = 0

    commitment: bytes | None = None
    max_attempts: int = MAX_ATTEMPTS
    attempts_used: int = 0
    next_guess_id: int = 0
    pending_guess_id: int | None = None

    guesses: list[GuessRecord] = field(default_factory=list)
    feedbacks: list[FeedbackRecord] = field(default_factory=list)

    winner: str | None = None
    solved: bool = False
    ended: bool = False

    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    @property
    def phase(self) -> GamePhase:
        if self.ended:
            return GamePhase.ENDED
        if self.commitment is None:
            return GamePhase.NO_COMMITMENT
        if self.pending_guess_id is not None:
            return GamePhase.AWAITING_FEEDBACK
        return GamePhase.AWAITING_GUESS

    @property
    def attempts_remaining(self) -> int:
        return self.max_attempts - self.attempts_used

    def guess_by_id(self, guess_id: int) -> tuple[int, ...] | None:
        """Get the code submitted under a guess id."""
        for record in self.guesses:
            if record.guess_id == guess_id:
                return record.guess
        return None

    def is_participant(self, identity: str) -> bool:
        return identity in (self.codemaker, self.codebreaker)

    def clone(self) -> Session:
        """Deep copy the session."""
        return deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "codemaker": self.codemaker,
            "codebreaker": self.codebreaker,
            "stake_codemaker": self.stake_codemaker,
            "stake_codebreaker": self.stake_codebreaker,
            "commitment": self.commitment.hex() if self.commitment is not None else None,
            "max_attempts": self.max_attempts,
            "attempts_used": self.attempts_used,
            "next_guess_id": self.next_guess_id,
            "pending_guess_id": self.pending_guess_id,
            "guesses": [g.to_dict() for g in self.guesses],
            "feedbacks": [f.to_dict() for f in self.feedbacks],
            "winner": self.winner,
            "solved": self.solved,
            "ended": self.ended,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        commitment = data.get("commitment")
        return cls(
            codemaker=data["codemaker"],
            codebreaker=data["codebreaker"],
            stake_codemaker=int(data.get("stake_codemaker", 0)),
            stake_codebreaker=int(data.get("stake_codebreaker", 0)),
            commitment=bytes.fromhex(commitment) if commitment is not None else None,
            max_attempts=int(data.get("max_attempts", MAX_ATTEMPTS)),
            attempts_used=int(data.get("attempts_used", 0)),
            next_guess_id=int(data.get("next_guess_id", 0)),
            pending_guess_id=data.get("pending_guess_id"),
            guesses=[GuessRecord.from_dict(g) for g in data.get("guesses", [])],
            feedbacks=[FeedbackRecord.from_dict(f) for f in data.get("feedbacks", [])],
            winner=data.get("winner"),
            solved=bool(data.get("solved", False)),
            ended=bool(data.get("ended", False)),
            created_at=float(data.get("created_at", 0.0)),
            updated_at=float(data.get("updated_at", 0.0)),
        )
