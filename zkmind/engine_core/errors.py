"""
Error taxonomy for every public operation.

Game errors are returned (as ActionResult failures), never raised past the
session manager. Deep helpers raise GameError; the manager converts it.
"""

from __future__ import annotations
from enum import Enum


class ErrorCode(str, Enum):
    """Structured error codes."""
    GAME_NOT_FOUND = "GameNotFound"
    NOT_PLAYER = "NotPlayer"
    GAME_ALREADY_ENDED = "GameAlreadyEnded"
    COMMITMENT_ALREADY_SET = "CommitmentAlreadySet"
    COMMITMENT_NOT_SET = "CommitmentNotSet"
    GUESS_PENDING_FEEDBACK = "GuessPendingFeedback"
    NO_PENDING_GUESS = "NoPendingGuess"
    INVALID_GUESS_ID = "InvalidGuessId"
    INVALID_FEEDBACK = "InvalidFeedback"
    INVALID_PUBLIC_INPUTS = "InvalidPublicInputs"
    INVALID_PROOF = "InvalidProof"
    ATTEMPTS_EXHAUSTED = "AttemptsExhausted"
    VERIFIER_NOT_SET = "VerifierNotSet"
    INVALID_PROOF_BLOB = "InvalidProofBlob"
    INVALID_GUESS = "InvalidGuess"

    # Typed replacements for aborts
    SELF_PLAY = "SelfPlay"
    SESSION_EXISTS = "SessionExists"
    INVALID_COMMITMENT = "InvalidCommitment"
    CONFIGURATION_MISSING = "ConfigurationMissing"
    HUB_UNAVAILABLE = "HubUnavailable"
    NOT_ADMIN = "NotAdmin"
    INVALID_SESSION_ID = "InvalidSessionId"


class GameError(Exception):
    """Raised inside the engine; carries an ErrorCode."""

    def __init__(self, code: ErrorCode, message: str | None = None):
        self.code = code
        self.message = message or code.value
        super().__init__(self.message)


class ConfigurationMissing(GameError):
    """A required deployment setting (hub, admin) is absent."""

    def __init__(self, setting: str):
        self.setting = setting
        super().__init__(
            ErrorCode.CONFIGURATION_MISSING,
            f"{setting} is not configured",
        )
