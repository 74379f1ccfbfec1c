"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between clients and the engine.
Binary values travel as hex (commitments, hashes) or base64 (proofs).

Every state-changing request carries `approvals`: a map from identity to
the approval token that identity issued for exactly this request.

Error codes are the engine's ErrorCode values plus VALIDATION_ERROR for
malformed request fields.
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator


SESSION_ID_MAX = 0xFFFFFFFF
VALIDATION_ERROR = "VALIDATION_ERROR"


def _strip_hex_prefix(value: str) -> str:
    value = value.strip().lower()
    return value[2:] if value.startswith("0x") else value


# =============================================================================
# Shared Models
# =============================================================================

class GuessInfo(BaseModel):
    """A submitted guess."""
    guess_id: int
    guess: list[int]


class FeedbackInfo(BaseModel):
    """A resolved guess."""
    guess_id: int
    exact: int
    partial: int
    proof_hash: str = Field(description="keccak-256 of the proof artifact, hex")


# =============================================================================
# Requests
# =============================================================================

class StartSessionRequest(BaseModel):
    """Start a game. Both players must approve their own stake."""
    session_id: int = Field(ge=0, le=SESSION_ID_MAX)
    codemaker: str = Field(min_length=1)
    codebreaker: str = Field(min_length=1)
    stake_codemaker: int = 0
    stake_codebreaker: int = 0
    approvals: dict[str, str] = Field(default_factory=dict)


class CommitRequest(BaseModel):
    """Codemaker commitment to the secret code."""
    commitment: str = Field(description="32-byte commitment, hex")
    approvals: dict[str, str] = Field(default_factory=dict)

    @field_validator("commitment")
    @classmethod
    def commitment_is_hex(cls, value: str) -> str:
        value = _strip_hex_prefix(value)
        bytes.fromhex(value)
        return value


class GuessRequest(BaseModel):
    """A codebreaker guess: four digits."""
    guess: list[int]
    approvals: dict[str, str] = Field(default_factory=dict)


class FeedbackRequest(BaseModel):
    """Feedback on the pending guess, with its proof artifact."""
    guess_id: int = Field(ge=0)
    exact: int
    partial: int
    proof_blob_base64: str
    approvals: dict[str, str] = Field(default_factory=dict)


class CommitmentRequest(BaseModel):
    """Compute a commitment for a secret code and salt."""
    secret: list[int]
    salt: list[int] = Field(description="16 bytes")


class AdminUpdateRequest(BaseModel):
    """New value for an administrative setting."""
    value: str = Field(min_length=1)
    approvals: dict[str, str] = Field(default_factory=dict)


# =============================================================================
# Responses
# =============================================================================

class SessionResponse(BaseModel):
    """Full view of a session."""
    session_id: int
    phase: str
    codemaker: str
    codebreaker: str
    stake_codemaker: int
    stake_codebreaker: int
    commitment: Optional[str] = None
    max_attempts: int
    attempts_used: int
    attempts_remaining: int
    next_guess_id: int
    pending_guess_id: Optional[int] = None
    guesses: list[GuessInfo] = Field(default_factory=list)
    feedbacks: list[FeedbackInfo] = Field(default_factory=list)
    winner: Optional[str] = None
    solved: bool = False
    ended: bool = False
    created_at: float
    updated_at: float
    api_version: str = "v1"


class GuessResponse(BaseModel):
    """Guess accepted."""
    session_id: int
    guess_id: int
    session: SessionResponse


class FeedbackResponse(BaseModel):
    """Feedback accepted."""
    session_id: int
    guess_id: int
    proof_hash: str
    ended: bool
    solved: bool
    winner: Optional[str] = None
    session: SessionResponse


class CommitmentResponse(BaseModel):
    commitment: str = Field(description="32-byte commitment, hex")
    commitment_decimal: str


class AdminValueResponse(BaseModel):
    name: str
    value: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: str
    details: Optional[dict] = None


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
