"""
API Module - HTTP interface.

Exposes session operations, commitment tooling and the admin console
over REST. Clients:
1. Start a session with both players' approvals
2. Commit, guess and answer with proofs
3. Read session state at any time

Serve with: uvicorn --factory zkmind.api.app:create_app
"""

from .schemas import (
    # Requests
    StartSessionRequest,
    CommitRequest,
    GuessRequest,
    FeedbackRequest,
    CommitmentRequest,
    AdminUpdateRequest,
    # Responses
    SessionResponse,
    GuessResponse,
    FeedbackResponse,
    CommitmentResponse,
    AdminValueResponse,
    ErrorResponse,
    HealthResponse,
)
from .service import APIService, status_code_for
from .app import create_app

__all__ = [
    # Requests
    "StartSessionRequest",
    "CommitRequest",
    "GuessRequest",
    "FeedbackRequest",
    "CommitmentRequest",
    "AdminUpdateRequest",
    # Responses
    "SessionResponse",
    "GuessResponse",
    "FeedbackResponse",
    "CommitmentResponse",
    "AdminValueResponse",
    "ErrorResponse",
    "HealthResponse",
    # Service
    "APIService",
    "status_code_for",
    "create_app",
]
