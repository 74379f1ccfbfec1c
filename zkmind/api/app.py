"""
FastAPI Application - REST API for game clients.

Endpoints:
    POST   /api/v1/sessions                      Start a session
    GET    /api/v1/sessions/{id}                 Get session state
    POST   /api/v1/sessions/{id}/commit          Codemaker commitment
    POST   /api/v1/sessions/{id}/guesses         Codebreaker guess
    POST   /api/v1/sessions/{id}/feedback        Proof-backed feedback
    POST   /api/v1/commitment                    Compute a commitment
    GET    /api/v1/admin/{setting}               Read admin setting
    PUT    /api/v1/admin/{setting}               Change admin setting

Approvals:
    State-changing bodies carry `approvals: {identity: token}`. With an
    HMAC keyring configured, token = HMAC-SHA256(identity secret,
    "|".join(action parameters)). Without one, every approval is granted.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional, Union
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings, configure_logging
from .service import APIService, status_code_for
from .schemas import (
    # Request models
    StartSessionRequest,
    CommitRequest,
    GuessRequest,
    FeedbackRequest,
    CommitmentRequest,
    AdminUpdateRequest,
    # Response models
    SessionResponse,
    GuessResponse,
    FeedbackResponse,
    CommitmentResponse,
    AdminValueResponse,
    ErrorResponse,
    HealthResponse,
)

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    403: {"model": ErrorResponse, "description": "Approval missing or invalid"},
    404: {"model": ErrorResponse, "description": "Session not found"},
    409: {"model": ErrorResponse, "description": "Not allowed in the current phase"},
    422: {"model": ErrorResponse, "description": "Malformed claim, guess or proof"},
    503: {"model": ErrorResponse, "description": "Hub or verifier not available"},
}


def create_app(service: Optional[APIService] = None, settings: Optional[Settings] = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (built from settings if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    settings = settings or Settings.from_env()
    api_service = service or APIService.from_settings(settings)

    app = FastAPI(
        title="ZK Mind API",
        description="""
Two-player code-breaking game with zero-knowledge feedback.

## Game Flow

1. `POST /sessions` with both players' approvals
2. Codemaker `POST /commit` with the commitment to the secret
3. Codebreaker `POST /guesses`, codemaker `POST /feedback` with a proof
4. The session ends when the code is found or attempts run out

## Error Codes

| Code | Status |
|------|--------|
| `GameNotFound` | 404 |
| `NotPlayer`, `NotAdmin` | 403 |
| `GuessPendingFeedback`, `NoPendingGuess`, `GameAlreadyEnded`, ... | 409 |
| `InvalidGuess`, `InvalidFeedback`, `InvalidProof`, ... | 422 |
| `VerifierNotSet`, `HubUnavailable`, `ConfigurationMissing` | 503 |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code_for(error.error_code),
            content=error.model_dump(),
        )

    def respond(response):
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        status_code=201,
        responses=ERROR_RESPONSES,
        tags=["Sessions"],
        summary="Start a game session",
    )
    def start_session(body: StartSessionRequest) -> Union[SessionResponse, JSONResponse]:
        """
        Start a session between a codemaker and a codebreaker.

        Both players must approve `("start_session", session_id, own_stake)`.
        The Hub is told before the session is stored.
        """
        return respond(api_service.start_session(body))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: ERROR_RESPONSES[404]},
        tags=["Sessions"],
        summary="Get session state",
    )
    def get_session(session_id: int) -> Union[SessionResponse, JSONResponse]:
        """Get the full state of a session."""
        return respond(api_service.get_session(session_id))

    # =========================================================================
    # Game Loop Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/commit",
        response_model=SessionResponse,
        responses=ERROR_RESPONSES,
        tags=["Game Loop"],
        summary="Commit to the secret code",
    )
    def commit(session_id: int, body: CommitRequest) -> Union[SessionResponse, JSONResponse]:
        """
        Codemaker commits once per session.

        **Request Body:**
        ```json
        {"commitment": "00ab...ff", "approvals": {"alice": "<token>"}}
        ```
        """
        return respond(api_service.commit(session_id, body))

    @app.post(
        "/api/v1/sessions/{session_id}/guesses",
        response_model=GuessResponse,
        responses=ERROR_RESPONSES,
        tags=["Game Loop"],
        summary="Submit a guess",
    )
    def submit_guess(session_id: int, body: GuessRequest) -> Union[GuessResponse, JSONResponse]:
        """
        Codebreaker guesses four distinct digits in 1..6.

        The session then waits for feedback on the returned `guess_id`.
        """
        return respond(api_service.submit_guess(session_id, body))

    @app.post(
        "/api/v1/sessions/{session_id}/feedback",
        response_model=FeedbackResponse,
        responses=ERROR_RESPONSES,
        tags=["Game Loop"],
        summary="Submit feedback with a proof",
    )
    def submit_feedback(session_id: int, body: FeedbackRequest) -> Union[FeedbackResponse, JSONResponse]:
        """
        Codemaker answers the pending guess.

        `proof_blob_base64` is the proof artifact: a 4-byte header, the
        public-input fields, then the proof fields. Its public inputs must
        match this session, guess and claim byte for byte.
        """
        return respond(api_service.submit_feedback(session_id, body))

    # =========================================================================
    # Tooling Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/commitment",
        response_model=CommitmentResponse,
        responses={422: ERROR_RESPONSES[422]},
        tags=["Tooling"],
        summary="Compute a commitment",
    )
    def commitment(body: CommitmentRequest) -> Union[CommitmentResponse, JSONResponse]:
        """Compute the commitment for a secret code and 16-byte salt."""
        return respond(api_service.compute_commitment(body))

    # =========================================================================
    # Admin Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/admin/{setting}",
        response_model=AdminValueResponse,
        responses={422: ERROR_RESPONSES[422], 503: ERROR_RESPONSES[503]},
        tags=["Admin"],
        summary="Read an administrative setting",
    )
    def get_setting(setting: str) -> Union[AdminValueResponse, JSONResponse]:
        """Settings: `admin`, `hub`, `verifier`."""
        return respond(api_service.get_setting(setting))

    @app.put(
        "/api/v1/admin/{setting}",
        response_model=AdminValueResponse,
        responses=ERROR_RESPONSES,
        tags=["Admin"],
        summary="Change an administrative setting",
    )
    def update_setting(setting: str, body: AdminUpdateRequest) -> Union[AdminValueResponse, JSONResponse]:
        """
        Settings: `admin`, `hub`, `verifier`, `code` (32-byte hash, hex).

        The current admin must approve `(action, value)`.
        """
        return respond(api_service.update_setting(setting, body))

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="zkmind",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "ZK Mind API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    logger.info("API ready (env=%s)", settings.env)
    return app


def run(host: str = "127.0.0.1", port: int = 8000, settings: Optional[Settings] = None):
    """Serve the API with uvicorn."""
    import uvicorn

    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings=settings), host=host, port=port, log_level=settings.log_level.lower())
