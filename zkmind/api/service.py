"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to manager and admin console calls
2. Binds each request's approval tokens to the authenticator
3. Decodes hex/base64 fields and reports malformed ones
4. Formats sessions and outcomes as response models

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
import base64
import binascii
from dataclasses import dataclass
from typing import Union

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
    # Shared
    GuessInfo,
    FeedbackInfo,
    VALIDATION_ERROR,
)
from ..config import Settings
from ..engine_core.action import ActionResult
from ..engine_core.errors import ErrorCode
from ..engine_core.state import Session
from ..proofs.commitment import compute_commitment, commitment_to_decimal
from ..session import SessionManager, AdminConsole, AdminResult, build_services


STATUS_BY_ERROR_CODE: dict[str, int] = {
    ErrorCode.GAME_NOT_FOUND.value: 404,
    ErrorCode.NOT_PLAYER.value: 403,
    ErrorCode.NOT_ADMIN.value: 403,
    ErrorCode.GAME_ALREADY_ENDED.value: 409,
    ErrorCode.COMMITMENT_ALREADY_SET.value: 409,
    ErrorCode.COMMITMENT_NOT_SET.value: 409,
    ErrorCode.GUESS_PENDING_FEEDBACK.value: 409,
    ErrorCode.NO_PENDING_GUESS.value: 409,
    ErrorCode.ATTEMPTS_EXHAUSTED.value: 409,
    ErrorCode.SESSION_EXISTS.value: 409,
    ErrorCode.INVALID_GUESS_ID.value: 422,
    ErrorCode.INVALID_FEEDBACK.value: 422,
    ErrorCode.INVALID_PUBLIC_INPUTS.value: 422,
    ErrorCode.INVALID_PROOF.value: 422,
    ErrorCode.INVALID_PROOF_BLOB.value: 422,
    ErrorCode.INVALID_GUESS.value: 422,
    ErrorCode.INVALID_COMMITMENT.value: 422,
    ErrorCode.SELF_PLAY.value: 422,
    ErrorCode.INVALID_SESSION_ID.value: 422,
    ErrorCode.VERIFIER_NOT_SET.value: 503,
    ErrorCode.CONFIGURATION_MISSING.value: 503,
    ErrorCode.HUB_UNAVAILABLE.value: 503,
    VALIDATION_ERROR: 422,
}

ADMIN_SETTINGS = ("admin", "hub", "verifier", "code")


def status_code_for(error_code: str) -> int:
    """HTTP status for an error code; unknown codes are client errors."""
    return STATUS_BY_ERROR_CODE.get(error_code, 400)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService(manager, admin)

        response = service.start_session(request)
        response = service.submit_guess(session_id, request)
        if isinstance(response, ErrorResponse):
            ...
    """
    manager: SessionManager
    admin: AdminConsole

    @classmethod
    def from_settings(cls, settings: Settings) -> APIService:
        manager, admin = build_services(settings)
        return cls(manager=manager, admin=admin)

    # =========================================================================
    # Sessions
    # =========================================================================

    def start_session(self, request: StartSessionRequest) -> Union[SessionResponse, ErrorResponse]:
        result = self._manager_for(request.approvals).start_session(
            request.session_id,
            request.codemaker,
            request.codebreaker,
            request.stake_codemaker,
            request.stake_codebreaker,
        )
        if not result.success:
            return self._error_from_result(result)
        return self._session_to_response(request.session_id, result.session)

    def get_session(self, session_id: int) -> Union[SessionResponse, ErrorResponse]:
        result = self.manager.get_session(session_id)
        if not result.success:
            return self._error_from_result(result)
        return self._session_to_response(session_id, result.session)

    def commit(self, session_id: int, request: CommitRequest) -> Union[SessionResponse, ErrorResponse]:
        commitment = bytes.fromhex(request.commitment)
        result = self._manager_for(request.approvals).commit(session_id, commitment)
        if not result.success:
            return self._error_from_result(result)
        return self._session_to_response(session_id, result.session)

    def submit_guess(self, session_id: int, request: GuessRequest) -> Union[GuessResponse, ErrorResponse]:
        result = self._manager_for(request.approvals).submit_guess(session_id, request.guess)
        if not result.success:
            return self._error_from_result(result)
        return GuessResponse(
            session_id=session_id,
            guess_id=result.guess_id,
            session=self._session_to_response(session_id, result.session),
        )

    def submit_feedback(
        self,
        session_id: int,
        request: FeedbackRequest,
    ) -> Union[FeedbackResponse, ErrorResponse]:
        try:
            proof = base64.b64decode(request.proof_blob_base64, validate=True)
        except (binascii.Error, ValueError):
            return ErrorResponse(
                error="proof_blob_base64 is not valid base64",
                error_code=VALIDATION_ERROR,
                details={"field": "proof_blob_base64"},
            )

        result = self._manager_for(request.approvals).submit_feedback(
            session_id, request.guess_id, request.exact, request.partial, proof,
        )
        if not result.success:
            return self._error_from_result(result)

        session = result.session
        return FeedbackResponse(
            session_id=session_id,
            guess_id=request.guess_id,
            proof_hash=session.feedbacks[-1].proof_hash.hex(),
            ended=session.ended,
            solved=session.solved,
            winner=session.winner,
            session=self._session_to_response(session_id, session),
        )

    # =========================================================================
    # Tooling
    # =========================================================================

    def compute_commitment(self, request: CommitmentRequest) -> Union[CommitmentResponse, ErrorResponse]:
        """Commitment for a secret; the secret is never logged or stored."""
        try:
            commitment = compute_commitment(request.secret, bytes(request.salt))
        except ValueError as e:
            return ErrorResponse(error=str(e), error_code=VALIDATION_ERROR)
        return CommitmentResponse(
            commitment=commitment.hex(),
            commitment_decimal=commitment_to_decimal(commitment),
        )

    # =========================================================================
    # Admin
    # =========================================================================

    def get_setting(self, name: str) -> Union[AdminValueResponse, ErrorResponse]:
        getters = {
            "admin": self.admin.get_admin,
            "hub": self.admin.get_hub,
            "verifier": self.admin.get_verifier,
        }
        getter = getters.get(name)
        if getter is None:
            return self._unknown_setting(name)
        return self._admin_to_response(name, getter())

    def update_setting(
        self,
        name: str,
        request: AdminUpdateRequest,
    ) -> Union[AdminValueResponse, ErrorResponse]:
        console = self.admin.with_authenticator(
            self.admin.authenticator.with_tokens(request.approvals)
        )
        if name == "code":
            try:
                code_hash = bytes.fromhex(request.value)
                result = console.replace_code(code_hash)
            except ValueError as e:
                return ErrorResponse(error=str(e), error_code=VALIDATION_ERROR)
            return self._admin_to_response(name, result, shown=request.value.lower())

        setters = {
            "admin": console.set_admin,
            "hub": console.set_hub,
            "verifier": console.set_verifier,
        }
        setter = setters.get(name)
        if setter is None:
            return self._unknown_setting(name)
        return self._admin_to_response(name, setter(request.value))

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _manager_for(self, approvals: dict[str, str]) -> SessionManager:
        return self.manager.with_authenticator(
            self.manager.authenticator.with_tokens(approvals)
        )

    def _error_from_result(self, result: ActionResult) -> ErrorResponse:
        code = result.error_code.value if result.error_code else VALIDATION_ERROR
        return ErrorResponse(error=result.error or code, error_code=code)

    def _admin_to_response(
        self,
        name: str,
        result: AdminResult,
        shown: str | None = None,
    ) -> Union[AdminValueResponse, ErrorResponse]:
        if not result.success:
            return ErrorResponse(
                error=result.error or "",
                error_code=result.error_code.value,
                details={"setting": name},
            )
        value = shown if shown is not None else result.value
        return AdminValueResponse(name=name, value=value)

    def _unknown_setting(self, name: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Unknown setting: {name}",
            error_code=VALIDATION_ERROR,
            details={"valid": list(ADMIN_SETTINGS)},
        )

    def _session_to_response(self, session_id: int, session: Session) -> SessionResponse:
        """Convert Session to SessionResponse."""
        data = session.to_dict()
        return SessionResponse(
            session_id=session_id,
            phase=session.phase.value,
            codemaker=session.codemaker,
            codebreaker=session.codebreaker,
            stake_codemaker=session.stake_codemaker,
            stake_codebreaker=session.stake_codebreaker,
            commitment=data["commitment"],
            max_attempts=session.max_attempts,
            attempts_used=session.attempts_used,
            attempts_remaining=session.attempts_remaining,
            next_guess_id=session.next_guess_id,
            pending_guess_id=session.pending_guess_id,
            guesses=[GuessInfo(**g) for g in data["guesses"]],
            feedbacks=[FeedbackInfo(**f) for f in data["feedbacks"]],
            winner=session.winner,
            solved=session.solved,
            ended=session.ended,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )
