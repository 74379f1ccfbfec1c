"""
Capability ports - the external collaborators the engine consumes.

The engine never implements these; it only calls them:
- Hub: records match start and end, adjudicates stakes
- ProofVerifier: checks a proof artifact against the stored key
- Authenticator: parameter-bound approval from a participant
- SessionStore: keyed storage with expiry

Concrete adapters live in zkmind.adapters.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Sequence

if TYPE_CHECKING:
    from .engine_core.state import Session


class VerifierError(Enum):
    """Failure kinds a proof verifier can report."""
    KEY_PARSE_ERROR = "KeyParseError"
    PROOF_PARSE_ERROR = "ProofParseError"
    VERIFICATION_FAILED = "VerificationFailed"
    KEY_NOT_SET = "KeyNotSet"


class ProofRejected(Exception):
    """Raised by a ProofVerifier that refuses a proof."""

    def __init__(self, kind: VerifierError, detail: str = ""):
        self.kind = kind
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)


class ApprovalDenied(Exception):
    """Raised by an Authenticator when an identity has not approved an action."""

    def __init__(self, identity: str, action_parameters: Sequence[Any]):
        self.identity = identity
        self.action_parameters = tuple(action_parameters)
        action = self.action_parameters[0] if self.action_parameters else "action"
        super().__init__(f"{identity} did not approve {action}")


class HubError(Exception):
    """Raised when the Hub cannot record a start or end."""


class Hub(ABC):
    """Match-lifecycle recorder."""

    @abstractmethod
    def start(
        self,
        session_id: int,
        game_identifier: str,
        codemaker: str,
        codebreaker: str,
        stake_codemaker: int,
        stake_codebreaker: int,
    ) -> None:
        """Record that a session started."""
        pass

    @abstractmethod
    def end(self, session_id: int, codemaker_won: bool) -> None:
        """Record the final outcome of a session."""
        pass


class ProofVerifier(ABC):
    """Opaque zero-knowledge proof verifier."""

    @abstractmethod
    def verify(self, proof: bytes) -> bytes:
        """
        Verify a proof artifact.

        Returns a 32-byte proof identifier on success.
        Raises ProofRejected on failure.
        """
        pass


class Authenticator(ABC):
    """Parameter-bound participant approval."""

    @abstractmethod
    def require_approval(self, identity: str, action_parameters: Sequence[Any]) -> None:
        """
        Require that identity approved exactly these parameters.

        Raises ApprovalDenied otherwise.
        """
        pass

    def with_tokens(self, tokens: Mapping[str, str]) -> Authenticator:
        """Authenticator bound to the approvals presented with one request."""
        return self


class SessionStore(ABC):
    """Durable keyed storage for sessions, with expiry."""

    @abstractmethod
    def get(self, session_id: int) -> Session | None:
        """Get a session, or None if absent or expired."""
        pass

    @abstractmethod
    def set(self, session_id: int, session: Session) -> None:
        """Store a session under its id."""
        pass

    @abstractmethod
    def extend_ttl(self, session_id: int, ttl_seconds: int) -> None:
        """Push the expiry of a stored session ttl_seconds into the future."""
        pass
