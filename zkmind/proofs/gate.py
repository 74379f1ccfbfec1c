"""
Verification Gate - Binds a proof to one exact feedback claim.

Steps:
1. Build the expected public-input vector for the claim
2. Extract the vector the artifact claims to prove
3. Require byte-exact equality (blocks replay of proofs made for
   another session, guess, or answer)
4. Only then ask the ProofVerifier about the proof itself
5. Hash the artifact for the audit record

Any verifier failure, reported or not, collapses to InvalidProof.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Sequence

from web3 import Web3

from ..engine_core.errors import ErrorCode
from ..ports import ProofVerifier, ProofRejected
from .public_inputs import build_public_inputs
from .blob import KNOWN_PROOF_FIELD_COUNTS, ProofBlobError, extract_public_inputs

logger = logging.getLogger(__name__)

PROOF_ID_SIZE = 32


def proof_hash(proof: bytes) -> bytes:
    """keccak-256 of a whole proof artifact."""
    return bytes(Web3.keccak(primitive=bytes(proof)))


@dataclass
class VerificationOutcome:
    """Result of running the gate."""
    ok: bool
    error_code: ErrorCode | None = None
    detail: str = ""
    proof_hash: bytes | None = None
    proof_id: bytes | None = None

    @classmethod
    def rejected(cls, error_code: ErrorCode, detail: str = "") -> VerificationOutcome:
        return cls(ok=False, error_code=error_code, detail=detail)


class VerificationGate:
    """
    Composes the public-input builder, blob parser, and proof verifier.

    Usage:
        gate = VerificationGate(verifier)
        outcome = gate.verify_feedback(
            session_id, guess_id, commitment, guess, exact, partial, proof,
        )
        if not outcome.ok:
            return outcome.error_code
    """

    def __init__(
        self,
        verifier: ProofVerifier | None,
        proof_field_counts: Sequence[int] = KNOWN_PROOF_FIELD_COUNTS,
    ):
        self.verifier = verifier
        self.proof_field_counts = tuple(proof_field_counts)

    def verify_feedback(
        self,
        session_id: int,
        guess_id: int,
        commitment: bytes,
        guess: Sequence[int],
        exact: int,
        partial: int,
        proof: bytes,
    ) -> VerificationOutcome:
        expected = build_public_inputs(
            session_id, guess_id, commitment, guess, exact, partial,
        )

        try:
            claimed = extract_public_inputs(proof, self.proof_field_counts)
        except ProofBlobError as e:
            logger.warning("Session %s guess %s: %s", session_id, guess_id, e)
            return VerificationOutcome.rejected(ErrorCode.INVALID_PROOF_BLOB, str(e))

        if claimed != expected:
            logger.warning(
                "Session %s guess %s: public inputs do not match the claim",
                session_id, guess_id,
            )
            return VerificationOutcome.rejected(
                ErrorCode.INVALID_PUBLIC_INPUTS,
                "proof public inputs do not match the claimed feedback",
            )

        if self.verifier is None:
            return VerificationOutcome.rejected(
                ErrorCode.VERIFIER_NOT_SET, "no proof verifier configured",
            )

        try:
            proof_id = self.verifier.verify(proof)
        except ProofRejected as e:
            logger.warning("Session %s guess %s: proof rejected (%s)", session_id, guess_id, e)
            return VerificationOutcome.rejected(ErrorCode.INVALID_PROOF, str(e))
        except Exception as e:
            logger.warning(
                "Session %s guess %s: verifier failed unexpectedly: %r",
                session_id, guess_id, e,
            )
            return VerificationOutcome.rejected(ErrorCode.INVALID_PROOF, "proof rejected")

        if not isinstance(proof_id, (bytes, bytearray)) or len(proof_id) != PROOF_ID_SIZE:
            logger.warning("Session %s guess %s: verifier returned no proof id", session_id, guess_id)
            return VerificationOutcome.rejected(ErrorCode.INVALID_PROOF, "proof rejected")

        return VerificationOutcome(
            ok=True,
            proof_hash=proof_hash(proof),
            proof_id=bytes(proof_id),
        )
