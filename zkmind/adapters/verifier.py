"""
Remote proof verifier.

The verifier service takes the raw proof artifact and answers with either
{"proof_id": "<64 hex chars>"} or {"error": "<VerifierError value>"}.
"""

from __future__ import annotations
import logging

import httpx

from ..ports import ProofVerifier, ProofRejected, VerifierError

logger = logging.getLogger(__name__)


class HttpProofVerifier(ProofVerifier):
    """
    Usage:
        verifier = HttpProofVerifier("http://verifier:8080")
        proof_id = verifier.verify(blob)
    """

    def __init__(self, base_url: str, timeout: float = 30.0, client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._owns_client:
            self._client.close()

    def verify(self, proof: bytes) -> bytes:
        url = f"{self.base_url}/verify"
        try:
            response = self._client.post(
                url,
                content=proof,
                headers={"content-type": "application/octet-stream"},
            )
        except httpx.HTTPError as e:
            logger.error("Verifier call %s failed: %s", url, e)
            raise ProofRejected(VerifierError.VERIFICATION_FAILED, str(e)) from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_success and "proof_id" in body:
            try:
                return bytes.fromhex(body["proof_id"])
            except (TypeError, ValueError):
                raise ProofRejected(VerifierError.VERIFICATION_FAILED, "malformed proof id")

        kind = _error_kind(body.get("error"))
        raise ProofRejected(kind, f"verifier answered {response.status_code}")


def _error_kind(value) -> VerifierError:
    for kind in VerifierError:
        if kind.value == value:
            return kind
    return VerifierError.VERIFICATION_FAILED
