"""
Proof Blob - Recover the claimed public inputs from a proof artifact.

Artifact layout:

    [4-byte big-endian total field count]
    [public-input fields, 32 bytes each]
    [proof fields, 32 bytes each]

The artifact does not say where public inputs end and proof data begins.
The boundary is found by probing a fixed, ordered menu of known proof
sizes. The order is a priority list: the first size that fits wins, even
if a later one would also fit.
"""

from __future__ import annotations
import logging
from typing import Sequence

from .public_inputs import FIELD_SIZE

logger = logging.getLogger(__name__)

HEADER_SIZE = 4

# Proof field counts, in priority order.
KNOWN_PROOF_FIELD_COUNTS: tuple[int, ...] = (456, 440, 234)


class ProofBlobError(ValueError):
    """The artifact does not match any known proof size."""


def _candidate_fits(rest: int, proof_fields: int) -> bool:
    proof_len = proof_fields * FIELD_SIZE
    return rest >= proof_len and (rest - proof_len) % FIELD_SIZE == 0


def extract_public_inputs(
    blob: bytes,
    proof_field_counts: Sequence[int] = KNOWN_PROOF_FIELD_COUNTS,
) -> bytes:
    """
    Return the public-input bytes claimed by a proof artifact.

    Raises ProofBlobError when the blob is shorter than its header or no
    candidate proof size fits.
    """
    if len(blob) < HEADER_SIZE:
        raise ProofBlobError(f"artifact of {len(blob)} bytes has no header")

    rest = len(blob) - HEADER_SIZE
    for proof_fields in proof_field_counts:
        if _candidate_fits(rest, proof_fields):
            pi_len = rest - proof_fields * FIELD_SIZE
            logger.debug(
                "Proof blob of %d bytes parsed as %d proof fields, %d public-input bytes",
                len(blob), proof_fields, pi_len,
            )
            return bytes(blob[HEADER_SIZE:HEADER_SIZE + pi_len])

    raise ProofBlobError(f"artifact of {len(blob)} bytes matches no known proof size")


def colliding_candidates(
    blob_length: int,
    proof_field_counts: Sequence[int] = KNOWN_PROOF_FIELD_COUNTS,
) -> list[int]:
    """
    List every candidate proof size that would accept a blob of this length.

    More than one entry means the priority order decides the split.
    """
    if blob_length < HEADER_SIZE:
        return []
    rest = blob_length - HEADER_SIZE
    return [p for p in proof_field_counts if _candidate_fits(rest, p)]


def assemble_proof_blob(public_inputs: bytes, proof: bytes) -> bytes:
    """
    Lay out an artifact from public inputs and raw proof fields.

    Used by tooling and tests; the engine itself only parses artifacts.
    """
    if len(public_inputs) % FIELD_SIZE or len(proof) % FIELD_SIZE:
        raise ValueError(f"public inputs and proof must be whole {FIELD_SIZE}-byte fields")

    total_fields = (len(public_inputs) + len(proof)) // FIELD_SIZE
    return total_fields.to_bytes(HEADER_SIZE, "big") + public_inputs + proof


def header_field_count(blob: bytes) -> int:
    """Read the declared total field count. Informational only."""
    if len(blob) < HEADER_SIZE:
        raise ProofBlobError(f"artifact of {len(blob)} bytes has no header")
    return int.from_bytes(blob[:HEADER_SIZE], "big")
