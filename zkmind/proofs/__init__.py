"""
Proofs Module - Binding zero-knowledge proofs to feedback claims.

The proof system itself is external. This module only:
1. Encodes the canonical public-input vector for a claim
2. Recovers the claimed vector from an opaque proof artifact
3. Gates feedback on byte-exact equality plus the external verifier
4. Computes codemaker commitments for tooling
"""

from .public_inputs import (
    FIELD_SIZE,
    PUBLIC_INPUTS_SIZE,
    build_public_inputs,
    encode_u32_field,
    encode_code_field,
)
from .blob import (
    KNOWN_PROOF_FIELD_COUNTS,
    ProofBlobError,
    extract_public_inputs,
    assemble_proof_blob,
    colliding_candidates,
)
from .gate import VerificationGate, VerificationOutcome, proof_hash
from .commitment import (
    compute_commitment,
    commitment_to_decimal,
    commitment_from_decimal,
    generate_salt,
)

__all__ = [
    "FIELD_SIZE",
    "PUBLIC_INPUTS_SIZE",
    "build_public_inputs",
    "encode_u32_field",
    "encode_code_field",
    "KNOWN_PROOF_FIELD_COUNTS",
    "ProofBlobError",
    "extract_public_inputs",
    "assemble_proof_blob",
    "colliding_candidates",
    "VerificationGate",
    "VerificationOutcome",
    "proof_hash",
    "compute_commitment",
    "commitment_to_decimal",
    "commitment_from_decimal",
    "generate_salt",
]
