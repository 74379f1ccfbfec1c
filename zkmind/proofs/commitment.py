"""
Commitment - How a codemaker binds to a secret code.

commitment = BLAKE2s-256(secret digits || 16-byte salt), truncated to its
first 31 bytes so the value fits the proof system's field, then
right-aligned in a 32-byte field. Proof tooling passes it around as a
decimal string; the engine stores the 32 raw bytes.
"""

from __future__ import annotations
import hashlib
import secrets
from typing import Sequence

from ..engine_core.rules import is_valid_code
from ..engine_core.state import COMMITMENT_SIZE

SALT_SIZE = 16
_DIGEST_BYTES_KEPT = 31


def generate_salt() -> bytes:
    """Fresh random salt for a new commitment."""
    return secrets.token_bytes(SALT_SIZE)


def compute_commitment(secret: Sequence[int], salt: bytes | Sequence[int]) -> bytes:
    """Commit to a secret code under a salt."""
    if not is_valid_code(secret):
        raise ValueError("secret must be 4 distinct digits in 1..6")
    salt = bytes(salt)
    if len(salt) != SALT_SIZE:
        raise ValueError(f"salt must be {SALT_SIZE} bytes, got {len(salt)}")

    digest = hashlib.blake2s(bytes(secret) + salt).digest()
    value = digest[:_DIGEST_BYTES_KEPT]
    return bytes(COMMITMENT_SIZE - len(value)) + value


def commitment_to_decimal(commitment: bytes) -> str:
    if len(commitment) != COMMITMENT_SIZE:
        raise ValueError(f"commitment must be {COMMITMENT_SIZE} bytes")
    return str(int.from_bytes(commitment, "big"))


def commitment_from_decimal(value: str) -> bytes:
    """Parse the decimal form back into a 32-byte field."""
    if not (value.isascii() and value.isdigit()):
        raise ValueError("commitment must be a decimal string")
    number = int(value)
    if number.bit_length() > COMMITMENT_SIZE * 8:
        raise ValueError("commitment does not fit in 32 bytes")
    return number.to_bytes(COMMITMENT_SIZE, "big")
