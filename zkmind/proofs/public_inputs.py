"""
Public Inputs - Canonical encoding of a feedback claim.

The vector is six 32-byte fields, big-endian and right-aligned:

    [session_id][guess_id][commitment][guess][exact][partial]

The commitment is placed verbatim. The four guess digits occupy the low
four bytes of their field. This layout is the contract with the off-core
proof generator, so inputs that do not fit are rejected, never padded
or truncated.
"""

from __future__ import annotations
from typing import Sequence

from ..engine_core.state import CODE_LENGTH, COMMITMENT_SIZE

FIELD_SIZE = 32
PUBLIC_INPUT_FIELDS = 6
PUBLIC_INPUTS_SIZE = FIELD_SIZE * PUBLIC_INPUT_FIELDS

_U32_MAX = 0xFFFFFFFF


def encode_u32_field(value: int) -> bytes:
    """Encode an unsigned 32-bit scalar into one field."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"field value must be int, got {type(value).__name__}")
    if not 0 <= value <= _U32_MAX:
        raise ValueError(f"field value {value} does not fit in 32 bits")
    return value.to_bytes(FIELD_SIZE, "big")


def encode_code_field(code: Sequence[int]) -> bytes:
    """Pack a 4-digit code into the low four bytes of a field."""
    if len(code) != CODE_LENGTH:
        raise ValueError(f"code must have {CODE_LENGTH} digits, got {len(code)}")
    digits = bytes(code)  # ValueError for anything outside 0..255
    return bytes(FIELD_SIZE - CODE_LENGTH) + digits


def encode_commitment_field(commitment: bytes) -> bytes:
    """The commitment already is a field; only its width is checked."""
    if len(commitment) != COMMITMENT_SIZE:
        raise ValueError(
            f"commitment must be {COMMITMENT_SIZE} bytes, got {len(commitment)}"
        )
    return bytes(commitment)


def build_public_inputs(
    session_id: int,
    guess_id: int,
    commitment: bytes,
    guess: Sequence[int],
    exact: int,
    partial: int,
) -> bytes:
    """
    Build the canonical public-input vector for a feedback claim.

    Returns exactly PUBLIC_INPUTS_SIZE bytes.
    """
    return b"".join((
        encode_u32_field(session_id),
        encode_u32_field(guess_id),
        encode_commitment_field(commitment),
        encode_code_field(guess),
        encode_u32_field(exact),
        encode_u32_field(partial),
    ))


def split_fields(vector: bytes) -> list[bytes]:
    """Split a vector into 32-byte fields."""
    if len(vector) % FIELD_SIZE:
        raise ValueError(f"vector length {len(vector)} is not a multiple of {FIELD_SIZE}")
    return [vector[i:i + FIELD_SIZE] for i in range(0, len(vector), FIELD_SIZE)]
