"""
Code rules - digit alphabet, feedback bounds, and scoring.
"""

from __future__ import annotations
from typing import Sequence

from .state import CODE_LENGTH, MIN_DIGIT, MAX_DIGIT


def is_valid_code(code: Sequence[int]) -> bool:
    """
    Check a 4-digit code.

    Every digit must lie in [1, 6] and all four must be pairwise distinct.
    """
    if len(code) != CODE_LENGTH:
        return False
    for digit in code:
        if isinstance(digit, bool) or not isinstance(digit, int):
            return False
        if not MIN_DIGIT <= digit <= MAX_DIGIT:
            return False
    return len(set(code)) == CODE_LENGTH


def is_valid_feedback(exact: int, partial: int) -> bool:
    """exact and partial are counts out of four; together at most four."""
    if exact < 0 or partial < 0:
        return False
    return exact <= CODE_LENGTH and partial <= CODE_LENGTH and exact + partial <= CODE_LENGTH


def score_guess(secret: Sequence[int], guess: Sequence[int]) -> tuple[int, int]:
    """
    Score a guess against the secret.

    Returns (exact, partial): digits in the right position, and digits
    present in the secret but placed elsewhere.
    """
    if len(secret) != CODE_LENGTH or len(guess) != CODE_LENGTH:
        raise ValueError(f"codes must have {CODE_LENGTH} digits")

    exact = sum(1 for s, g in zip(secret, guess) if s == g)
    shared = sum(1 for s in secret for g in guess if s == g)
    return exact, shared - exact
