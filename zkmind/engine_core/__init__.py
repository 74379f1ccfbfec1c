"""
Engine Core - Deterministic session state management.

The engine is the runtime that:
1. Holds the Session entity
2. Validates codes and feedback counts
3. Applies commit/guess/feedback actions via the reducer
4. Reports terminal transitions for settlement
"""

from .state import Session, GuessRecord, FeedbackRecord, GamePhase, MAX_ATTEMPTS
from .action import Action, ActionType, ActionPayload, ActionResult
from .errors import ErrorCode, GameError, ConfigurationMissing
from .rules import is_valid_code, is_valid_feedback, score_guess
from .reducer import Reducer, apply_action

__all__ = [
    "Session",
    "GuessRecord",
    "FeedbackRecord",
    "GamePhase",
    "MAX_ATTEMPTS",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "ErrorCode",
    "GameError",
    "ConfigurationMissing",
    "is_valid_code",
    "is_valid_feedback",
    "score_guess",
    "Reducer",
    "apply_action",
]
