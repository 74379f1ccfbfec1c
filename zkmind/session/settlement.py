"""
Settlement Bridge - Reports session start and outcome to the Hub.

The Hub hears about a session exactly twice: once when it starts and once
when it enters ENDED. Hub failures abort the calling operation; the
session manager then persists nothing.
"""

from __future__ import annotations
import logging

from ..engine_core.errors import ErrorCode, GameError
from ..engine_core.state import Session
from ..ports import Hub, HubError

logger = logging.getLogger(__name__)


class SettlementBridge:
    """Hub notifications for one operation."""

    def __init__(self, hub: Hub, game_identifier: str):
        self.hub = hub
        self.game_identifier = game_identifier

    def announce_start(self, session_id: int, session: Session):
        try:
            self.hub.start(
                session_id,
                self.game_identifier,
                session.codemaker,
                session.codebreaker,
                session.stake_codemaker,
                session.stake_codebreaker,
            )
        except HubError as e:
            raise GameError(ErrorCode.HUB_UNAVAILABLE, str(e))

    def settle(self, session_id: int, before: Session, after: Session) -> bool:
        """
        Report the outcome if this transition ended the game.

        Returns True if the Hub was notified.
        """
        if before.ended or not after.ended:
            return False

        codemaker_won = not after.solved
        try:
            self.hub.end(session_id, codemaker_won)
        except HubError as e:
            raise GameError(ErrorCode.HUB_UNAVAILABLE, str(e))

        logger.info(
            "Session %s settled: %s won",
            session_id, "codemaker" if codemaker_won else "codebreaker",
        )
        return True
