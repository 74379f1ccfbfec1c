"""
Admin Console - Administrative surface of a deployment.

Every setter needs an approval from the current administrator, bound to
the new value. Getters are open. Nothing here touches game state.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any

from ..config import DeploymentConfig
from ..engine_core.errors import ErrorCode, GameError
from ..ports import Authenticator, ApprovalDenied

logger = logging.getLogger(__name__)

CODE_HASH_SIZE = 32


@dataclass
class AdminResult:
    """Result of an administrative call."""
    success: bool
    value: Any | None = None
    error: str | None = None
    error_code: ErrorCode | None = None

    @classmethod
    def ok(cls, value: Any = None) -> AdminResult:
        return cls(success=True, value=value)

    @classmethod
    def from_error(cls, exc: GameError) -> AdminResult:
        return cls(success=False, error=exc.message, error_code=exc.code)


class AdminConsole:
    """
    Usage:
        console = AdminConsole(config, authenticator)
        console.set_verifier("http://verifier:8080")
        console.get_hub().value
    """

    def __init__(self, config: DeploymentConfig, authenticator: Authenticator):
        self.config = config
        self.authenticator = authenticator

    def with_authenticator(self, authenticator: Authenticator) -> AdminConsole:
        return AdminConsole(self.config, authenticator)

    def get_admin(self) -> AdminResult:
        try:
            return AdminResult.ok(self.config.require_admin())
        except GameError as e:
            return AdminResult.from_error(e)

    def set_admin(self, new_admin: str) -> AdminResult:
        return self._update("set_admin", "admin", new_admin)

    def get_hub(self) -> AdminResult:
        try:
            return AdminResult.ok(self.config.require_hub())
        except GameError as e:
            return AdminResult.from_error(e)

    def set_hub(self, hub_address: str) -> AdminResult:
        return self._update("set_hub", "hub_address", hub_address)

    def get_verifier(self) -> AdminResult:
        """The verifier is optional; an unset verifier is not an error here."""
        return AdminResult.ok(self.config.verifier_address)

    def set_verifier(self, verifier_address: str) -> AdminResult:
        return self._update("set_verifier", "verifier_address", verifier_address)

    def replace_code(self, code_hash: bytes) -> AdminResult:
        """Record the hash of the code that should serve this deployment."""
        if len(code_hash) != CODE_HASH_SIZE:
            raise ValueError(f"code hash must be {CODE_HASH_SIZE} bytes")
        return self._update("replace_code", "code_hash", bytes(code_hash), shown=code_hash.hex())

    def _update(self, action: str, attribute: str, value: Any, shown: str | None = None) -> AdminResult:
        shown = shown if shown is not None else str(value)
        try:
            admin = self.config.require_admin()
            try:
                self.authenticator.require_approval(admin, (action, shown))
            except ApprovalDenied as e:
                raise GameError(ErrorCode.NOT_ADMIN, str(e))
        except GameError as e:
            logger.warning("Admin %s refused: %s", action, e.message)
            return AdminResult.from_error(e)

        setattr(self.config, attribute, value)
        logger.info("Admin %s: %s", action, shown)
        return AdminResult.ok(value)
