"""
Authenticators - Participant approval for session actions.

Two implementations:
- OpenAuthenticator: approves everything (development, tests)
- HmacAuthenticator: each identity shares a secret with the server and
  approves an action by presenting HMAC-SHA256 over the canonical action
  parameters. An approval for one parameter set never validates another.
"""

from __future__ import annotations
import hashlib
import hmac
import json
import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

from ..ports import Authenticator, ApprovalDenied

logger = logging.getLogger(__name__)


def canonical_message(action_parameters: Sequence[Any]) -> bytes:
    """Stable byte encoding of action parameters."""
    return "|".join(str(p) for p in action_parameters).encode("utf-8")


def approval_token(secret: bytes, action_parameters: Sequence[Any]) -> str:
    """Token an identity presents to approve these parameters."""
    return hmac.new(secret, canonical_message(action_parameters), hashlib.sha256).hexdigest()


class OpenAuthenticator(Authenticator):
    """Approves every request and keeps no state. Never use outside development."""

    def require_approval(self, identity: str, action_parameters: Sequence[Any]) -> None:
        logger.debug("Open approval for %s: %s", identity, action_parameters[0])


class HmacAuthenticator(Authenticator):
    """
    Checks HMAC approval tokens presented with a request.

    Usage:
        auth = HmacAuthenticator(keyring).with_tokens({"alice": token})
        auth.require_approval("alice", ("commit", 7, commitment_hex))
    """

    def __init__(
        self,
        keyring: Mapping[str, bytes],
        tokens: Mapping[str, str] | None = None,
    ):
        self.keyring = dict(keyring)
        self.tokens = dict(tokens or {})

    @classmethod
    def from_file(cls, path: str | Path) -> HmacAuthenticator:
        """Load a keyring file: {"identity": "hex secret", ...}."""
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return cls({identity: bytes.fromhex(secret) for identity, secret in raw.items()})

    def with_tokens(self, tokens: Mapping[str, str]) -> HmacAuthenticator:
        """Authenticator for one request, sharing this keyring."""
        return HmacAuthenticator(self.keyring, tokens)

    def require_approval(self, identity: str, action_parameters: Sequence[Any]) -> None:
        secret = self.keyring.get(identity)
        presented = self.tokens.get(identity)
        if secret is None or presented is None:
            logger.warning("No approval from %s for %s", identity, action_parameters[0])
            raise ApprovalDenied(identity, action_parameters)

        expected = approval_token(secret, action_parameters)
        if not hmac.compare_digest(expected, presented.lower()):
            logger.warning("Bad approval token from %s for %s", identity, action_parameters[0])
            raise ApprovalDenied(identity, action_parameters)
