"""
Configuration - Environment settings and the deployment record.

Settings come from environment variables. DeploymentConfig is the typed
record of administrative addresses; it replaces a shared key space and
is changed only through the admin console.
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass

from .engine_core.errors import ConfigurationMissing
from .engine_core.state import MAX_ATTEMPTS

DEFAULT_SESSION_TTL = 30 * 24 * 60 * 60
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Settings:
    """Process settings read once at startup."""
    env: str = "development"
    admin: str | None = None
    hub_url: str | None = None
    verifier_url: str | None = None
    game_id: str = "zkmind"
    session_ttl: int = DEFAULT_SESSION_TTL
    max_attempts: int = MAX_ATTEMPTS
    store_dir: str | None = None
    keyring_path: str | None = None
    log_level: str = "INFO"
    allowed_origins: tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        return cls(
            env=env.get("ZKMIND_ENV", "development"),
            admin=env.get("ZKMIND_ADMIN") or None,
            hub_url=env.get("ZKMIND_HUB_URL") or None,
            verifier_url=env.get("ZKMIND_VERIFIER_URL") or None,
            game_id=env.get("ZKMIND_GAME_ID", "zkmind"),
            session_ttl=int(env.get("ZKMIND_SESSION_TTL", DEFAULT_SESSION_TTL)),
            max_attempts=int(env.get("ZKMIND_MAX_ATTEMPTS", MAX_ATTEMPTS)),
            store_dir=env.get("ZKMIND_STORE_DIR") or None,
            keyring_path=env.get("ZKMIND_KEYRING") or None,
            log_level=env.get("ZKMIND_LOG_LEVEL", "INFO"),
            allowed_origins=tuple(env.get("ALLOWED_ORIGINS", "*").split(",")),
        )


@dataclass
class DeploymentConfig:
    """
    Administrative addresses.

    Missing entries are not errors until something needs them; then
    require_* raises ConfigurationMissing.
    """
    admin: str | None = None
    hub_address: str | None = None
    verifier_address: str | None = None
    code_hash: bytes | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> DeploymentConfig:
        return cls(
            admin=settings.admin,
            hub_address=settings.hub_url,
            verifier_address=settings.verifier_url,
        )

    def require_admin(self) -> str:
        if not self.admin:
            raise ConfigurationMissing("admin")
        return self.admin

    def require_hub(self) -> str:
        if not self.hub_address:
            raise ConfigurationMissing("hub address")
        return self.hub_address


def configure_logging(level: str | int = "INFO"):
    """Root logging setup for the CLI and server."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
