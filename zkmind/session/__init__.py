"""
Session Module - Runs game sessions end to end.

A session is one game between a codemaker and a codebreaker:
- Started with both players' approval and announced to the Hub
- Advanced only through commit, guess and feedback operations
- Persisted through a SessionStore, expiry renewed on every write
- Settled with the Hub exactly once, when it ends

Sessions are never deleted here; reclamation is the store's expiry.
"""

from .registry import SessionRegistry, UnitOfWork
from .settlement import SettlementBridge
from .manager import AdapterCache, SessionManager, build_services
from .admin import AdminConsole, AdminResult

__all__ = [
    "SessionRegistry",
    "UnitOfWork",
    "SettlementBridge",
    "SessionManager",
    "AdapterCache",
    "build_services",
    "AdminConsole",
    "AdminResult",
]
