"""
Adapters - Concrete implementations of the capability ports.
"""

from .memory import InMemorySessionStore
from .files import FileSessionStore
from .auth import OpenAuthenticator, HmacAuthenticator, approval_token, canonical_message
from .hub import RecordingHub, HttpHub
from .verifier import HttpProofVerifier

__all__ = [
    "InMemorySessionStore",
    "FileSessionStore",
    "OpenAuthenticator",
    "HmacAuthenticator",
    "approval_token",
    "canonical_message",
    "RecordingHub",
    "HttpHub",
    "HttpProofVerifier",
]
