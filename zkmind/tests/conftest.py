"""
Pytest fixtures for ZK Mind tests.
"""

import pytest

from ..adapters import InMemorySessionStore, OpenAuthenticator, RecordingHub
from ..config import DeploymentConfig
from ..engine_core.state import Session
from ..ports import ProofVerifier, ProofRejected, VerifierError
from ..proofs.blob import HEADER_SIZE, assemble_proof_blob
from ..proofs.commitment import compute_commitment
from ..proofs.gate import proof_hash
from ..proofs.public_inputs import FIELD_SIZE, build_public_inputs
from ..session import SessionManager, SessionRegistry, AdminConsole


SECRET = (1, 2, 3, 4)
SALT = bytes(range(16))
CODEMAKER = "alice"
CODEBREAKER = "bob"
SESSION_ID = 7

# The smaller of the two common proof sizes
DEFAULT_PROOF_FIELDS = 440


class RecordingAuthenticator(OpenAuthenticator):
    """Approves everything and keeps a log of what was approved."""

    def __init__(self):
        self.approvals = []

    def require_approval(self, identity, action_parameters):
        self.approvals.append((identity, tuple(action_parameters)))


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeVerifier(ProofVerifier):
    """
    Stand-in for the on-chain verifier.

    Rejects artifacts too short to hold a 440-field proof as unparseable,
    and artifacts whose last byte is zero as failing verification.
    Otherwise returns the keccak of the artifact as proof id.
    """

    def __init__(self):
        self.calls: list[bytes] = []

    def verify(self, proof: bytes) -> bytes:
        self.calls.append(proof)
        if len(proof) < HEADER_SIZE + DEFAULT_PROOF_FIELDS * FIELD_SIZE:
            raise ProofRejected(VerifierError.PROOF_PARSE_ERROR, "artifact too short")
        if proof[-1] == 0:
            raise ProofRejected(VerifierError.VERIFICATION_FAILED, "bad proof")
        return proof_hash(proof)


def make_proof(
    session_id: int,
    guess_id: int,
    commitment: bytes,
    guess,
    exact: int,
    partial: int,
    proof_fields: int = DEFAULT_PROOF_FIELDS,
    valid: bool = True,
) -> bytes:
    """Proof artifact carrying the canonical public inputs of a claim."""
    public_inputs = build_public_inputs(session_id, guess_id, commitment, guess, exact, partial)
    proof = bytearray(b"\x01" * (proof_fields * FIELD_SIZE))
    if not valid:
        proof[-1] = 0
    return assemble_proof_blob(public_inputs, bytes(proof))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def commitment() -> bytes:
    return compute_commitment(SECRET, SALT)


@pytest.fixture
def store(clock) -> InMemorySessionStore:
    return InMemorySessionStore(default_ttl=60, clock=clock)


@pytest.fixture
def authenticator() -> RecordingAuthenticator:
    return RecordingAuthenticator()


@pytest.fixture
def hub() -> RecordingHub:
    return RecordingHub()


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture
def deployment() -> DeploymentConfig:
    return DeploymentConfig(admin="admin", hub_address="hub", verifier_address="verifier")


@pytest.fixture
def registry(store) -> SessionRegistry:
    return SessionRegistry(store, ttl_seconds=3600)


@pytest.fixture
def manager(registry, authenticator, deployment, hub, verifier) -> SessionManager:
    return SessionManager(
        registry=registry,
        authenticator=authenticator,
        config=deployment,
        hub_factory=lambda address: hub,
        verifier_factory=lambda address: verifier,
        game_identifier="zkmind-test",
    )


@pytest.fixture
def admin_console(deployment, authenticator) -> AdminConsole:
    return AdminConsole(deployment, authenticator)


@pytest.fixture
def started(manager) -> int:
    """A started session with no commitment yet."""
    result = manager.start_session(SESSION_ID, CODEMAKER, CODEBREAKER, 100, 50)
    assert result.success, result.error
    return SESSION_ID


@pytest.fixture
def committed(manager, started, commitment) -> int:
    """A started session with the commitment to SECRET recorded."""
    result = manager.commit(started, commitment)
    assert result.success, result.error
    return started


@pytest.fixture
def fresh_session() -> Session:
    return Session(codemaker=CODEMAKER, codebreaker=CODEBREAKER, stake_codemaker=100, stake_codebreaker=50)
