"""
Tests for the reducer (state transitions).

Tests:
- Action application
- Phase transitions and end conditions
- Validation order
- Approval binding
"""

import pytest

from ..engine_core.action import Action
from ..engine_core.errors import ErrorCode
from ..engine_core.reducer import Reducer, apply_action
from ..engine_core.state import GamePhase, Session
from ..ports import Authenticator, ApprovalDenied
from ..proofs.gate import VerificationGate, proof_hash
from .conftest import CODEBREAKER, CODEMAKER, SESSION_ID, FakeVerifier, RecordingAuthenticator, make_proof


class DenyingAuthenticator(Authenticator):
    """Refuses every approval."""

    def require_approval(self, identity, action_parameters):
        raise ApprovalDenied(identity, action_parameters)


class OnlyAuthenticator(Authenticator):
    """Approves one identity only."""

    def __init__(self, identity):
        self.identity = identity

    def require_approval(self, identity, action_parameters):
        if identity != self.identity:
            raise ApprovalDenied(identity, action_parameters)


@pytest.fixture
def open_auth():
    return RecordingAuthenticator()


@pytest.fixture
def gate():
    return VerificationGate(FakeVerifier())


@pytest.fixture
def committed_session(fresh_session, commitment) -> Session:
    session = fresh_session.clone()
    session.commitment = commitment
    return session


def guess_and_answer(session, commitment, guess, exact, partial, auth, gate):
    """Submit a guess and its feedback; returns the feedback result."""
    result = apply_action(session, Action.submit_guess(SESSION_ID, guess), auth)
    assert result.success, result.error
    guess_id = result.guess_id
    blob = make_proof(SESSION_ID, guess_id, commitment, guess, exact, partial)
    return apply_action(
        result.new_state,
        Action.submit_feedback(SESSION_ID, guess_id, exact, partial, blob),
        auth,
        gate,
    )


class TestStartSession:
    """Tests for session creation."""

    def test_start(self, open_auth):
        action = Action.start_session(SESSION_ID, CODEMAKER, CODEBREAKER, 100, 50)
        result = apply_action(None, action, open_auth)

        assert result.success
        session = result.new_state
        assert session.phase == GamePhase.NO_COMMITMENT
        assert (session.codemaker, session.codebreaker) == (CODEMAKER, CODEBREAKER)
        assert (session.stake_codemaker, session.stake_codebreaker) == (100, 50)
        assert session.max_attempts == 12
        assert session.attempts_used == 0 and session.next_guess_id == 0

    def test_both_players_approve_their_stake(self, open_auth):
        apply_action(None, Action.start_session(SESSION_ID, CODEMAKER, CODEBREAKER, 100, 50), open_auth)

        assert open_auth.approvals == [
            (CODEMAKER, ("start_session", SESSION_ID, 100)),
            (CODEBREAKER, ("start_session", SESSION_ID, 50)),
        ]

    def test_missing_approval(self):
        action = Action.start_session(SESSION_ID, CODEMAKER, CODEBREAKER, 100, 50)
        result = apply_action(None, action, OnlyAuthenticator(CODEMAKER))

        assert not result.success
        assert result.error_code == ErrorCode.NOT_PLAYER

    def test_self_play(self, open_auth):
        result = apply_action(None, Action.start_session(SESSION_ID, CODEMAKER, CODEMAKER, 1, 1), open_auth)
        assert result.error_code == ErrorCode.SELF_PLAY

    def test_existing_session_is_not_overwritten(self, open_auth, fresh_session):
        action = Action.start_session(SESSION_ID, "carol", "dave", 1, 1)
        result = apply_action(fresh_session, action, open_auth)
        assert result.error_code == ErrorCode.SESSION_EXISTS

    def test_custom_attempt_cap(self, open_auth):
        action = Action.start_session(SESSION_ID, CODEMAKER, CODEBREAKER, 0, 0, max_attempts=3)
        assert apply_action(None, action, open_auth).new_state.max_attempts == 3

    def test_session_id_must_fit_u32(self, open_auth):
        for session_id in (-1, 2 ** 32):
            result = Reducer(open_auth).apply(None, Action.start_session(session_id, CODEMAKER, CODEBREAKER, 0, 0))
            assert not result.success
            assert result.error_code == ErrorCode.INVALID_SESSION_ID
        assert open_auth.approvals == []

    def test_unknown_session(self, open_auth):
        result = apply_action(None, Action.commit(SESSION_ID, bytes(32)), open_auth)
        assert result.error_code == ErrorCode.GAME_NOT_FOUND


class TestCommit:
    """Tests for the commitment."""

    def test_commit(self, open_auth, fresh_session, commitment):
        result = apply_action(fresh_session, Action.commit(SESSION_ID, commitment), open_auth)

        assert result.success
        assert result.new_state.commitment == commitment
        assert result.new_state.phase == GamePhase.AWAITING_GUESS
        assert fresh_session.commitment is None
        assert open_auth.approvals == [(CODEMAKER, ("commit", SESSION_ID, commitment.hex()))]

    def test_commit_twice(self, open_auth, committed_session):
        result = apply_action(committed_session, Action.commit(SESSION_ID, bytes(32)), open_auth)
        assert result.error_code == ErrorCode.COMMITMENT_ALREADY_SET

    def test_only_codemaker_commits(self, fresh_session, commitment):
        result = apply_action(fresh_session, Action.commit(SESSION_ID, commitment), OnlyAuthenticator(CODEBREAKER))
        assert result.error_code == ErrorCode.NOT_PLAYER

    def test_wrong_size(self, open_auth, fresh_session):
        result = apply_action(fresh_session, Action.commit(SESSION_ID, bytes(31)), open_auth)
        assert result.error_code == ErrorCode.INVALID_COMMITMENT

    def test_ended_checked_before_approval(self, fresh_session, commitment):
        fresh_session.ended = True
        result = apply_action(fresh_session, Action.commit(SESSION_ID, commitment), DenyingAuthenticator())
        assert result.error_code == ErrorCode.GAME_ALREADY_ENDED


class TestGuess:
    """Tests for guesses."""

    def test_guess_locks_session(self, open_auth, committed_session):
        result = apply_action(committed_session, Action.submit_guess(SESSION_ID, (1, 3, 5, 6)), open_auth)

        assert result.success
        assert result.guess_id == 0
        session = result.new_state
        assert session.pending_guess_id == 0
        assert session.next_guess_id == 1
        assert session.guess_by_id(0) == (1, 3, 5, 6)
        assert session.phase == GamePhase.AWAITING_FEEDBACK
        assert open_auth.approvals == [(CODEBREAKER, ("submit_guess", SESSION_ID, "1,3,5,6"))]

    def test_no_commitment(self, open_auth, fresh_session):
        result = apply_action(fresh_session, Action.submit_guess(SESSION_ID, (1, 2, 3, 4)), open_auth)
        assert result.error_code == ErrorCode.COMMITMENT_NOT_SET

    def test_pending_guess_blocks_next(self, open_auth, committed_session):
        first = apply_action(committed_session, Action.submit_guess(SESSION_ID, (1, 2, 3, 4)), open_auth)
        second = apply_action(first.new_state, Action.submit_guess(SESSION_ID, (4, 3, 2, 1)), DenyingAuthenticator())
        assert second.error_code == ErrorCode.GUESS_PENDING_FEEDBACK

    @pytest.mark.parametrize("guess", [(1, 1, 2, 3), (0, 1, 2, 3), (1, 2, 3, 7), (1, 2, 3)])
    def test_invalid_guess(self, open_auth, committed_session, guess):
        result = apply_action(committed_session, Action.submit_guess(SESSION_ID, guess), open_auth)
        assert result.error_code == ErrorCode.INVALID_GUESS
        assert committed_session.pending_guess_id is None

    def test_approval_checked_before_digits(self, committed_session):
        result = apply_action(committed_session, Action.submit_guess(SESSION_ID, (9, 9, 9, 9)), DenyingAuthenticator())
        assert result.error_code == ErrorCode.NOT_PLAYER

    def test_attempts_exhausted(self, open_auth, committed_session):
        committed_session.attempts_used = committed_session.max_attempts
        result = apply_action(committed_session, Action.submit_guess(SESSION_ID, (1, 2, 3, 4)), open_auth)
        assert result.error_code == ErrorCode.ATTEMPTS_EXHAUSTED


class TestFeedback:
    """Tests for proof-backed feedback."""

    def test_feedback_resolves_guess(self, open_auth, gate, committed_session, commitment):
        result = guess_and_answer(committed_session, commitment, (1, 3, 5, 6), 1, 1, open_auth, gate)

        assert result.success
        assert not result.ended_game
        session = result.new_state
        assert session.pending_guess_id is None
        assert session.attempts_used == 1
        assert session.phase == GamePhase.AWAITING_GUESS
        record = session.feedbacks[0]
        assert (record.guess_id, record.exact, record.partial) == (0, 1, 1)
        blob = make_proof(SESSION_ID, 0, commitment, (1, 3, 5, 6), 1, 1)
        assert record.proof_hash == proof_hash(blob)

    def test_feedback_approval_binds_proof(self, open_auth, gate, committed_session, commitment):
        guess_and_answer(committed_session, commitment, (1, 3, 5, 6), 1, 1, open_auth, gate)

        blob = make_proof(SESSION_ID, 0, commitment, (1, 3, 5, 6), 1, 1)
        identity, params = open_auth.approvals[-1]
        assert identity == CODEMAKER
        assert params == ("submit_feedback", SESSION_ID, 0, 1, 1, proof_hash(blob).hex())

    def test_four_exact_ends_solved(self, open_auth, gate, committed_session, commitment):
        result = guess_and_answer(committed_session, commitment, (1, 2, 3, 4), 4, 0, open_auth, gate)

        assert result.ended_game
        assert result.codemaker_won is False
        session = result.new_state
        assert session.ended and session.solved
        assert session.winner == CODEBREAKER
        assert session.phase == GamePhase.ENDED

    def test_last_attempt_ends_unsolved(self, open_auth, gate, committed_session, commitment):
        committed_session.max_attempts = 2
        first = guess_and_answer(committed_session, commitment, (1, 3, 5, 6), 1, 1, open_auth, gate)
        second = guess_and_answer(first.new_state, commitment, (1, 3, 5, 6), 1, 1, open_auth, gate)

        assert not first.ended_game
        assert second.ended_game and second.codemaker_won
        assert second.new_state.winner == CODEMAKER
        assert not second.new_state.solved

    def test_no_pending_guess(self, open_auth, gate, committed_session, commitment):
        blob = make_proof(SESSION_ID, 0, commitment, (1, 2, 3, 4), 1, 1)
        result = apply_action(committed_session, Action.submit_feedback(SESSION_ID, 0, 1, 1, blob), open_auth, gate)
        assert result.error_code == ErrorCode.NO_PENDING_GUESS

    def test_wrong_guess_id(self, open_auth, gate, committed_session, commitment):
        pending = apply_action(committed_session, Action.submit_guess(SESSION_ID, (1, 3, 5, 6)), open_auth).new_state
        blob = make_proof(SESSION_ID, 1, commitment, (1, 3, 5, 6), 1, 1)
        result = apply_action(pending, Action.submit_feedback(SESSION_ID, 1, 1, 1, blob), open_auth, gate)
        assert result.error_code == ErrorCode.INVALID_GUESS_ID

    @pytest.mark.parametrize("exact,partial", [(3, 2), (5, 0), (-1, 1)])
    def test_invalid_feedback(self, open_auth, gate, committed_session, exact, partial):
        pending = apply_action(committed_session, Action.submit_guess(SESSION_ID, (1, 3, 5, 6)), open_auth).new_state
        result = apply_action(pending, Action.submit_feedback(SESSION_ID, 0, exact, partial, b""), open_auth, gate)
        assert result.error_code == ErrorCode.INVALID_FEEDBACK

    def test_invalid_proof_leaves_state_unchanged(self, open_auth, gate, committed_session, commitment):
        pending = apply_action(committed_session, Action.submit_guess(SESSION_ID, (1, 3, 5, 6)), open_auth).new_state
        before = pending.to_dict()
        blob = make_proof(SESSION_ID, 0, commitment, (1, 3, 5, 6), 1, 1, valid=False)

        result = apply_action(pending, Action.submit_feedback(SESSION_ID, 0, 1, 1, blob), open_auth, gate)

        assert result.error_code == ErrorCode.INVALID_PROOF
        assert result.new_state is None
        assert pending.to_dict() == before

    def test_lying_about_score_is_caught(self, open_auth, gate, committed_session, commitment):
        """The proof was made for (1, 1); claiming (0, 2) does not match."""
        pending = apply_action(committed_session, Action.submit_guess(SESSION_ID, (1, 3, 5, 6)), open_auth).new_state
        blob = make_proof(SESSION_ID, 0, commitment, (1, 3, 5, 6), 1, 1)
        result = apply_action(pending, Action.submit_feedback(SESSION_ID, 0, 0, 2, blob), open_auth, gate)
        assert result.error_code == ErrorCode.INVALID_PUBLIC_INPUTS

    def test_no_verifier(self, open_auth, committed_session, commitment):
        pending = apply_action(committed_session, Action.submit_guess(SESSION_ID, (1, 3, 5, 6)), open_auth).new_state
        blob = make_proof(SESSION_ID, 0, commitment, (1, 3, 5, 6), 1, 1)
        result = apply_action(pending, Action.submit_feedback(SESSION_ID, 0, 1, 1, blob), open_auth)
        assert result.error_code == ErrorCode.VERIFIER_NOT_SET

    def test_ended_session(self, gate, committed_session):
        committed_session.ended = True
        result = apply_action(
            committed_session, Action.submit_feedback(SESSION_ID, 0, 1, 1, b""), DenyingAuthenticator(), gate,
        )
        assert result.error_code == ErrorCode.GAME_ALREADY_ENDED

    def test_approval_checked_before_commitment(self, gate, fresh_session):
        result = apply_action(
            fresh_session, Action.submit_feedback(SESSION_ID, 0, 1, 1, b""), DenyingAuthenticator(), gate,
        )
        assert result.error_code == ErrorCode.NOT_PLAYER


class TestSessionState:
    """Tests for Session helpers."""

    def test_dict_round_trip(self, open_auth, gate, committed_session, commitment):
        session = guess_and_answer(committed_session, commitment, (1, 3, 5, 6), 1, 1, open_auth, gate).new_state
        assert Session.from_dict(session.to_dict()) == session

    def test_clone_is_independent(self, committed_session):
        clone = committed_session.clone()
        clone.guesses.append(None)
        assert committed_session.guesses == []
