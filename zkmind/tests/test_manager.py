"""
Integration tests for the session manager.

Tests:
- Full games through the public operations
- Hub notifications and rollback
- Configuration gaps
- Expiry renewal
- Concurrent submissions
"""

import gc
import threading

import pytest

from ..adapters import RecordingHub
from ..adapters.hub import HubStart
from ..engine_core.errors import ErrorCode
from ..engine_core.rules import score_guess
from ..engine_core.state import GamePhase
from ..ports import HubError
from ..session import AdapterCache, SessionManager
from .conftest import CODEBREAKER, CODEMAKER, SECRET, SESSION_ID, make_proof


class FlakyHub(RecordingHub):
    """Hub whose calls fail while `down` is set."""

    def __init__(self):
        super().__init__()
        self.down = False

    def start(self, *args, **kwargs):
        if self.down:
            raise HubError("hub offline")
        super().start(*args, **kwargs)

    def end(self, session_id, codemaker_won):
        if self.down:
            raise HubError("hub offline")
        super().end(session_id, codemaker_won)


def play_turn(manager, session_id, commitment, guess, valid=True):
    """Guess, then answer with the true score; returns the feedback result."""
    guess_result = manager.submit_guess(session_id, guess)
    assert guess_result.success, guess_result.error
    exact, partial = score_guess(SECRET, guess)
    blob = make_proof(session_id, guess_result.guess_id, commitment, guess, exact, partial, valid=valid)
    return manager.submit_feedback(session_id, guess_result.guess_id, exact, partial, blob)


def stored(manager, session_id=SESSION_ID):
    return manager.get_session(session_id).session


class TestGameScenarios:
    """Full games."""

    def test_start_announces_to_hub(self, manager, started, hub):
        assert hub.starts == [HubStart(SESSION_ID, "zkmind-test", CODEMAKER, CODEBREAKER, 100, 50)]
        assert stored(manager).phase == GamePhase.NO_COMMITMENT

    def test_codebreaker_wins(self, manager, committed, commitment, hub):
        result = play_turn(manager, committed, commitment, (1, 2, 3, 4))

        assert result.success
        session = stored(manager)
        assert session.ended and session.solved
        assert session.winner == CODEBREAKER
        assert session.attempts_used == 1
        assert hub.ends == [(SESSION_ID, False)]

    def test_codemaker_wins_after_twelve_attempts(self, manager, committed, commitment, hub):
        for attempt in range(12):
            result = play_turn(manager, committed, commitment, (1, 3, 5, 6))
            assert result.success
            assert result.ended_game == (attempt == 11)

        session = stored(manager)
        assert session.ended and not session.solved
        assert session.winner == CODEMAKER
        assert session.attempts_used == 12
        assert [f.guess_id for f in session.feedbacks] == list(range(12))
        assert hub.ends == [(SESSION_ID, True)]

        after = manager.submit_guess(committed, (1, 2, 3, 4))
        assert after.error_code == ErrorCode.GAME_ALREADY_ENDED

    def test_second_guess_while_pending(self, manager, committed):
        first = manager.submit_guess(committed, (1, 2, 3, 4))
        before = stored(manager).to_dict()

        second = manager.submit_guess(committed, (4, 3, 2, 1))

        assert first.guess_id == 0
        assert second.error_code == ErrorCode.GUESS_PENDING_FEEDBACK
        assert stored(manager).to_dict() == before

    def test_feedback_for_other_guess_id(self, manager, committed, commitment):
        manager.submit_guess(committed, (1, 3, 5, 6))
        blob = make_proof(committed, 5, commitment, (1, 3, 5, 6), 1, 1)

        result = manager.submit_feedback(committed, 5, 1, 1, blob)

        assert result.error_code == ErrorCode.INVALID_GUESS_ID
        assert stored(manager).pending_guess_id == 0

    def test_rejected_proof_can_be_retried(self, manager, committed, commitment):
        guess = manager.submit_guess(committed, (1, 3, 5, 6))
        bad = make_proof(committed, 0, commitment, (1, 3, 5, 6), 1, 1, valid=False)
        good = make_proof(committed, 0, commitment, (1, 3, 5, 6), 1, 1)

        assert manager.submit_feedback(committed, guess.guess_id, 1, 1, bad).error_code == ErrorCode.INVALID_PROOF
        assert stored(manager).attempts_used == 0
        assert manager.submit_feedback(committed, guess.guess_id, 1, 1, good).success
        assert stored(manager).attempts_used == 1

    def test_commit_twice(self, manager, committed, commitment):
        result = manager.commit(committed, bytes(32))
        assert result.error_code == ErrorCode.COMMITMENT_ALREADY_SET
        assert stored(manager).commitment == commitment

    def test_duplicate_start_keeps_original(self, manager, started, hub):
        result = manager.start_session(SESSION_ID, "carol", "dave", 1, 1)

        assert result.error_code == ErrorCode.SESSION_EXISTS
        assert stored(manager).codemaker == CODEMAKER
        assert len(hub.starts) == 1

    def test_unknown_session(self, manager):
        assert manager.get_session(99).error_code == ErrorCode.GAME_NOT_FOUND
        assert manager.submit_guess(99, (1, 2, 3, 4)).error_code == ErrorCode.GAME_NOT_FOUND

    def test_out_of_range_session_id_is_returned(self, manager, hub):
        for session_id in (-1, 2 ** 32):
            result = manager.start_session(session_id, CODEMAKER, CODEBREAKER, 0, 0)
            assert result.error_code == ErrorCode.INVALID_SESSION_ID
        assert hub.starts == []

    def test_sessions_are_independent(self, manager, committed, commitment):
        manager.start_session(8, "carol", "dave", 0, 0)
        manager.submit_guess(committed, (1, 3, 5, 6))

        assert stored(manager, 8).phase == GamePhase.NO_COMMITMENT
        assert stored(manager).phase == GamePhase.AWAITING_FEEDBACK


class TestSettlement:
    """Hub end notifications."""

    def test_end_fires_exactly_once(self, manager, committed, commitment, hub):
        play_turn(manager, committed, commitment, (1, 2, 3, 4))
        blob = make_proof(committed, 1, commitment, (1, 2, 3, 4), 4, 0)

        later = manager.submit_feedback(committed, 1, 4, 0, blob)

        assert later.error_code == ErrorCode.GAME_ALREADY_ENDED
        assert hub.end_count(SESSION_ID) == 1
        assert hub.last_outcome(SESSION_ID) is False

    def test_no_end_before_game_over(self, manager, committed, commitment, hub):
        play_turn(manager, committed, commitment, (1, 3, 5, 6))
        assert hub.end_count(SESSION_ID) == 0


class TestHubFailures:
    """A failing Hub aborts the operation and nothing is written."""

    @pytest.fixture
    def flaky_hub(self):
        return FlakyHub()

    @pytest.fixture
    def flaky_manager(self, registry, authenticator, deployment, flaky_hub, verifier):
        return SessionManager(
            registry=registry,
            authenticator=authenticator,
            config=deployment,
            hub_factory=lambda address: flaky_hub,
            verifier_factory=lambda address: verifier,
        )

    def test_start_rolls_back(self, flaky_manager, flaky_hub):
        flaky_hub.down = True

        result = flaky_manager.start_session(SESSION_ID, CODEMAKER, CODEBREAKER, 1, 1)

        assert result.error_code == ErrorCode.HUB_UNAVAILABLE
        assert flaky_manager.get_session(SESSION_ID).error_code == ErrorCode.GAME_NOT_FOUND

    def test_final_feedback_rolls_back(self, flaky_manager, flaky_hub, commitment):
        flaky_manager.start_session(SESSION_ID, CODEMAKER, CODEBREAKER, 1, 1)
        flaky_manager.commit(SESSION_ID, commitment)
        guess = flaky_manager.submit_guess(SESSION_ID, (1, 2, 3, 4))
        blob = make_proof(SESSION_ID, guess.guess_id, commitment, (1, 2, 3, 4), 4, 0)
        before = stored(flaky_manager).to_dict()

        flaky_hub.down = True
        failed = flaky_manager.submit_feedback(SESSION_ID, guess.guess_id, 4, 0, blob)

        assert failed.error_code == ErrorCode.HUB_UNAVAILABLE
        assert stored(flaky_manager).to_dict() == before
        assert flaky_hub.end_count(SESSION_ID) == 0

        flaky_hub.down = False
        retried = flaky_manager.submit_feedback(SESSION_ID, guess.guess_id, 4, 0, blob)

        assert retried.success
        assert stored(flaky_manager).solved
        assert flaky_hub.end_count(SESSION_ID) == 1


class TestConfiguration:
    """Missing or changed deployment settings."""

    def test_no_hub_address(self, manager, deployment):
        deployment.hub_address = None

        result = manager.start_session(SESSION_ID, CODEMAKER, CODEBREAKER, 1, 1)

        assert result.error_code == ErrorCode.CONFIGURATION_MISSING
        assert manager.get_session(SESSION_ID).error_code == ErrorCode.GAME_NOT_FOUND

    def test_no_verifier_address(self, manager, committed, commitment, deployment):
        deployment.verifier_address = None
        manager.submit_guess(committed, (1, 3, 5, 6))
        blob = make_proof(committed, 0, commitment, (1, 3, 5, 6), 1, 1)

        result = manager.submit_feedback(committed, 0, 1, 1, blob)

        assert result.error_code == ErrorCode.VERIFIER_NOT_SET
        assert stored(manager).pending_guess_id == 0

    def test_admin_change_applies_to_next_call(self, registry, authenticator, deployment, hub, verifier,
                                               admin_console, commitment):
        addresses = []

        def verifier_factory(address):
            addresses.append(address)
            return verifier

        manager = SessionManager(registry, authenticator, deployment, lambda a: hub, verifier_factory)
        manager.start_session(SESSION_ID, CODEMAKER, CODEBREAKER, 1, 1)
        manager.commit(SESSION_ID, commitment)
        play_turn(manager, SESSION_ID, commitment, (1, 3, 5, 6))

        assert admin_console.set_verifier("verifier-v2").success
        play_turn(manager, SESSION_ID, commitment, (1, 3, 5, 6))

        assert addresses == ["verifier", "verifier-v2"]


class TestExpiry:
    """Every write renews the session's expiry."""

    def test_write_renews(self, manager, started, store, clock):
        assert store.expires_in(started) == pytest.approx(3600)

        clock.advance(3000)
        manager.commit(started, bytes(32))
        assert store.expires_in(started) == pytest.approx(3600)

        clock.advance(3599)
        assert manager.get_session(started).success

    def test_expired_session_is_gone(self, manager, started, clock):
        clock.advance(3600)
        assert manager.get_session(started).error_code == ErrorCode.GAME_NOT_FOUND

    def test_failed_operation_does_not_renew(self, manager, started, store, clock):
        clock.advance(1000)
        manager.submit_guess(started, (1, 2, 3, 4))
        assert store.expires_in(started) == pytest.approx(2600)


class TestConcurrency:
    """Operations on one session are serialized."""

    def test_only_one_concurrent_guess_is_accepted(self, manager, committed):
        results = []
        barrier = threading.Barrier(8)

        def guess():
            barrier.wait()
            results.append(manager.submit_guess(committed, (1, 2, 3, 4)))

        threads = [threading.Thread(target=guess) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(r.success for r in results) == 1
        assert {r.error_code for r in results if not r.success} == {ErrorCode.GUESS_PENDING_FEEDBACK}
        assert stored(manager).next_guess_id == 1

    def test_lock_map_does_not_grow(self, manager, committed):
        for session_id in range(1000, 1500):
            assert manager.commit(session_id, bytes(32)).error_code == ErrorCode.GAME_NOT_FOUND
        manager.submit_guess(committed, (1, 2, 3, 4))
        gc.collect()

        assert len(manager._locks) == 0

    def test_held_lock_is_shared(self, manager):
        lock = manager._lock_for(SESSION_ID)
        assert manager.with_authenticator(manager.authenticator)._lock_for(SESSION_ID) is lock


class ClosableAdapter:

    def __init__(self, address):
        self.address = address
        self.closed = False

    def close(self):
        self.closed = True


class TestAdapterCache:

    def test_one_adapter_per_address(self):
        cache = AdapterCache(ClosableAdapter)
        assert cache("http://a") is cache("http://a")
        assert cache("http://a") is not cache("http://b")

    def test_evicted_adapter_is_closed(self):
        cache = AdapterCache(ClosableAdapter, maxsize=2)
        first = cache("http://a")
        second = cache("http://b")
        cache("http://a")

        cache("http://c")

        assert second.closed
        assert not first.closed
        assert len(cache) == 2

    def test_close_all(self):
        cache = AdapterCache(ClosableAdapter)
        adapters = [cache(f"http://{name}") for name in "abc"]

        cache.close()

        assert all(a.closed for a in adapters)
        assert len(cache) == 0
