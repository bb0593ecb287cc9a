import threading
from datetime import timedelta

import pytest

from marocdeals.services.errors import CodeExpired, CodeMismatch, CodeNotFound, TooManyAttempts
from marocdeals.services.verification_store import VerificationStore, generate_code


def test_generate_code_is_six_digits():
    for _ in range(200):
        code = generate_code()
        assert len(code) == 6
        assert 100000 <= int(code) <= 999999


def test_issue_stores_fresh_entry(store, clock):
    code = store.issue("a@x.com")
    entry = store.pending("a@x.com")
    assert entry.code == code
    assert entry.attempts == 0
    assert entry.expires_at == clock.now + timedelta(minutes=10)


def test_correct_code_succeeds_exactly_once(store):
    code = store.issue("a@x.com")
    store.check("a@x.com", code)
    assert store.pending("a@x.com") is None
    with pytest.raises(CodeNotFound):
        store.check("a@x.com", code)


def test_check_unknown_identity():
    with pytest.raises(CodeNotFound):
        VerificationStore().check("nobody@x.com", "123456")


def test_second_issue_invalidates_first_code(clock):
    codes = iter(["111111", "222222"])
    store = VerificationStore(clock=clock, code_factory=lambda: next(codes))
    first = store.issue("a@x.com")
    store.issue("a@x.com")
    with pytest.raises(CodeMismatch):
        store.check("a@x.com", first)
    store.check("a@x.com", "222222")


def test_reissue_resets_attempts(store):
    store.issue("a@x.com")
    with pytest.raises(CodeMismatch):
        store.check("a@x.com", "bad")
    store.issue("a@x.com")
    assert store.pending("a@x.com").attempts == 0


def test_mismatch_then_success_scenario(clock):
    store = VerificationStore(clock=clock, code_factory=lambda: "482913")
    assert store.issue("a@x.com") == "482913"
    with pytest.raises(CodeMismatch):
        store.check("a@x.com", "000000")
    assert store.pending("a@x.com").attempts == 1
    store.check("a@x.com", "482913")
    assert store.pending("a@x.com") is None
    with pytest.raises(CodeNotFound):
        store.check("a@x.com", "482913")


def test_expired_code_is_rejected_and_deleted(store, clock):
    code = store.issue("b@x.com")
    clock.advance(minutes=10, seconds=1)
    with pytest.raises(CodeExpired):
        store.check("b@x.com", code)
    assert store.pending("b@x.com") is None
    with pytest.raises(CodeNotFound):
        store.check("b@x.com", code)


def test_code_still_valid_at_exact_expiry(store, clock):
    code = store.issue("b@x.com")
    clock.advance(minutes=10)
    store.check("b@x.com", code)


def test_expiry_takes_precedence_over_attempt_ceiling(clock):
    store = VerificationStore(clock=clock, code_factory=lambda: "482913")
    code = store.issue("c@x.com")
    for _ in range(3):
        with pytest.raises(CodeMismatch):
            store.check("c@x.com", "000000")
    clock.advance(minutes=11)
    with pytest.raises(CodeExpired):
        store.check("c@x.com", code)


@pytest.mark.parametrize("fourth_attempt", ["correct", "wrong"])
def test_fourth_check_after_three_mismatches(store, fourth_attempt):
    code = store.issue("d@x.com")
    wrong = "000000" if code != "000000" else "111111"
    for attempt in range(1, 4):
        with pytest.raises(CodeMismatch):
            store.check("d@x.com", wrong)
        assert store.pending("d@x.com").attempts == attempt

    with pytest.raises(TooManyAttempts):
        store.check("d@x.com", code if fourth_attempt == "correct" else wrong)
    assert store.pending("d@x.com") is None


def test_identities_are_independent(clock):
    codes = iter(["111111", "222222"])
    store = VerificationStore(clock=clock, code_factory=lambda: next(codes))
    store.issue("a@x.com")
    code_b = store.issue("b@x.com")
    with pytest.raises(CodeMismatch):
        store.check("a@x.com", code_b)
    store.check("b@x.com", code_b)
    assert store.pending("a@x.com").attempts == 1


def test_sweep_expired_removes_only_stale_entries(store, clock):
    store.issue("old@x.com")
    clock.advance(minutes=6)
    store.issue("new@x.com")
    clock.advance(minutes=5)

    assert store.sweep_expired() == 1
    assert len(store) == 1
    assert store.pending("old@x.com") is None
    assert store.pending("new@x.com") is not None


def test_pending_returns_a_copy(store):
    store.issue("a@x.com")
    snapshot = store.pending("a@x.com")
    snapshot.attempts = 99
    assert store.pending("a@x.com").attempts == 0


def test_concurrent_mismatches_are_all_counted(clock):
    store = VerificationStore(clock=clock, max_attempts=10**9, code_factory=lambda: "482913")
    store.issue("a@x.com")
    threads_count, checks_per_thread = 8, 500

    def hammer():
        for _ in range(checks_per_thread):
            try:
                store.check("a@x.com", "000000")
            except CodeMismatch:
                pass

    threads = [threading.Thread(target=hammer) for _ in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert store.pending("a@x.com").attempts == threads_count * checks_per_thread


def test_concurrent_issue_and_check_keep_one_consistent_entry(clock):
    store = VerificationStore(clock=clock, max_attempts=10**9, code_factory=lambda: "482913")
    store.issue("a@x.com")

    def reissue():
        for _ in range(500):
            store.issue("a@x.com")

    def mismatch():
        for _ in range(500):
            try:
                store.check("a@x.com", "000000")
            except CodeMismatch:
                pass

    threads = [threading.Thread(target=reissue), threading.Thread(target=mismatch)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    entry = store.pending("a@x.com")
    assert entry.code == "482913"
    assert 0 <= entry.attempts <= 500
    store.check("a@x.com", "482913")
    assert len(store) == 0
