"""Tests for the brute-force login limiter."""
import threading

import pytest

from app.core.rate_limit import BruteForceLimiter, MemoryAttemptStore


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return BruteForceLimiter(
        MemoryAttemptStore(),
        max_failures=3,
        min_wait=10,
        max_wait=100,
        window=300,
        clock=clock,
    )


class TestBruteForceLimiter:
    """Failure counting, back-off and reset behaviour"""

    def test_unknown_key_is_allowed(self, limiter):
        assert limiter.check("1.2.3.4").allowed

    def test_allows_below_threshold(self, limiter):
        limiter.record_failure("1.2.3.4")
        limiter.record_failure("1.2.3.4")
        assert limiter.check("1.2.3.4").allowed

    def test_blocks_at_threshold(self, limiter):
        for _ in range(3):
            limiter.record_failure("1.2.3.4")
        decision = limiter.check("1.2.3.4")
        assert not decision.allowed
        assert decision.retry_after == pytest.approx(10)

    def test_success_resets(self, limiter):
        for _ in range(3):
            limiter.record_failure("1.2.3.4")
        limiter.record_success("1.2.3.4")
        assert limiter.check("1.2.3.4").allowed
        assert limiter.store.get("1.2.3.4") is None

    def test_keys_are_independent(self, limiter):
        for _ in range(3):
            limiter.record_failure("1.2.3.4")
        assert limiter.check("5.6.7.8").allowed

    def test_block_expires(self, limiter, clock):
        for _ in range(3):
            limiter.record_failure("1.2.3.4")
        clock.advance(10.5)
        assert limiter.check("1.2.3.4").allowed

    def test_back_off_doubles_and_caps(self, limiter, clock):
        for _ in range(3):
            limiter.record_failure("1.2.3.4")
        clock.advance(11)
        limiter.record_failure("1.2.3.4")
        assert limiter.check("1.2.3.4").retry_after == pytest.approx(20)
        for _ in range(10):
            limiter.record_failure("1.2.3.4")
        assert limiter.check("1.2.3.4").retry_after == pytest.approx(100)

    def test_failures_outside_window_start_over(self, limiter, clock):
        limiter.record_failure("1.2.3.4")
        limiter.record_failure("1.2.3.4")
        clock.advance(301)
        record = limiter.record_failure("1.2.3.4")
        assert record.failure_count == 1
        assert limiter.check("1.2.3.4").allowed

    def test_window_is_anchored_at_first_failure(self, limiter, clock):
        limiter.record_failure("1.2.3.4")
        clock.advance(200)
        limiter.record_failure("1.2.3.4")
        clock.advance(200)
        # Third failure is 400s after the first, so the run starts over
        record = limiter.record_failure("1.2.3.4")
        assert record.failure_count == 1
        assert limiter.check("1.2.3.4").allowed

    def test_sweep_purges_expired_records(self, limiter, clock):
        limiter.record_failure("stale")
        clock.advance(200)
        limiter.record_failure("fresh")
        clock.advance(150)
        assert limiter.sweep() == 1
        assert limiter.store.get("stale") is None
        assert limiter.store.get("fresh") is not None

    def test_sweep_keeps_blocked_records(self, clock):
        limiter = BruteForceLimiter(MemoryAttemptStore(), max_failures=1, min_wait=1000, max_wait=1000, window=10, clock=clock)
        limiter.record_failure("1.2.3.4")
        clock.advance(20)
        assert limiter.sweep() == 0
        assert not limiter.check("1.2.3.4").allowed


class TestMemoryAttemptStore:
    def test_concurrent_increments_are_not_lost(self):
        store = MemoryAttemptStore()

        def hammer():
            for _ in range(500):
                store.incr("1.2.3.4", now=1.0, window=60)

        threads = [threading.Thread(target=hammer) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.get("1.2.3.4").failure_count == 4000
        assert len(store) == 1

    def test_block_never_shortens_an_existing_block(self):
        store = MemoryAttemptStore()
        store.incr("1.2.3.4", now=1.0, window=60)
        store.block("1.2.3.4", until=500.0)
        store.block("1.2.3.4", until=100.0)
        assert store.get("1.2.3.4").blocked_until == 500.0
        store.block("1.2.3.4", until=900.0)
        assert store.get("1.2.3.4").blocked_until == 900.0
