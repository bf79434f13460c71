"""Tests for the token bucket rate limiter."""

from fish.server.rate_limit import TokenBucket


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestTokenBucket:
    def test_burst_allows_up_to_capacity(self):
        bucket = TokenBucket(rate=1.0, burst=5, clock=FakeClock())
        assert all(bucket.consume() for _ in range(5))
        assert bucket.consume() is False

    def test_refill_restores_tokens(self):
        """Tokens come back at the configured rate."""
        clock = FakeClock()
        bucket = TokenBucket(rate=10.0, burst=5, clock=clock)
        for _ in range(5):
            bucket.consume()
        assert bucket.consume() is False

        clock.now += 0.5
        assert bucket.consume() is True

    def test_refill_capped_at_burst(self):
        """Long idle periods never bank more than the burst."""
        clock = FakeClock()
        bucket = TokenBucket(rate=10.0, burst=3, clock=clock)
        clock.now += 100.0

        assert all(bucket.consume() for _ in range(3))
        assert bucket.consume() is False

    def test_sustained_rate(self):
        clock = FakeClock()
        bucket = TokenBucket(rate=2.0, burst=2, clock=clock)
        bucket.consume()
        bucket.consume()

        clock.now += 0.5
        assert bucket.consume() is True
        assert bucket.consume() is False
        assert bucket.tokens < 1.0
