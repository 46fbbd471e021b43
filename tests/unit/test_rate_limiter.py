"""
Unit Tests for Rate Limiting
"""

import time

import pytest

from yt_commenter.infrastructure.clients.rate_limiter import (
    AdaptiveRateLimiter,
    RateLimiter,
    TokenBucket,
    backoff_delay,
)


class TestTokenBucket:
    def test_consume_until_empty(self):
        bucket = TokenBucket(capacity=2, refill_rate=0.001, tokens=2)

        assert bucket.consume() is True
        assert bucket.consume() is True
        assert bucket.consume() is False

    def test_refill_over_time(self):
        bucket = TokenBucket(capacity=1, refill_rate=100, tokens=0)
        time.sleep(0.05)

        assert bucket.consume() is True

    def test_seconds_until(self):
        bucket = TokenBucket(capacity=1, refill_rate=1, tokens=0)

        assert 0.0 < bucket.seconds_until() <= 1.0


class TestBackoff:
    def test_exponential_without_jitter(self):
        delays = [backoff_delay(n, base=1.0, cap=30.0, jitter=False) for n in range(4)]

        assert delays == [1.0, 2.0, 4.0, 8.0]

    def test_capped(self):
        assert backoff_delay(10, base=1.0, cap=5.0, jitter=False) == 5.0

    def test_jitter_stays_in_range(self):
        for _ in range(50):
            assert 1.0 <= backoff_delay(1, base=1.0, cap=30.0) <= 2.0

    def test_retry_after_is_a_floor(self):
        assert backoff_delay(0, base=0.1, cap=30.0, retry_after=7) == 7.0
        assert backoff_delay(0, base=0.1, cap=3.0, retry_after=7) == 7.0

    def test_retry_after_wins_over_jitter(self):
        for _ in range(20):
            assert backoff_delay(3, base=1.0, cap=30.0, retry_after=120) == 120.0


class TestRateLimiter:
    @pytest.mark.asyncio
    async def test_acquire_within_burst(self):
        limiter = RateLimiter(calls_per_second=1, burst_capacity=3)

        results = [await limiter.acquire() for _ in range(3)]

        assert results == [True, True, True]

    @pytest.mark.asyncio
    async def test_acquire_times_out(self):
        limiter = RateLimiter(calls_per_second=0.1, burst_capacity=1)
        await limiter.acquire()

        assert await limiter.acquire(timeout=0.05) is False


class TestAdaptiveRateLimiter:
    def test_backs_off_on_429(self):
        limiter = AdaptiveRateLimiter(initial_calls_per_second=10)

        limiter.report_error(429)
        limiter.report_error(500)

        assert limiter.current_rate == 5.0
        assert limiter.bucket.refill_rate == 5.0

    def test_never_below_minimum(self):
        limiter = AdaptiveRateLimiter(initial_calls_per_second=2, min_calls_per_second=1)

        for _ in range(5):
            limiter.report_error(429)

        assert limiter.current_rate == 1

    def test_recovers_after_successes(self):
        limiter = AdaptiveRateLimiter(initial_calls_per_second=10)
        limiter.report_error(429)

        for _ in range(10):
            limiter.report_success()

        assert limiter.current_rate == pytest.approx(5.5)
