# yt_commenter/infrastructure/clients/rate_limiter.py
"""
Rate Limiting for API Clients
Token bucket throttling plus the jittered exponential backoff used when the
platform answers with a rate-limit error.

Features:
- asyncio-friendly waiting (never blocks the event loop)
- Configurable burst capacity
- Adaptive rate that backs off on 429s and recovers on success
"""

import asyncio
import logging
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


# ============================================================================
# Backoff
# ============================================================================


def backoff_delay(
    attempt: int,
    base: float = 1.0,
    cap: float = 30.0,
    retry_after: Optional[float] = None,
    jitter: bool = True,
) -> float:
    """
    Delay before retry number ``attempt`` (0-based)

    Args:
        attempt: How many attempts already failed, minus one
        base: Delay of the first retry
        cap: Upper bound for the exponential part
        retry_after: Platform-supplied hint; the delay is never shorter, even
            when the hint exceeds ``cap``
        jitter: Spread the delay over [delay/2, delay]

    Returns:
        Seconds to wait
    """
    delay = min(cap, base * (2**attempt))
    if jitter:
        delay = random.uniform(delay / 2, delay)
    if retry_after is not None:
        delay = max(delay, float(retry_after))
    return delay


# ============================================================================
# Token Bucket Algorithm Implementation
# ============================================================================


@dataclass
class TokenBucket:
    """
    Token bucket for rate limiting

    Attributes:
        capacity: Maximum tokens (burst capacity)
        refill_rate: Tokens added per second
        tokens: Current available tokens
        last_refill: Last refill timestamp
    """

    capacity: float
    refill_rate: float
    tokens: float
    last_refill: float = field(default_factory=time.monotonic)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def _refill(self) -> None:
        """Refill tokens based on elapsed time"""
        now = time.monotonic()
        elapsed = now - self.last_refill
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    def consume(self, tokens: float = 1.0) -> bool:
        """
        Try to consume tokens

        Returns:
            True if tokens consumed, False if insufficient
        """
        with self.lock:
            self._refill()

            if self.tokens >= tokens:
                self.tokens -= tokens
                return True

            return False

    def seconds_until(self, tokens: float = 1.0) -> float:
        """Time until ``tokens`` will be available"""
        with self.lock:
            self._refill()
            deficit = tokens - self.tokens
            if deficit <= 0:
                return 0.0
            return deficit / self.refill_rate


# ============================================================================
# Rate Limiter Class
# ============================================================================


class RateLimiter:
    """Async rate limiter backed by a local token bucket"""

    def __init__(self, calls_per_second: float, burst_capacity: Optional[int] = None):
        """
        Initialize rate limiter

        Args:
            calls_per_second: Maximum calls per second
            burst_capacity: Burst capacity (defaults to calls_per_second * 2)
        """
        self.calls_per_second = calls_per_second
        self.burst_capacity = burst_capacity or max(1, int(calls_per_second * 2))

        self.bucket = TokenBucket(
            capacity=float(self.burst_capacity),
            refill_rate=calls_per_second,
            tokens=float(self.burst_capacity),
        )

        logger.info(
            f"🕐 Rate limiter initialized: {calls_per_second} calls/sec, "
            f"burst={self.burst_capacity}"
        )

    async def acquire(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for permission to make a call

        Args:
            timeout: Maximum wait time (None = wait indefinitely)

        Returns:
            True if permission acquired, False on timeout
        """
        start = time.monotonic()

        while not self.bucket.consume():
            wait = min(self.bucket.seconds_until(), 1.0)
            if timeout is not None and (time.monotonic() - start + wait) > timeout:
                return False
            await asyncio.sleep(max(wait, 0.01))

        return True


# ============================================================================
# Adaptive Rate Limiter
# ============================================================================


class AdaptiveRateLimiter(RateLimiter):
    """
    Adaptive rate limiter that adjusts based on error responses

    Reduces the rate when the platform answers 429 and gradually increases it
    back after consecutive successes.
    """

    def __init__(
        self,
        initial_calls_per_second: float,
        min_calls_per_second: float = 1.0,
        max_calls_per_second: Optional[float] = None,
        backoff_factor: float = 0.5,
        recovery_factor: float = 1.1,
        **kwargs,
    ):
        super().__init__(initial_calls_per_second, **kwargs)

        self.current_rate = initial_calls_per_second
        self.min_rate = min_calls_per_second
        self.max_rate = max_calls_per_second or initial_calls_per_second
        self.backoff_factor = backoff_factor
        self.recovery_factor = recovery_factor
        self.consecutive_successes = 0
        self.adjustment_lock = threading.Lock()

    def report_error(self, status_code: int) -> None:
        """Report API error to adjust rate"""
        if status_code != 429:
            return

        with self.adjustment_lock:
            old_rate = self.current_rate
            self.current_rate = max(
                self.min_rate, self.current_rate * self.backoff_factor
            )
            self.bucket.refill_rate = self.current_rate
            self.consecutive_successes = 0

            logger.warning(
                f"⚠️ Rate limit hit, reducing rate: "
                f"{old_rate:.2f} → {self.current_rate:.2f} calls/sec"
            )

    def report_success(self) -> None:
        """Report successful call to gradually increase rate"""
        with self.adjustment_lock:
            self.consecutive_successes += 1

            if self.consecutive_successes >= 10:
                old_rate = self.current_rate
                self.current_rate = min(
                    self.max_rate, self.current_rate * self.recovery_factor
                )
                self.bucket.refill_rate = self.current_rate
                self.consecutive_successes = 0

                if old_rate != self.current_rate:
                    logger.info(
                        f"✅ Rate recovering: "
                        f"{old_rate:.2f} → {self.current_rate:.2f} calls/sec"
                    )
