"""
Token bucket that gates crash-report submission.

Unlike a request pacer this bucket never waits: a submission either gets a
token right now or is rejected. Tokens come back in whole-minute steps only,
and a separate per-process counter caps the total number of reports no matter
how many tokens have been refilled.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from ..observability.logging import BaasLoggerAdapter, get_baas_logger

REFILL_INTERVAL_SECONDS = 60.0


class ReportRateLimiter:
    """
    Discrete-refill token bucket with a session-lifetime ceiling.

    State lives on the instance, so independent clients (and tests) never share
    a bucket. ``try_acquire`` is serialized with a lock: refill, both checks and
    the consumption happen as one step.
    """

    def __init__(
        self,
        capacity: int = 5,
        max_per_session: int = 20,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[BaasLoggerAdapter] = None,
    ):
        """
        Initialize the bucket full.

        Args:
            capacity: Maximum tokens, also the number restored per elapsed minute
            max_per_session: Hard cap on accepted submissions for this instance
            clock: Monotonic time source in seconds
            logger: Optional logger
        """
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if max_per_session < 0:
            raise ValueError("max_per_session must not be negative")

        self._capacity = capacity
        self._max_per_session = max_per_session
        self._clock = clock
        self._lock = threading.Lock()
        self._logger = logger or get_baas_logger(__name__)

        self._tokens = capacity
        self._session_count = 0
        self._last_refill = clock()

    def _refill_locked(self) -> None:
        """Add tokens for every whole minute elapsed (must be called with lock held)."""
        now = self._clock()
        elapsed = now - self._last_refill
        if elapsed < REFILL_INTERVAL_SECONDS:
            return

        intervals = int(elapsed // REFILL_INTERVAL_SECONDS)
        self._tokens = min(self._capacity, self._tokens + intervals * self._capacity)
        self._last_refill = now

    def refill(self) -> None:
        """Apply any pending whole-minute refill without consuming a token."""
        with self._lock:
            self._refill_locked()

    def try_acquire(self) -> bool:
        """
        Consume one token if the submission is allowed.

        Returns:
            True if accepted; False if the bucket is empty or the session cap
            has been reached. A rejected call consumes nothing.
        """
        with self._lock:
            self._refill_locked()

            if self._tokens <= 0:
                self._logger.warning(
                    "crash.rate_limited",
                    reason="no_tokens",
                    session_count=self._session_count,
                )
                return False

            if self._session_count >= self._max_per_session:
                self._logger.warning(
                    "crash.rate_limited",
                    reason="session_limit",
                    session_count=self._session_count,
                    max_per_session=self._max_per_session,
                )
                return False

            self._tokens -= 1
            self._session_count += 1
            return True

    @property
    def tokens(self) -> int:
        with self._lock:
            return self._tokens

    @property
    def session_count(self) -> int:
        with self._lock:
            return self._session_count

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def max_per_session(self) -> int:
        return self._max_per_session
