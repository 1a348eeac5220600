"""Pseudonymous per-device rate limiting."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Final

from pq_guestbook.core.settings import RATE_LIMIT_SECRET_BYTES, settings
from pq_guestbook.utils.hash import blake3_keyed_hexdigest

DEVICE_ID_BYTES: Final[int] = 8  # 16 hex chars

logger = logging.getLogger(__name__)


@dataclass
class TokenBucket:
    """Mutable credit balance for one device identifier."""

    tokens: float
    last_refill: float


class AdmissionLimiter:
    """Token-bucket quota keyed by a keyed hash of the client's user agent.

    Buckets start full at ``burst`` tokens and refill continuously at
    ``refill_rate`` tokens per second. Identifiers are one-way: the server
    secret never leaves this object.
    """

    def __init__(
        self,
        secret: bytes,
        *,
        burst: float | None = None,
        refill_rate: float | None = None,
        idle_multiplier: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if len(secret) != RATE_LIMIT_SECRET_BYTES:
            raise ValueError(f"rate limit secret must be {RATE_LIMIT_SECRET_BYTES} bytes")
        self._secret = bytes(secret)
        self._burst = float(burst if burst is not None else settings.rate_limit_burst)
        self._refill_rate = float(
            refill_rate if refill_rate is not None else settings.rate_limit_refill_per_second
        )
        multiplier = (
            idle_multiplier if idle_multiplier is not None else settings.rate_limit_idle_multiplier
        )
        # A bucket idle for burst / refill_rate seconds is already full again.
        self._idle_after = max(1.0, float(multiplier)) * self._burst / self._refill_rate
        self._clock = clock
        self._buckets: dict[str, TokenBucket] = {}
        self._lock = Lock()

    def device_id(self, user_agent: str) -> str:
        """Return the stable pseudonym for a user-agent string."""
        return blake3_keyed_hexdigest(self._secret, user_agent.encode(), DEVICE_ID_BYTES)

    def allow(self, device_id: str) -> bool:
        """Refill the device's bucket and consume one token if available."""
        with self._lock:
            now = self._clock()
            bucket = self._buckets.get(device_id)
            if bucket is None:
                bucket = TokenBucket(tokens=self._burst, last_refill=now)
                self._buckets[device_id] = bucket
            else:
                elapsed = max(0.0, now - bucket.last_refill)
                bucket.tokens = min(self._burst, bucket.tokens + elapsed * self._refill_rate)
                bucket.last_refill = now

            if bucket.tokens < 1:
                return False
            bucket.tokens -= 1
            return True

    def sweep(self, now: float | None = None) -> int:
        """Drop buckets that have been idle long enough to be full again.

        Returns:
            The number of buckets removed.
        """
        with self._lock:
            current = self._clock() if now is None else now
            idle = [
                device_id
                for device_id, bucket in self._buckets.items()
                if current - bucket.last_refill > self._idle_after
            ]
            for device_id in idle:
                del self._buckets[device_id]
        if idle:
            logger.debug("Swept %d idle rate-limit buckets", len(idle))
        return len(idle)

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)
