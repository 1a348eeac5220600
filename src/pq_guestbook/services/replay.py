"""Replay protection for signed submissions."""

from __future__ import annotations

import logging
from collections import defaultdict
from threading import Lock

from pq_guestbook.core.settings import settings

logger = logging.getLogger(__name__)


class ReplayGuard:
    """Remember which timestamps each public key has already used."""

    def __init__(self, window_ms: int | None = None) -> None:
        self._window_ms = settings.freshness_window_ms if window_ms is None else window_ms
        self._seen: dict[str, set[int]] = defaultdict(set)
        self._lock = Lock()

    def check_and_record(self, public_key: bytes, timestamp: int) -> bool:
        """Record the (key, timestamp) pair, or return False if it was already seen."""
        key = public_key.hex()
        with self._lock:
            seen = self._seen[key]
            if timestamp in seen:
                return False
            seen.add(timestamp)
            return True

    def sweep(self, now_ms: int) -> int:
        """Forget timestamps that can no longer pass the freshness check.

        Returns:
            The number of (key, timestamp) pairs removed.
        """
        cutoff = now_ms - self._window_ms
        removed = 0
        with self._lock:
            for key in list(self._seen):
                timestamps = self._seen[key]
                expired = {ts for ts in timestamps if ts < cutoff}
                if expired:
                    timestamps -= expired
                    removed += len(expired)
                if not timestamps:
                    del self._seen[key]
        if removed:
            logger.debug("Swept %d expired replay entries", removed)
        return removed

    def __len__(self) -> int:
        with self._lock:
            return sum(len(timestamps) for timestamps in self._seen.values())
