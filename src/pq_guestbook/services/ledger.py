"""In-memory, newest-first store of admitted messages."""

from __future__ import annotations

from threading import Lock

from pq_guestbook.schemas.message import Submission


class MessageLedger:
    """Append-only message list; the newest entry is always first.

    Writers publish a new immutable tuple under the lock. Readers take the
    current tuple reference without locking, so any number of them can list
    concurrently and never observe a partial insert.
    """

    def __init__(self) -> None:
        self._entries: tuple[Submission, ...] = ()
        self._lock = Lock()

    def append(self, message: Submission) -> None:
        with self._lock:
            self._entries = (message, *self._entries)

    def list_all(self) -> tuple[Submission, ...]:
        """Return a snapshot of every stored message, newest first."""
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)
