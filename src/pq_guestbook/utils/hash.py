# src/pq_guestbook/utils/hash.py
"""BLAKE3 hashing helpers."""

from __future__ import annotations

from blake3 import blake3


def blake3_keyed_digest(key: bytes, data: bytes, length: int = 32) -> bytes:
    """Return a BLAKE3 keyed-hash (MAC) of ``data`` truncated to ``length`` bytes.

    ``key`` must be exactly 32 bytes.
    """
    return blake3(data, key=key).digest(length=length)


def blake3_keyed_hexdigest(key: bytes, data: bytes, length: int = 32) -> str:
    """Return the hexadecimal keyed digest of the supplied data."""
    return blake3_keyed_digest(key, data, length).hex()


def fingerprint(data: bytes, length: int = 4) -> str:
    """Return a short, non-secret hex fingerprint suitable for log lines."""
    return blake3(data).hexdigest(length=length)
