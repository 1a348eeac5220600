"""Rejection outcomes raised by the admission pipeline.

Every rejection is an expected, client-attributable outcome. The ``detail``
string is safe to return to the client verbatim.
"""

from __future__ import annotations


class AdmissionRejected(Exception):
    """Base exception for submissions that must not be admitted."""

    default_detail = "submission rejected"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidInput(AdmissionRejected):
    """Raised for empty fields, bad encodings or oversized key material."""

    default_detail = "invalid input"


class PayloadTooLarge(InvalidInput):
    """Raised when the request body or a text field exceeds its maximum size."""

    default_detail = "message too long"


class StaleOrFutureTimestamp(AdmissionRejected):
    """Raised when the declared timestamp falls outside the freshness window."""

    default_detail = "timestamp not fresh"


class ReplayDetected(AdmissionRejected):
    """Raised when a (public key, timestamp) pair was already accepted."""

    default_detail = "replay detected"


class UnsupportedKeySize(AdmissionRejected):
    """Raised when the public key length matches no supported scheme."""

    default_detail = "unsupported ML-DSA level"


class MalformedKey(AdmissionRejected):
    """Raised when a public key of known length cannot be decoded."""

    default_detail = "invalid pubkey"


class SignatureInvalid(AdmissionRejected):
    """Raised when the signature does not verify over the canonical payload."""

    default_detail = "invalid ML-DSA signature"


class QuotaExceeded(AdmissionRejected):
    """Raised when the sender's device bucket has no tokens left."""

    default_detail = "rate limit exceeded"
