"""Signature verification dispatch over the supported ML-DSA strengths."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pq_guestbook.core.errors import InvalidInput, UnsupportedKeySize
from pq_guestbook.core.security import SUPPORTED_SCHEMES, MLDSAScheme
from pq_guestbook.core.settings import settings


@dataclass(frozen=True)
class Verification:
    """Result of checking one signature."""

    valid: bool
    algorithm: str


class SignatureVerifier:
    """Select a scheme from the public-key length and verify a signature."""

    def __init__(
        self,
        schemes: Iterable[MLDSAScheme] = SUPPORTED_SCHEMES,
        *,
        max_key_bytes: int | None = None,
        max_signature_bytes: int | None = None,
    ) -> None:
        self._by_key_size = {scheme.public_key_size: scheme for scheme in schemes}
        self.max_key_bytes = settings.max_key_bytes if max_key_bytes is None else max_key_bytes
        self.max_signature_bytes = (
            settings.max_signature_bytes if max_signature_bytes is None else max_signature_bytes
        )

    @property
    def key_sizes(self) -> dict[int, str]:
        """Map each accepted public-key length to its scheme name."""
        return {size: scheme.name for size, scheme in sorted(self._by_key_size.items())}

    def check_bounds(self, public_key: bytes, signature: bytes) -> None:
        """Reject key material above the fixed size caps.

        Raises:
            InvalidInput: If either byte string is larger than its cap.
        """
        if len(public_key) > self.max_key_bytes:
            raise InvalidInput("invalid pubkey")
        if len(signature) > self.max_signature_bytes:
            raise InvalidInput("invalid signature")

    def scheme_for(self, public_key: bytes) -> MLDSAScheme:
        """Return the scheme whose public keys have this length.

        Raises:
            UnsupportedKeySize: If no supported scheme uses this length.
        """
        scheme = self._by_key_size.get(len(public_key))
        if scheme is None:
            raise UnsupportedKeySize()
        return scheme

    def verify(self, public_key: bytes, payload: bytes, signature: bytes) -> Verification:
        """Verify ``signature`` over ``payload`` under ``public_key``.

        Args:
            public_key: Raw public-key bytes; their length selects the scheme.
            payload: Canonical payload bytes that were allegedly signed.
            signature: Raw signature bytes.

        Returns:
            The verification outcome and the name of the scheme that was used.

        Raises:
            InvalidInput: If the key or signature exceeds its size cap.
            UnsupportedKeySize: If the key length matches no scheme.
            MalformedKey: If the key cannot be decoded under the matching scheme.
        """
        self.check_bounds(public_key, signature)
        scheme = self.scheme_for(public_key)
        key = scheme.decode_public_key(public_key)
        return Verification(valid=scheme.verify(key, payload, signature), algorithm=scheme.name)
