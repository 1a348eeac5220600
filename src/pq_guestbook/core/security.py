"""Signature primitives built on ML-DSA (FIPS 204) parameter sets."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final

import xoflib  # noqa: F401  # dilithium-py needs it for per-call XOF state across threads
from dilithium_py.ml_dsa import ML_DSA_44, ML_DSA_65, ML_DSA_87

from pq_guestbook.core.errors import MalformedKey

# pkEncode layout: 32-byte seed rho followed by k packed t1 polynomials
_RHO_BYTES: Final[int] = 32
_T1_POLY_BYTES: Final[int] = 320


@dataclass(frozen=True)
class MLDSAScheme:
    """One ML-DSA parameter set behind the common verify capability."""

    name: str
    k: int
    signature_size: int
    backend: Any

    @property
    def public_key_size(self) -> int:
        return _RHO_BYTES + _T1_POLY_BYTES * self.k

    def decode_public_key(self, public_key: bytes) -> bytes:
        """Check the pkEncode layout of ``public_key`` and return it as bytes.

        ML-DSA pkDecode accepts every byte string of the right length, so once
        the verifier has matched the key size this only rejects non-bytes
        input. Schemes with stricter key encodings raise here as well.

        Raises:
            MalformedKey: If the bytes do not split into rho and k t1 polynomials.
        """
        if not isinstance(public_key, bytes | bytearray | memoryview):
            raise MalformedKey()
        raw = bytes(public_key)
        rho, t1 = raw[:_RHO_BYTES], raw[_RHO_BYTES:]
        if len(rho) != _RHO_BYTES or len(t1) != _T1_POLY_BYTES * self.k:
            raise MalformedKey()
        return raw

    def verify(self, public_key: bytes, message: bytes, signature: bytes) -> bool:
        """Verify a pure ML-DSA signature with an empty context string."""
        if len(signature) != self.signature_size:
            return False
        try:
            return bool(self.backend.verify(public_key, message, signature))
        except (ValueError, IndexError):
            return False


ML_DSA_44_SCHEME = MLDSAScheme(name="ML-DSA-44", k=4, signature_size=2420, backend=ML_DSA_44)
ML_DSA_65_SCHEME = MLDSAScheme(name="ML-DSA-65", k=6, signature_size=3309, backend=ML_DSA_65)
ML_DSA_87_SCHEME = MLDSAScheme(name="ML-DSA-87", k=8, signature_size=4627, backend=ML_DSA_87)

SUPPORTED_SCHEMES: Final[tuple[MLDSAScheme, ...]] = (
    ML_DSA_44_SCHEME,
    ML_DSA_65_SCHEME,
    ML_DSA_87_SCHEME,
)


def normalize_algorithm_name(name: str) -> str:
    """Fold spelling variants such as ``ml_dsa_65`` or ``ML-DSA-65`` to ``MLDSA65``."""
    return "".join(ch for ch in name.upper() if ch.isalnum())
