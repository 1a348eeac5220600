"""Admission pipeline deciding whether a signed submission is stored."""
from __future__ import annotations

import base64
import binascii
import logging
import math
import time
from collections.abc import Callable

from pq_guestbook.core.canonical import SEPARATOR, canonicalize
from pq_guestbook.core.errors import (
    AdmissionRejected,
    InvalidInput,
    PayloadTooLarge,
    QuotaExceeded,
    ReplayDetected,
    SignatureInvalid,
    StaleOrFutureTimestamp,
)
from pq_guestbook.core.security import MLDSAScheme, normalize_algorithm_name
from pq_guestbook.core.settings import Settings, settings
from pq_guestbook.schemas.message import Submission
from pq_guestbook.services.ledger import MessageLedger
from pq_guestbook.services.rate_limit import AdmissionLimiter
from pq_guestbook.services.replay import ReplayGuard
from pq_guestbook.services.signing import SignatureVerifier
from pq_guestbook.utils.hash import fingerprint

logger = logging.getLogger(__name__)


def wall_clock_ms() -> int:
    """Return the current wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def decode_base64(data: str, limit: int, detail: str) -> bytes:
    """Decode standard base64, accepting omitted padding, capped at ``limit`` bytes.

    The encoded length is checked first so oversized input is never decoded.

    Raises:
        InvalidInput: If the text is not base64 or decodes to more than ``limit`` bytes.
    """
    cleaned = data.strip()
    if len(cleaned) > 4 * math.ceil(limit / 3):
        raise InvalidInput(detail)
    padding = "=" * (-len(cleaned) % 4)
    try:
        decoded = base64.b64decode(cleaned + padding, validate=True)
    except (binascii.Error, ValueError) as err:
        raise InvalidInput(detail) from err
    if len(decoded) > limit:
        raise InvalidInput(detail)
    return decoded


class SubmissionPipeline:
    """Run a submission through every admission gate in a fixed order.

    Gates, cheapest first: structure, key-material size, freshness, signature,
    replay, rate limit. Each gate only mutates its own table, and only once
    every earlier gate has passed.
    """

    def __init__(
        self,
        *,
        verifier: SignatureVerifier,
        replay: ReplayGuard,
        limiter: AdmissionLimiter,
        ledger: MessageLedger,
        config: Settings | None = None,
        clock_ms: Callable[[], int] = wall_clock_ms,
    ) -> None:
        self.verifier = verifier
        self.replay = replay
        self.limiter = limiter
        self.ledger = ledger
        self._config = config or settings
        self._clock_ms = clock_ms

    def admit(self, submission: Submission, *, request_size: int | None = None) -> Submission:
        """Admit ``submission`` into the ledger or raise the first failing gate.

        Args:
            submission: Decoded client submission.
            request_size: Raw body size in bytes, when the caller knows it.

        Returns:
            The stored message: trimmed text and the verified algorithm name.

        Raises:
            AdmissionRejected: One of its subclasses, naming the failing gate.
        """
        try:
            message = self._admit(submission, request_size)
        except AdmissionRejected as exc:
            logger.debug("Rejected submission (%s): %s", type(exc).__name__, exc.detail)
            raise
        logger.info(
            "Accepted %s message from key %s",
            message.algo,
            fingerprint(message.pubkey.encode()),
        )
        return message

    def _admit(self, submission: Submission, request_size: int | None) -> Submission:
        config = self._config

        # 1. Structure
        if request_size is not None and request_size > config.max_body_bytes:
            raise PayloadTooLarge("request body too large")
        author = submission.author.strip()
        content = submission.content.strip()
        if not author or not content:
            raise InvalidInput("author/content required")
        if SEPARATOR in author:
            raise InvalidInput("author must be a single line")
        if (
            len(author.encode()) > config.max_author_length
            or len(content.encode()) > config.max_content_length
        ):
            raise PayloadTooLarge("message too long")

        # 2. Key material size
        public_key = decode_base64(submission.pubkey, self.verifier.max_key_bytes, "invalid pubkey")
        signature = decode_base64(
            submission.signature, self.verifier.max_signature_bytes, "invalid signature"
        )
        self.verifier.check_bounds(public_key, signature)

        # 3. Freshness
        drift = self._clock_ms() - submission.timestamp
        if abs(drift) > config.freshness_window_ms:
            raise StaleOrFutureTimestamp()

        # 4. Signature, outside every lock
        self._check_algorithm_hint(submission.algo, self.verifier.scheme_for(public_key))
        payload = canonicalize(author, content, submission.timestamp)
        result = self.verifier.verify(public_key, payload, signature)
        if not result.valid:
            raise SignatureInvalid()

        # 5. Replay
        if not self.replay.check_and_record(public_key, submission.timestamp):
            raise ReplayDetected()

        # 6. Device quota
        if not self.limiter.allow(self.limiter.device_id(submission.user_agent)):
            raise QuotaExceeded()

        # 7. Store
        message = submission.model_copy(
            update={"author": author, "content": content, "algo": result.algorithm}
        )
        self.ledger.append(message)
        return message

    def _check_algorithm_hint(self, hint: str, scheme: MLDSAScheme) -> None:
        if not hint or normalize_algorithm_name(hint) == normalize_algorithm_name(scheme.name):
            return
        if self._config.algorithm_hint_policy == "enforce":
            raise InvalidInput("algorithm does not match public key")
        logger.debug("Algorithm hint %r ignored; key size selects %s", hint, scheme.name)

    def sweep(self) -> tuple[int, int]:
        """Evict replay entries and rate buckets that can no longer matter."""
        return self.replay.sweep(self._clock_ms()), self.limiter.sweep()


def build_pipeline(config: Settings | None = None) -> SubmissionPipeline:
    """Construct the pipeline and the tables it shares across requests."""
    config = config or settings
    return SubmissionPipeline(
        verifier=SignatureVerifier(
            max_key_bytes=config.max_key_bytes,
            max_signature_bytes=config.max_signature_bytes,
        ),
        replay=ReplayGuard(window_ms=config.freshness_window_ms),
        limiter=AdmissionLimiter(
            config.rate_limit_secret_bytes,
            burst=config.rate_limit_burst,
            refill_rate=config.rate_limit_refill_per_second,
            idle_multiplier=config.rate_limit_idle_multiplier,
        ),
        ledger=MessageLedger(),
        config=config,
    )
