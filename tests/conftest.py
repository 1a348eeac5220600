# tests/conftest.py
from __future__ import annotations

import base64
import os
from collections.abc import Callable, Iterator
from typing import Any

import pytest

os.environ.setdefault("RATE_LIMIT_SECRET", "11" * 32)

from fastapi import FastAPI
from fastapi.testclient import TestClient

from pq_guestbook.core.canonical import canonicalize
from pq_guestbook.core.security import SUPPORTED_SCHEMES, MLDSAScheme
from pq_guestbook.core.settings import settings
from pq_guestbook.main import app as fastapi_app
from pq_guestbook.schemas.message import Submission
from pq_guestbook.services.ledger import MessageLedger
from pq_guestbook.services.rate_limit import AdmissionLimiter
from pq_guestbook.services.replay import ReplayGuard
from pq_guestbook.services.signing import SignatureVerifier
from pq_guestbook.services.submission import SubmissionPipeline, build_pipeline

NOW_MS = 1_700_000_000_000
TEST_SECRET = bytes.fromhex("22" * 32)


class FakeClock:
    """Manually advanced monotonic clock for token-bucket tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def encode_b64(data: bytes) -> str:
    """Unpadded standard base64, as browsers send it."""
    return base64.b64encode(data).decode().rstrip("=")


@pytest.fixture(scope="session")
def keypairs() -> dict[str, tuple[MLDSAScheme, bytes, bytes]]:
    """One ML-DSA key pair per supported strength, keyed by scheme name."""
    pairs = {}
    for scheme in SUPPORTED_SCHEMES:
        pk, sk = scheme.backend.keygen()
        pairs[scheme.name] = (scheme, pk, sk)
    return pairs


@pytest.fixture(scope="session")
def identity(keypairs: dict[str, tuple[MLDSAScheme, bytes, bytes]]) -> tuple[MLDSAScheme, bytes, bytes]:
    """The smallest key pair, used wherever the strength does not matter."""
    return keypairs["ML-DSA-44"]


def build_payload(
    scheme: MLDSAScheme,
    pk: bytes,
    sk: bytes,
    *,
    author: str = "Alice",
    content: str = "Hello from the post-quantum future",
    ts: int = NOW_MS,
    ua: str = "Mozilla/5.0 (X11; Linux x86_64) pytest",
    algo: str | None = None,
) -> dict[str, Any]:
    """Sign a message the way the browser client does and return its JSON body."""
    signature = scheme.backend.sign(sk, canonicalize(author, content, ts))
    return {
        "author": author,
        "content": content,
        "ts": ts,
        "algo": scheme.name if algo is None else algo,
        "sig": encode_b64(signature),
        "pubkey": encode_b64(pk),
        "browser": "Firefox 128",
        "platform": "Linux",
        "ua": ua,
    }


@pytest.fixture()
def now_ms() -> int:
    """Server time seen by the ``pipeline`` fixture."""
    return NOW_MS


@pytest.fixture()
def make_payload() -> Callable[..., dict[str, Any]]:
    return build_payload


@pytest.fixture()
def make_submission() -> Callable[..., Submission]:
    def _make(scheme: MLDSAScheme, pk: bytes, sk: bytes, **kwargs: Any) -> Submission:
        return Submission.model_validate(build_payload(scheme, pk, sk, **kwargs))

    return _make


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def limiter(fake_clock: FakeClock) -> AdmissionLimiter:
    return AdmissionLimiter(TEST_SECRET, burst=8, refill_rate=0.25, clock=fake_clock)


@pytest.fixture()
def pipeline(limiter: AdmissionLimiter) -> SubmissionPipeline:
    """Pipeline with fresh tables and server time pinned to ``NOW_MS``."""
    return SubmissionPipeline(
        verifier=SignatureVerifier(),
        replay=ReplayGuard(window_ms=15_000),
        limiter=limiter,
        ledger=MessageLedger(),
        clock_ms=lambda: NOW_MS,
    )


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client over a pipeline with empty tables."""
    original = app.state.pipeline
    app.state.pipeline = build_pipeline(settings)
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.state.pipeline = original
