"""Tests for the HTTP endpoints."""

import json
import time

from fastapi import status
from fastapi.testclient import TestClient

from pq_guestbook.core.errors import (
    InvalidInput,
    MalformedKey,
    PayloadTooLarge,
    QuotaExceeded,
    ReplayDetected,
    SignatureInvalid,
    StaleOrFutureTimestamp,
    UnsupportedKeySize,
)
from pq_guestbook.api.endpoints.messages import HTTP_413_CONTENT_TOO_LARGE, status_for
from pq_guestbook.core.settings import settings


def _now_ms() -> int:
    return int(time.time() * 1000)


def test_health(client: TestClient) -> None:
    r = client.get("/health")
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {"status": "ok"}


def test_empty_listing(client: TestClient) -> None:
    r = client.get("/api/messages")
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == []


def test_post_then_list(client: TestClient, identity, make_payload) -> None:
    """An accepted post is echoed back and visible in the listing."""
    scheme, pk, sk = identity
    payload = make_payload(scheme, pk, sk, author="Carol", content="first!", ts=_now_ms())
    payload["author"] = "  Carol"

    r = client.post("/api/post", json=payload)
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["status"] == "quantum-safe post accepted"
    assert data["message"]["author"] == "Carol"
    assert data["message"]["algo"] == "ML-DSA-44"

    r = client.get("/api/messages")
    listed = r.json()
    assert len(listed) == 1
    assert listed[0]["content"] == "first!"
    assert listed[0]["ts"] == payload["ts"]
    assert listed[0]["pubkey"] == payload["pubkey"]
    assert set(listed[0]) == {
        "author", "content", "ts", "algo", "sig", "pubkey", "browser", "platform", "ua",
    }


def test_replay_over_http(client: TestClient, identity, make_payload) -> None:
    scheme, pk, sk = identity
    payload = make_payload(scheme, pk, sk, ts=_now_ms())

    assert client.post("/api/post", json=payload).status_code == status.HTTP_200_OK
    r = client.post("/api/post", json=payload)
    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json() == {"detail": "replay detected"}


def test_stale_post(client: TestClient, identity, make_payload) -> None:
    scheme, pk, sk = identity
    payload = make_payload(scheme, pk, sk, ts=_now_ms() - 20_000)

    r = client.post("/api/post", json=payload)
    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json() == {"detail": "timestamp not fresh"}


def test_forged_post(client: TestClient, identity, make_payload) -> None:
    scheme, pk, sk = identity
    payload = make_payload(scheme, pk, sk, ts=_now_ms())
    payload["content"] = payload["content"] + "!"

    r = client.post("/api/post", json=payload)
    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json() == {"detail": "invalid ML-DSA signature"}
    assert client.get("/api/messages").json() == []


def test_bad_json(client: TestClient) -> None:
    r = client.post(
        "/api/post",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {"detail": "bad json"}


def test_wrong_field_type_is_bad_json(client: TestClient) -> None:
    r = client.post("/api/post", json={"author": "a", "content": "b", "ts": "123"})
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {"detail": "bad json"}


def test_missing_fields(client: TestClient) -> None:
    r = client.post("/api/post", json={})
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {"detail": "author/content required"}


def test_oversized_body(client: TestClient) -> None:
    body = json.dumps({"author": "a", "content": "x" * (settings.max_body_bytes + 1)})
    r = client.post(
        "/api/post",
        content=body.encode(),
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == HTTP_413_CONTENT_TOO_LARGE


def test_content_too_large_is_plain_413() -> None:
    assert HTTP_413_CONTENT_TOO_LARGE == 413


def test_declared_oversized_length_rejected(client: TestClient) -> None:
    r = client.post(
        "/api/post",
        content=b"x" * (settings.max_body_bytes + 1),
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 413
    assert r.json() == {"detail": "request body too large"}


def test_unsupported_key_size(client: TestClient) -> None:
    r = client.post(
        "/api/post",
        json={"author": "a", "content": "b", "ts": _now_ms(), "sig": "AAAA", "pubkey": "AAAA"},
    )
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json() == {"detail": "unsupported ML-DSA level"}


def test_preflight_and_security_headers(client: TestClient) -> None:
    r = client.options("/api/post")
    assert r.status_code == status.HTTP_200_OK
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "no-referrer"

    origin = settings.cors_origins[0]
    r = client.options(
        "/api/post",
        headers={"Origin": origin, "Access-Control-Request-Method": "POST"},
    )
    assert r.status_code == status.HTTP_200_OK
    assert r.headers["access-control-allow-origin"] == origin


def test_status_mapping() -> None:
    assert status_for(InvalidInput()) == status.HTTP_400_BAD_REQUEST
    assert status_for(PayloadTooLarge()) == HTTP_413_CONTENT_TOO_LARGE
    assert status_for(StaleOrFutureTimestamp()) == status.HTTP_401_UNAUTHORIZED
    assert status_for(ReplayDetected()) == status.HTTP_401_UNAUTHORIZED
    assert status_for(UnsupportedKeySize()) == status.HTTP_400_BAD_REQUEST
    assert status_for(MalformedKey()) == status.HTTP_400_BAD_REQUEST
    assert status_for(SignatureInvalid()) == status.HTTP_401_UNAUTHORIZED
    assert status_for(QuotaExceeded()) == status.HTTP_429_TOO_MANY_REQUESTS
