# src/pq_guestbook/api/endpoints/messages.py
"""Guestbook listing and submission endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, Response, status
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from pq_guestbook.api.dependencies import PipelineDep
from pq_guestbook.core.errors import (
    AdmissionRejected,
    InvalidInput,
    MalformedKey,
    PayloadTooLarge,
    QuotaExceeded,
    ReplayDetected,
    SignatureInvalid,
    StaleOrFutureTimestamp,
    UnsupportedKeySize,
)
from pq_guestbook.core.settings import settings
from pq_guestbook.schemas.message import PostAccepted, Submission

router = APIRouter(tags=["messages"])

# RFC 9110 name; starlette deprecated HTTP_413_REQUEST_ENTITY_TOO_LARGE
HTTP_413_CONTENT_TOO_LARGE = 413

_STATUS_BY_REJECTION: dict[type[AdmissionRejected], int] = {
    PayloadTooLarge: HTTP_413_CONTENT_TOO_LARGE,
    InvalidInput: status.HTTP_400_BAD_REQUEST,
    StaleOrFutureTimestamp: status.HTTP_401_UNAUTHORIZED,
    ReplayDetected: status.HTTP_401_UNAUTHORIZED,
    UnsupportedKeySize: status.HTTP_400_BAD_REQUEST,
    MalformedKey: status.HTTP_400_BAD_REQUEST,
    SignatureInvalid: status.HTTP_401_UNAUTHORIZED,
    QuotaExceeded: status.HTTP_429_TOO_MANY_REQUESTS,
}


def status_for(exc: AdmissionRejected) -> int:
    """Return the HTTP status code for a rejection, most specific class first."""
    for cls in type(exc).__mro__:
        if cls in _STATUS_BY_REJECTION:
            return _STATUS_BY_REJECTION[cls]
    return status.HTTP_400_BAD_REQUEST


async def _read_capped_body(request: Request, limit: int) -> bytes:
    """Read the request body, refusing to buffer more than ``limit`` bytes."""
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise HTTPException(
            status_code=HTTP_413_CONTENT_TOO_LARGE,
            detail="request body too large",
        )
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise HTTPException(
                status_code=HTTP_413_CONTENT_TOO_LARGE,
                detail="request body too large",
            )
    return bytes(body)


@router.get("/messages", response_model=list[Submission])
async def list_messages(pipeline: PipelineDep) -> list[Submission]:
    """List every admitted message, newest first."""
    return list(pipeline.ledger.list_all())


@router.options("/post")
async def post_preflight() -> Response:
    """Answer CORS preflight requests for the submission route."""
    return Response(status_code=status.HTTP_200_OK)


@router.post("/post", response_model=PostAccepted)
async def post_message(request: Request, pipeline: PipelineDep) -> PostAccepted:
    """Admit a signed guestbook message.

    The body is parsed here; every admission decision is made by the pipeline,
    which runs on a worker thread because ML-DSA verification is CPU bound.

    Raises:
        HTTPException: 413 for oversized bodies, 400 for malformed JSON, and the
            mapped status code for any pipeline rejection.
    """
    body = await _read_capped_body(request, settings.max_body_bytes)
    try:
        submission = Submission.model_validate_json(body)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="bad json",
        ) from exc

    try:
        message = await run_in_threadpool(pipeline.admit, submission, request_size=len(body))
    except AdmissionRejected as exc:
        raise HTTPException(status_code=status_for(exc), detail=exc.detail) from exc

    return PostAccepted(message=message)
