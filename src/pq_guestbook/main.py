# src/pq_guestbook/main.py
"""Main entry point for the guestbook application."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from pq_guestbook.api import messages_router
from pq_guestbook.core.settings import settings
from pq_guestbook.services.maintenance import SweepWorker
from pq_guestbook.services.submission import build_pipeline

logger = logging.getLogger(__name__)

SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Guestbook that only admits ML-DSA signed messages",
    version=settings.app_version,
)
app.state.pipeline = build_pipeline(settings)
app.state.sweep_worker = None

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


@app.middleware("http")
async def add_security_headers(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    response = await call_next(request)
    if request.url.path.startswith("/api/"):
        response.headers.update(SECURITY_HEADERS)
    return response


# Include API routers
app.include_router(messages_router, prefix="/api")


@app.on_event("startup")
async def on_startup() -> None:
    worker = SweepWorker(app.state.pipeline)
    await worker.start()
    app.state.sweep_worker = worker
    logger.info("PQ Guestbook live on :%d (ML-DSA browser signing)", settings.port)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    worker: SweepWorker | None = getattr(app.state, "sweep_worker", None)
    if worker:
        await worker.stop()
    app.state.sweep_worker = None


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Guestbook that only admits ML-DSA signed messages",
        "docs": "/docs",
    }


# Static frontend, when shipped alongside the service
_static_dir = Path(settings.static_dir)
if _static_dir.is_dir():
    app.mount("/", StaticFiles(directory=_static_dir, html=True), name="static")
else:
    app.add_api_route("/", root, methods=["GET"])


def run() -> None:
    """Serve the application with uvicorn on the configured port."""
    import uvicorn

    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run("pq_guestbook.main:app", host="0.0.0.0", port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    run()
