"""HTTP API for the guestbook."""

from .endpoints import messages_router

__all__ = ["messages_router"]
