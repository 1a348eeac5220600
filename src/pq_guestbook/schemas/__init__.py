"""Pydantic schemas for the guestbook API."""

from .message import PostAccepted, Submission

__all__ = ["PostAccepted", "Submission"]
