"""Guestbook service admitting only fresh, unique, ML-DSA signed messages."""

__version__ = "0.1.0"
