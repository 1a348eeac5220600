"""Canonical byte encoding of a guestbook message."""

from __future__ import annotations

SEPARATOR = "\n"


def canonicalize(author: str, content: str, timestamp: int) -> bytes:
    """Return the exact bytes a client signs for a message.

    The layout is ``author \\n content \\n timestamp`` in UTF-8. The author is a
    single line, so the first separator always ends the author and the last one
    always starts the decimal timestamp; content may span lines freely.

    Raises:
        ValueError: If the author contains a line break.
    """
    if SEPARATOR in author:
        raise ValueError("author must not contain a line break")
    return f"{author}{SEPARATOR}{content}{SEPARATOR}{int(timestamp)}".encode()
