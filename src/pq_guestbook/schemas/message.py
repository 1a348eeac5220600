# src/pq_guestbook/schemas/message.py
"""Guestbook message Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class Submission(BaseModel):
    """A signed guestbook message as sent by the browser client.

    Admitted messages are stored as the same immutable model, with author and
    content trimmed and ``algo`` set to the verified parameter set.
    """

    author: str = Field("", description="Display name, single line")
    content: str = Field("", description="Message body")
    timestamp: int = Field(0, alias="ts", strict=True, description="Client time in ms since epoch")
    algo: str = Field("", description="Client-declared signature algorithm (informational)")
    signature: str = Field("", alias="sig", description="Base64 ML-DSA signature")
    pubkey: str = Field("", description="Base64 ML-DSA public key")
    browser: str = Field("", description="e.g. Chrome 120")
    platform: str = Field("", description="e.g. Windows 10")
    user_agent: str = Field("", alias="ua", description="Optional full user-agent string")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class PostAccepted(BaseModel):
    """Confirmation returned for an admitted submission."""

    status: str = "quantum-safe post accepted"
    message: Submission
