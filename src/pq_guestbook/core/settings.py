"""Application settings and configuration.

This module defines all configuration options for the guestbook service.
Settings are loaded from environment variables with sensible defaults; the
only required value is the rate-limit secret, which must be present before
the first request is processed.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

RATE_LIMIT_SECRET_BYTES = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="PQ Guestbook", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    port: int = Field(default=8080, alias="PORT")

    # Device-ID keyed hash secret, hex encoded (openssl rand -hex 32)
    rate_limit_secret: str = Field(alias="RATE_LIMIT_SECRET")

    # Submission bounds
    max_body_bytes: int = Field(default=16 * 1024, alias="MAX_BODY_BYTES")
    max_author_length: int = Field(default=80, alias="MAX_AUTHOR_LENGTH")
    max_content_length: int = Field(default=2000, alias="MAX_CONTENT_LENGTH")
    max_key_bytes: int = Field(default=5000, alias="MAX_KEY_BYTES")
    max_signature_bytes: int = Field(default=5000, alias="MAX_SIGNATURE_BYTES")

    # Freshness window (milliseconds either side of server time)
    freshness_window_ms: int = Field(default=15_000, alias="FRESHNESS_WINDOW_MS")

    # Per-device token bucket
    rate_limit_burst: float = Field(default=8, alias="RATE_LIMIT_BURST")
    rate_limit_refill_per_second: float = Field(
        default=0.25,
        alias="RATE_LIMIT_REFILL_PER_SECOND",
    )
    rate_limit_idle_multiplier: float = Field(default=4, alias="RATE_LIMIT_IDLE_MULTIPLIER")

    # Background sweep of replay and rate-limit tables
    sweep_interval_seconds: float = Field(default=30.0, alias="SWEEP_INTERVAL_SECONDS")

    # Whether the client-declared algorithm hint must agree with the key size
    algorithm_hint_policy: Literal["ignore", "enforce"] = Field(
        default="ignore",
        alias="ALGORITHM_HINT_POLICY",
    )

    # Frontend and browser access
    static_dir: str = Field(default="static", alias="STATIC_DIR")
    cors_origins: list[str] = Field(
        default=["https://pq-guestbook.fly.dev"],
        alias="CORS_ORIGINS",
    )
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["Content-Type", "User-Agent"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("rate_limit_secret")
    @classmethod
    def _check_rate_limit_secret(cls, value: str) -> str:
        try:
            decoded = bytes.fromhex(value.strip())
        except ValueError as err:
            raise ValueError("RATE_LIMIT_SECRET must be a hex string") from err
        if len(decoded) != RATE_LIMIT_SECRET_BYTES:
            raise ValueError(
                f"RATE_LIMIT_SECRET must decode to exactly {RATE_LIMIT_SECRET_BYTES} bytes, "
                f"got {len(decoded)} bytes"
            )
        return value.strip()

    @field_validator("rate_limit_burst", "rate_limit_refill_per_second")
    @classmethod
    def _check_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("rate limit parameters must be positive")
        return value

    @property
    def rate_limit_secret_bytes(self) -> bytes:
        """Return the decoded rate-limit secret."""
        return bytes.fromhex(self.rate_limit_secret)


settings = Settings()  # type: ignore[call-arg]
