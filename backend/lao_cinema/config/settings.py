"""
Access-control settings.

Values come from environment variables and are validated by pydantic.
The video token secret lives in VideoTokenConfig, next to the service
that uses it.

Environment:
    RENTAL_DURATION_MS      Rental lifetime in milliseconds (default 24h)
    SESSION_COOKIE_NAME     Cookie carrying the session token (default "session")
    ANONYMOUS_ID_HEADER     Header carrying the anonymous id (default "x-anonymous-id")
    RECENT_RENTAL_WINDOW_HOURS  How long expired rentals stay in "recent" listings
    CORS_ORIGINS            Comma separated allowed origins
"""

import os
import logging
from datetime import timedelta
from functools import lru_cache

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_RENTAL_DURATION_MS = 24 * 60 * 60 * 1000


class AccessConfig(BaseModel):
    """Settings shared by the identity, rental and access layers."""
    rental_duration_ms: int = Field(DEFAULT_RENTAL_DURATION_MS, gt=0)
    session_cookie_name: str = "session"
    anonymous_id_header: str = "x-anonymous-id"
    recent_rental_window_hours: int = Field(24, ge=0)
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    @field_validator("session_cookie_name", "anonymous_id_header")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @property
    def rental_duration(self) -> timedelta:
        return timedelta(milliseconds=self.rental_duration_ms)

    @property
    def recent_rental_window(self) -> timedelta:
        return timedelta(hours=self.recent_rental_window_hours)


def load_access_config() -> AccessConfig:
    """Build AccessConfig from environment variables."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    config = AccessConfig(
        rental_duration_ms=int(os.getenv("RENTAL_DURATION_MS", str(DEFAULT_RENTAL_DURATION_MS))),
        session_cookie_name=os.getenv("SESSION_COOKIE_NAME", "session"),
        anonymous_id_header=os.getenv("ANONYMOUS_ID_HEADER", "x-anonymous-id"),
        recent_rental_window_hours=int(os.getenv("RECENT_RENTAL_WINDOW_HOURS", "24")),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
    )
    logger.info(
        "Access config loaded",
        extra={
            "rental_duration_ms": config.rental_duration_ms,
            "session_cookie_name": config.session_cookie_name,
        },
    )
    return config


@lru_cache(maxsize=1)
def get_access_config() -> AccessConfig:
    """Process-wide AccessConfig; FastAPI dependency."""
    return load_access_config()
