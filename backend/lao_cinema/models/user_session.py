"""
Server-side login sessions.

The opaque token is handed to the client either as the HttpOnly
``session`` cookie or as a bearer token. Rows past ``expires_at`` are
deleted the first time they are looked up.
"""

from datetime import datetime

from sqlalchemy import Column, String, ForeignKey
from sqlalchemy.orm import relationship

from lao_cinema.db_base import Base
from lao_cinema.models.base import TimestampMixin, UTCDateTime, generate_uuid


class UserSession(Base, TimestampMixin):
    """A login session bound to one user."""

    __tablename__ = "user_sessions"

    id = Column(String(36), primary_key=True, default=generate_uuid)

    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    token = Column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Opaque session token presented by the client"
    )

    expires_at = Column(UTCDateTime(), nullable=False)

    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)

    user = relationship("User", back_populates="sessions", lazy="joined")

    def is_expired(self, now: datetime) -> bool:
        """A session is valid strictly before its expiry instant."""
        return now >= self.expires_at
