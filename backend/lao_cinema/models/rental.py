"""
Rentals and active-rental slots.

A rental grants one owner (a user or an anonymous viewer) access to one
target (a movie or a short pack) until ``expires_at``. Rentals are never
deleted; expiry alone ends access.

``active_rental_slots`` holds at most one row per (owner, target). Creating
a rental claims the slot, which is how two concurrent purchases of the same
target by the same owner are kept from both succeeding.
"""

from datetime import datetime

from sqlalchemy import Column, String, Integer, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from lao_cinema.db_base import Base
from lao_cinema.models.base import UTCDateTime, generate_uuid, utcnow


class Rental(Base):
    """A time-limited entitlement to a movie or a short pack."""

    __tablename__ = "rentals"
    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) <> (anonymous_id IS NULL)",
            name="ck_rentals_one_owner",
        ),
        CheckConstraint(
            "(movie_id IS NULL) <> (short_pack_id IS NULL)",
            name="ck_rentals_one_target",
        ),
        CheckConstraint("expires_at > purchased_at", name="ck_rentals_expiry_after_purchase"),
        CheckConstraint("amount >= 0", name="ck_rentals_amount"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)

    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    anonymous_id = Column(String(255), nullable=True, index=True)

    movie_id = Column(
        String(36),
        ForeignKey("movies.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    short_pack_id = Column(
        String(36),
        ForeignKey("short_packs.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    current_short_id = Column(
        String(36),
        ForeignKey("movies.id", ondelete="SET NULL"),
        nullable=True,
        comment="Last short watched within a pack rental"
    )

    purchased_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    expires_at = Column(UTCDateTime(), nullable=False, index=True)

    transaction_id = Column(
        String(255),
        nullable=False,
        unique=True,
        comment="Payment transaction reference; unique per rental"
    )
    amount = Column(Integer, nullable=False, default=0, comment="Amount paid in minor units of currency")
    currency = Column(String(3), nullable=False, default="LAK")
    payment_method = Column(String(50), nullable=True)

    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    movie = relationship("Movie", foreign_keys=[movie_id])
    short_pack = relationship("ShortPack")

    def is_active(self, now: datetime) -> bool:
        """A rental grants access strictly before its expiry instant."""
        return now < self.expires_at

    @property
    def is_pack_rental(self) -> bool:
        return self.short_pack_id is not None

    def __repr__(self) -> str:
        target = f"pack={self.short_pack_id}" if self.short_pack_id else f"movie={self.movie_id}"
        return f"<Rental(id={self.id}, {target}, expires_at={self.expires_at})>"


class ActiveRentalSlot(Base):
    """
    One row per (owner, target) pair that has ever held a rental.

    ``expires_at`` mirrors the expiry of the rental currently occupying the
    slot. A slot whose expiry has passed may be reclaimed by a new rental.
    """

    __tablename__ = "active_rental_slots"
    __table_args__ = (
        UniqueConstraint("owner_key", "target_key", name="uq_active_rental_slots_owner_target"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)

    owner_key = Column(String(300), nullable=False, comment="user:<id> or anon:<id>")
    target_key = Column(String(100), nullable=False, comment="movie:<id> or pack:<id>")

    rental_id = Column(String(36), nullable=False)
    expires_at = Column(UTCDateTime(), nullable=False)
