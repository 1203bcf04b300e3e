"""
Pricing tiers and promo codes.

Prices are whole Lao kip (LAK). A promo code may be restricted to a single
movie, a validity window and a maximum number of uses.
"""

import enum

from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, Enum, CheckConstraint

from lao_cinema.db_base import Base
from lao_cinema.models.base import TimestampMixin, UTCDateTime, generate_uuid, utcnow


class PricingTier(Base, TimestampMixin):
    """A named price point assigned to movies."""

    __tablename__ = "pricing_tiers"

    id = Column(String(36), primary_key=True, default=generate_uuid)

    name = Column(String(100), nullable=False, unique=True)
    display_name_en = Column(String(255), nullable=False)
    display_name_lo = Column(String(255), nullable=True)

    price_lak = Column(Integer, nullable=False, comment="Price in whole LAK")

    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)


class DiscountType(str, enum.Enum):
    """How a promo code reduces the price."""
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE = "free"


class PromoCode(Base, TimestampMixin):
    """A discount code redeemable at rental time."""

    __tablename__ = "promo_codes"
    __table_args__ = (
        CheckConstraint("uses_count >= 0", name="ck_promo_codes_uses_count"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)

    code = Column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
        comment="Upper-cased code entered by the viewer"
    )

    discount_type = Column(
        Enum(DiscountType, name="discount_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    discount_value = Column(
        Integer,
        nullable=True,
        comment="Percent (1-100) or LAK amount; unused for free codes"
    )

    max_uses = Column(Integer, nullable=True, comment="Null means unlimited")
    uses_count = Column(Integer, nullable=False, default=0)

    valid_from = Column(UTCDateTime(), nullable=True)
    valid_to = Column(UTCDateTime(), nullable=True)

    movie_id = Column(
        String(36),
        ForeignKey("movies.id", ondelete="CASCADE"),
        nullable=True,
        comment="Restricts the code to one movie when set"
    )

    is_active = Column(Boolean, nullable=False, default=True)


class PromoCodeUse(Base):
    """Audit row written each time a promo code is redeemed."""

    __tablename__ = "promo_code_uses"

    id = Column(String(36), primary_key=True, default=generate_uuid)

    promo_code_id = Column(
        String(36),
        ForeignKey("promo_codes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rental_id = Column(
        String(36),
        ForeignKey("rentals.id", ondelete="SET NULL"),
        nullable=True,
    )
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    anonymous_id = Column(String(255), nullable=True)

    used_at = Column(UTCDateTime(), nullable=False, default=utcnow)
