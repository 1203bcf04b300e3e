"""
Payment transactions recorded before a rental is granted.

A transaction starts ``pending`` and moves to ``success`` (rental created)
or ``failed``. ``refunded`` is reserved for manual reversals.
"""

import enum

from sqlalchemy import Column, String, Integer, ForeignKey, Enum, JSON

from lao_cinema.db_base import Base
from lao_cinema.models.base import TimestampMixin, generate_uuid


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentTransaction(Base, TimestampMixin):
    """One payment attempt for a movie rental."""

    __tablename__ = "payment_transactions"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_uuid,
        comment="Also used as the rental transaction_id"
    )

    rental_id = Column(String(36), ForeignKey("rentals.id", ondelete="SET NULL"), nullable=True)
    movie_id = Column(String(36), ForeignKey("movies.id", ondelete="CASCADE"), nullable=False)

    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    anonymous_id = Column(String(255), nullable=True)

    provider = Column(String(50), nullable=False, comment="Payment provider name")
    provider_transaction_id = Column(String(255), nullable=True)

    amount_lak = Column(Integer, nullable=False)
    original_amount_lak = Column(Integer, nullable=False)

    promo_code_id = Column(String(36), ForeignKey("promo_codes.id", ondelete="SET NULL"), nullable=True)

    status = Column(
        Enum(PaymentStatus, name="payment_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PaymentStatus.PENDING,
    )

    provider_response = Column(JSON, nullable=True)
