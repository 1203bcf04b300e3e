"""
Database models for the rental-gated access core.
"""

from lao_cinema.models.base import TimestampMixin, UTCDateTime, generate_uuid, utcnow
from lao_cinema.models.user import User, UserRole
from lao_cinema.models.user_session import UserSession
from lao_cinema.models.pricing import PricingTier, PromoCode, PromoCodeUse, DiscountType
from lao_cinema.models.movie import Movie, VideoSource
from lao_cinema.models.short_pack import ShortPack, ShortPackTranslation, ShortPackItem
from lao_cinema.models.rental import Rental, ActiveRentalSlot
from lao_cinema.models.watch_progress import WatchProgress
from lao_cinema.models.payment_transaction import PaymentTransaction, PaymentStatus

__all__ = [
    "TimestampMixin",
    "UTCDateTime",
    "generate_uuid",
    "utcnow",
    "User",
    "UserRole",
    "UserSession",
    "PricingTier",
    "PromoCode",
    "PromoCodeUse",
    "DiscountType",
    "Movie",
    "VideoSource",
    "ShortPack",
    "ShortPackTranslation",
    "ShortPackItem",
    "Rental",
    "ActiveRentalSlot",
    "WatchProgress",
    "PaymentTransaction",
    "PaymentStatus",
]
