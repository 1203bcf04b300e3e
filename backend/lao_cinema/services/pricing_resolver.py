"""
Pricing and promo code resolution.

Computes what a viewer owes for a movie rental: the movie's tier price,
optionally reduced by a promo code. Resolution and validation are pure
reads; a promo use is only counted by ``record_use`` once a rental has
actually been created with the code.

Discount arithmetic (amounts in whole LAK):
- free:        discount = original, final = 0
- percentage:  discount = round_half_up(original * value / 100)
- fixed:       discount = min(value, original)
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional

from sqlalchemy.orm import Session

from lao_cinema.auth.identity import Identity, UserIdentity, AnonymousIdentity
from lao_cinema.models.base import utcnow
from lao_cinema.models.pricing import DiscountType, PricingTier, PromoCode
from lao_cinema.models.rental import Rental
from lao_cinema.repositories.movie_repo import MovieRepository
from lao_cinema.repositories.pricing_repo import PromoCodeRepository

logger = logging.getLogger(__name__)


class UnavailableReason(str, enum.Enum):
    """Why a movie cannot be priced."""
    NO_PRICING = "no_pricing"
    INACTIVE_TIER = "inactive_tier"


class PromoError(str, enum.Enum):
    """Why a promo code cannot be applied."""
    NOT_FOUND = "not_found"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    WRONG_MOVIE = "wrong_movie"
    MISCONFIGURED = "misconfigured"
    USE_CAP_EXCEEDED = "use_cap_exceeded"


@dataclass(frozen=True)
class AppliedPromo:
    promo_code_id: str
    code: str
    discount_type: DiscountType
    discount_value: Optional[int]
    discount_amount: int


@dataclass(frozen=True)
class PriceQuote:
    """Result of resolve_price."""
    movie_id: str
    available: bool
    original_amount: int = 0
    final_amount: int = 0
    tier: Optional[PricingTier] = None
    promo_applied: Optional[AppliedPromo] = None
    unavailable_reason: Optional[UnavailableReason] = None


@dataclass(frozen=True)
class PromoValidation:
    """Result of validate_promo_code. ``error`` is set iff ``valid`` is False."""
    valid: bool
    promo: Optional[PromoCode] = None
    error: Optional[PromoError] = None


def normalize_code(code: str) -> str:
    return code.strip().upper()


def compute_discount(discount_type: DiscountType, discount_value: Optional[int], original_amount: int) -> int:
    """
    Discount in LAK for a promo applied to ``original_amount``.

    Never exceeds the original amount. Raises ValueError for a percentage or
    fixed code without a positive value.
    """
    if discount_type == DiscountType.FREE:
        return original_amount

    if discount_value is None or discount_value <= 0:
        raise ValueError(f"{discount_type.value} promo requires a positive discount value")

    if discount_type == DiscountType.PERCENTAGE:
        if discount_value > 100:
            raise ValueError("percentage discount cannot exceed 100")
        discount = (Decimal(original_amount) * Decimal(discount_value) / Decimal(100)).quantize(
            Decimal(1), rounding=ROUND_HALF_UP
        )
        return min(int(discount), original_amount)

    if discount_type == DiscountType.FIXED:
        return min(discount_value, original_amount)

    raise ValueError(f"Unknown discount type: {discount_type}")


class PricingResolver:
    """Resolves rental prices and validates promo codes."""

    def __init__(self, db_session: Session, clock: Optional[Callable[[], datetime]] = None):
        self.db = db_session
        self.movies = MovieRepository(db_session)
        self.promos = PromoCodeRepository(db_session)
        self._clock = clock or utcnow

    def resolve_price(self, movie_id: str, promo_code: Optional[str] = None) -> PriceQuote:
        """
        Price a rental of ``movie_id``.

        An unusable promo code never fails resolution; the price simply
        resolves at the full tier amount. Use validate_promo_code to learn why.
        """
        movie = self.movies.get_by_id(movie_id)
        if movie is None or movie.pricing_tier is None:
            return PriceQuote(
                movie_id=movie_id,
                available=False,
                unavailable_reason=UnavailableReason.NO_PRICING,
            )

        tier = movie.pricing_tier
        if not tier.is_active:
            return PriceQuote(
                movie_id=movie_id,
                available=False,
                tier=tier,
                unavailable_reason=UnavailableReason.INACTIVE_TIER,
            )

        original = tier.price_lak
        applied = None
        if promo_code:
            validation = self.validate_promo_code(promo_code, movie_id)
            if validation.valid:
                promo = validation.promo
                discount = compute_discount(promo.discount_type, promo.discount_value, original)
                applied = AppliedPromo(
                    promo_code_id=promo.id,
                    code=promo.code,
                    discount_type=promo.discount_type,
                    discount_value=promo.discount_value,
                    discount_amount=discount,
                )
            else:
                logger.info(
                    "Promo code ignored during price resolution",
                    extra={"movie_id": movie_id, "reason": validation.error.value},
                )

        final = original - applied.discount_amount if applied else original
        return PriceQuote(
            movie_id=movie_id,
            available=True,
            original_amount=original,
            final_amount=final,
            tier=tier,
            promo_applied=applied,
        )

    def validate_promo_code(self, code: str, movie_id: Optional[str] = None) -> PromoValidation:
        """
        Check whether a promo code can be applied now, optionally to a movie.

        Codes are matched case-insensitively. Inactive codes are reported as
        not found.
        """
        normalized = normalize_code(code or "")
        if not normalized:
            return PromoValidation(valid=False, error=PromoError.NOT_FOUND)

        promo = self.promos.get_active_by_code(normalized)
        if promo is None:
            return PromoValidation(valid=False, error=PromoError.NOT_FOUND)

        now = self._clock()
        if promo.valid_from is not None and now < promo.valid_from:
            return PromoValidation(valid=False, promo=promo, error=PromoError.NOT_YET_VALID)
        if promo.valid_to is not None and now > promo.valid_to:
            return PromoValidation(valid=False, promo=promo, error=PromoError.EXPIRED)

        if promo.max_uses is not None and promo.uses_count >= promo.max_uses:
            return PromoValidation(valid=False, promo=promo, error=PromoError.USE_CAP_EXCEEDED)

        if promo.movie_id is not None and movie_id is not None and promo.movie_id != movie_id:
            return PromoValidation(valid=False, promo=promo, error=PromoError.WRONG_MOVIE)

        try:
            compute_discount(promo.discount_type, promo.discount_value, 0)
        except ValueError:
            logger.warning("Promo code misconfigured", extra={"promo_code_id": promo.id})
            return PromoValidation(valid=False, promo=promo, error=PromoError.MISCONFIGURED)

        return PromoValidation(valid=True, promo=promo)

    def record_use(self, promo_code_id: str, rental: Optional[Rental], identity: Identity) -> bool:
        """
        Count one use of a promo code after a rental was created with it.

        Returns:
            False if the code had reached its use cap in the meantime
        """
        if not self.promos.increment_uses(promo_code_id):
            self.promos.rollback()
            logger.warning(
                "Promo code use not recorded - cap reached",
                extra={"promo_code_id": promo_code_id, "rental_id": rental.id if rental else None},
            )
            return False

        self.promos.add_use(
            promo_code_id=promo_code_id,
            rental_id=rental.id if rental else None,
            user_id=identity.user_id if isinstance(identity, UserIdentity) else None,
            anonymous_id=identity.anonymous_id if isinstance(identity, AnonymousIdentity) else None,
            used_at=self._clock(),
        )
        self.promos.commit()
        logger.info(
            "Promo code use recorded",
            extra={"promo_code_id": promo_code_id, "rental_id": rental.id if rental else None},
        )
        return True
