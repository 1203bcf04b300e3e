"""
Pricing API routes.

- GET  /api/movies/{movie_id}/pricing?promoCode=   price preview
- POST /api/promo-codes/validate                   promo code check

Neither endpoint consumes a promo code use.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from lao_cinema.api.dependencies import get_pricing_resolver
from lao_cinema.api.schemas.pricing import (
    PriceResponse,
    PricingTierResponse,
    PromoAppliedResponse,
    PromoValidateRequest,
    PromoValidateResponse,
)
from lao_cinema.errors import InvalidRequestError, NotFoundError
from lao_cinema.services.pricing_resolver import (
    PriceQuote,
    PricingResolver,
    compute_discount,
    normalize_code,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["pricing"])


def _price_response(quote: PriceQuote) -> PriceResponse:
    response = PriceResponse(
        movie_id=quote.movie_id,
        available=quote.available,
        unavailable_reason=quote.unavailable_reason.value if quote.unavailable_reason else None,
    )
    if quote.tier is not None:
        tier = quote.tier
        response.tier = PricingTierResponse(
            id=tier.id,
            name=tier.name,
            display_name_en=tier.display_name_en,
            display_name_lo=tier.display_name_lo,
            price_lak=tier.price_lak,
        )
    if quote.available:
        response.original_amount_lak = quote.original_amount
        response.final_amount_lak = quote.final_amount
    if quote.promo_applied is not None:
        promo = quote.promo_applied
        response.promo_applied = PromoAppliedResponse(
            id=promo.promo_code_id,
            code=promo.code,
            discount_type=promo.discount_type.value,
            discount_value=promo.discount_value,
            discount_amount_lak=promo.discount_amount,
        )
    return response


@router.get("/movies/{movie_id}/pricing", response_model=PriceResponse, response_model_exclude_none=True)
async def get_movie_pricing(
    movie_id: str,
    promo_code: Optional[str] = Query(None, alias="promoCode"),
    pricing: PricingResolver = Depends(get_pricing_resolver),
):
    if pricing.movies.get_by_id(movie_id) is None:
        raise NotFoundError("Movie not found")
    return _price_response(pricing.resolve_price(movie_id, promo_code))


@router.post("/promo-codes/validate", response_model=PromoValidateResponse, response_model_exclude_none=True)
async def validate_promo_code(
    body: PromoValidateRequest,
    pricing: PricingResolver = Depends(get_pricing_resolver),
):
    """
    Validate a promo code against a movie and show the resulting price.

    An unusable code is a 200 with ``valid: false`` and an error reason.
    """
    quote = pricing.resolve_price(body.movie_id)
    if not quote.available:
        raise InvalidRequestError("Movie is not available for rental", error_code="NOT_RENTABLE")

    code = normalize_code(body.code)
    validation = pricing.validate_promo_code(code, body.movie_id)
    if not validation.valid:
        return PromoValidateResponse(valid=False, code=code, error=validation.error.value)

    promo = validation.promo
    discount = compute_discount(promo.discount_type, promo.discount_value, quote.original_amount)
    return PromoValidateResponse(
        valid=True,
        code=promo.code,
        discount_type=promo.discount_type.value,
        discount_value=promo.discount_value,
        discount_amount_lak=discount,
        final_amount_lak=quote.original_amount - discount,
    )
