"""
Pricing and promo code schemas.
"""

from typing import Optional

from pydantic import Field

from lao_cinema.api.schemas.common import CamelModel


class PricingTierResponse(CamelModel):
    id: str
    name: str
    display_name_en: str
    display_name_lo: Optional[str] = None
    price_lak: int


class PromoAppliedResponse(CamelModel):
    id: str
    code: str
    discount_type: str
    discount_value: Optional[int] = None
    discount_amount_lak: int


class PriceResponse(CamelModel):
    movie_id: str
    available: bool
    tier: Optional[PricingTierResponse] = None
    original_amount_lak: Optional[int] = None
    final_amount_lak: Optional[int] = None
    promo_applied: Optional[PromoAppliedResponse] = None
    unavailable_reason: Optional[str] = None


class PromoValidateRequest(CamelModel):
    code: str = Field(..., min_length=1, description="Promo code, any case")
    movie_id: str = Field(..., min_length=1)


class PromoValidateResponse(CamelModel):
    valid: bool
    code: str
    discount_type: Optional[str] = None
    discount_value: Optional[int] = None
    discount_amount_lak: Optional[int] = None
    final_amount_lak: Optional[int] = None
    error: Optional[str] = None
