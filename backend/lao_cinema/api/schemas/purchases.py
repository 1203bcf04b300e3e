"""
Purchase and payment provider schemas.
"""

from typing import List, Optional

from pydantic import Field

from lao_cinema.api.schemas.common import CamelModel
from lao_cinema.api.schemas.rentals import RentalResponse


class PurchaseRequest(CamelModel):
    movie_id: str = Field(..., min_length=1)
    promo_code: Optional[str] = None
    provider: Optional[str] = Field(None, description="Provider name; chosen by amount if omitted")
    return_url: Optional[str] = None
    cancel_url: Optional[str] = None


class PurchaseResponse(CamelModel):
    transaction_id: str
    status: str
    provider: str
    amount_lak: int
    original_amount_lak: int
    redirect_url: Optional[str] = None
    rental: Optional[RentalResponse] = None


class RejectPaymentRequest(CamelModel):
    reason: Optional[str] = None


class PaymentProviderInfo(CamelModel):
    name: str
    display_name: str
    available: bool


class PaymentProvidersResponse(CamelModel):
    providers: List[PaymentProviderInfo]
