"""
API schemas package.

Contains Pydantic models for request/response validation.
"""

from lao_cinema.api.schemas.common import CamelModel
from lao_cinema.api.schemas.video_tokens import (
    TokenValidationResponse,
    VideoTokenRequest,
    VideoTokenResponse,
)
from lao_cinema.api.schemas.rentals import (
    AccessCheckResponse,
    CreateRentalRequest,
    MigrateRequest,
    MigrateResponse,
    PackRentalStatusResponse,
    PositionUpdateRequest,
    RentalListResponse,
    RentalResponse,
)
from lao_cinema.api.schemas.pricing import (
    PriceResponse,
    PromoValidateRequest,
    PromoValidateResponse,
)
from lao_cinema.api.schemas.purchases import (
    PaymentProvidersResponse,
    PurchaseRequest,
    PurchaseResponse,
    RejectPaymentRequest,
)
