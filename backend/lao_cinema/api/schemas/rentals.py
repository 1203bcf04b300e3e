"""
Rental request/response schemas.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from lao_cinema.api.schemas.common import CamelModel
from lao_cinema.models.rental import Rental
from lao_cinema.services.rental_service import PackInfo, RentalResult


class MovieSummary(CamelModel):
    id: str
    title: str


class PackSummary(CamelModel):
    id: str
    slug: Optional[str] = None
    title: Optional[str] = None
    movie_ids: List[str] = Field(default_factory=list)


class RentalResponse(CamelModel):
    id: str
    movie_id: Optional[str] = None
    short_pack_id: Optional[str] = None
    current_short_id: Optional[str] = None
    purchased_at: datetime
    expires_at: datetime
    transaction_id: str
    amount: int
    currency: str
    payment_method: Optional[str] = None
    movie: Optional[MovieSummary] = None
    pack: Optional[PackSummary] = None


class RentalListResponse(CamelModel):
    rentals: List[RentalResponse]
    total: int


class AccessCheckResponse(CamelModel):
    has_access: bool
    access_type: Optional[Literal["direct", "pack"]] = None
    rental: Optional[RentalResponse] = None


class CreateRentalRequest(CamelModel):
    """Body of a rental purchase."""
    transaction_id: str = Field(..., min_length=1, description="Payment transaction reference")
    amount: int = Field(0, ge=0, description="Amount paid")
    currency: str = Field("LAK", min_length=3, max_length=3)
    payment_method: Optional[str] = Field(None, description="Payment method label")


class PackRentalStatusResponse(CamelModel):
    pack: PackSummary
    rental: Optional[RentalResponse] = None
    is_active: bool
    expired: bool


class PositionUpdateRequest(CamelModel):
    current_short_id: str = Field(..., min_length=1)


class MigrateRequest(CamelModel):
    anonymous_id: str = Field(..., min_length=1)


class MigrateResponse(CamelModel):
    success: bool
    migrated_rentals: int
    migrated_watch_progress: int
    message: str


def pack_summary(info: PackInfo) -> PackSummary:
    return PackSummary(id=info.id, slug=info.slug, title=info.title, movie_ids=list(info.movie_ids))


def rental_response(rental: Rental, result: Optional[RentalResult] = None) -> RentalResponse:
    """Serialize a rental, with target details when a RentalResult is given."""
    response = RentalResponse(
        id=rental.id,
        movie_id=rental.movie_id,
        short_pack_id=rental.short_pack_id,
        current_short_id=rental.current_short_id,
        purchased_at=rental.purchased_at,
        expires_at=rental.expires_at,
        transaction_id=rental.transaction_id,
        amount=rental.amount,
        currency=rental.currency,
        payment_method=rental.payment_method,
    )
    if result is not None:
        if result.movie is not None:
            response.movie = MovieSummary(id=result.movie.id, title=result.movie.title)
        if result.pack is not None:
            response.pack = pack_summary(result.pack)
    return response
