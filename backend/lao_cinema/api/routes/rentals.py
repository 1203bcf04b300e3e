"""
Rental API routes.

Endpoints accept a signed-in user or an anonymous viewer unless noted:
- GET   /api/rentals                     list the caller's rentals
- GET   /api/rentals/access/{movie_id}   does the caller have access?
- GET   /api/rentals/packs/{pack_id}     caller's rental of a pack
- POST  /api/rentals/migrate             move guest rentals to the account (signed-in)
- POST  /api/rentals/{movie_id}          rent a movie
- POST  /api/rentals/packs/{pack_id}     rent a short pack
- PATCH /api/rentals/{rental_id}/position  bookmark the current short of a pack rental
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from lao_cinema.api.dependencies import get_access_resolver, get_rental_service
from lao_cinema.api.schemas.rentals import (
    AccessCheckResponse,
    CreateRentalRequest,
    MigrateRequest,
    MigrateResponse,
    PackRentalStatusResponse,
    PositionUpdateRequest,
    RentalListResponse,
    RentalResponse,
    pack_summary,
    rental_response,
)
from lao_cinema.auth.dependencies import get_auth_context, require_auth, require_auth_or_anonymous
from lao_cinema.auth.identity import AuthContext
from lao_cinema.services.access_resolver import AccessResolver
from lao_cinema.services.rental_service import RentalService
from lao_cinema.targets import MovieTarget, PackTarget

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rentals", tags=["rentals"])


@router.get("", response_model=RentalListResponse)
async def list_rentals(
    include_recent: bool = Query(False, alias="includeRecent"),
    include_all: bool = Query(False, alias="includeAll"),
    auth: AuthContext = Depends(require_auth_or_anonymous),
    rentals: RentalService = Depends(get_rental_service),
):
    results = rentals.list_rentals(auth.identity, include_recent=include_recent, include_all=include_all)
    return RentalListResponse(
        rentals=[rental_response(r.rental, r) for r in results],
        total=len(results),
    )


@router.get("/access/{movie_id}", response_model=AccessCheckResponse, response_model_exclude_none=True)
async def check_access(
    movie_id: str,
    auth: AuthContext = Depends(get_auth_context),
    access: AccessResolver = Depends(get_access_resolver),
):
    """Access check for a movie; callers without any identity simply have no access."""
    decision = access.check_movie_access(auth.identity, movie_id)
    return AccessCheckResponse(
        has_access=decision.granted,
        access_type=decision.access_type,
        rental=rental_response(decision.rental) if decision.rental else None,
    )


@router.get("/packs/{pack_id}", response_model=PackRentalStatusResponse)
async def get_pack_rental(
    pack_id: str,
    auth: AuthContext = Depends(require_auth_or_anonymous),
    rentals: RentalService = Depends(get_rental_service),
):
    pack_status = rentals.get_pack_rental(auth.identity, pack_id)
    return PackRentalStatusResponse(
        pack=pack_summary(pack_status.pack),
        rental=rental_response(pack_status.rental) if pack_status.rental else None,
        is_active=pack_status.active,
        expired=pack_status.expired,
    )


@router.post("/migrate", response_model=MigrateResponse)
async def migrate_anonymous_rentals(
    body: MigrateRequest,
    auth: AuthContext = Depends(require_auth),
    rentals: RentalService = Depends(get_rental_service),
):
    result = rentals.migrate_anonymous_data(body.anonymous_id, auth.user_id)
    return MigrateResponse(
        success=True,
        migrated_rentals=result.rentals,
        migrated_watch_progress=result.watch_progress,
        message=f"Migrated {result.rentals} rental(s) to your account",
    )


@router.post("/packs/{pack_id}", response_model=RentalResponse, status_code=status.HTTP_201_CREATED)
async def rent_pack(
    pack_id: str,
    body: CreateRentalRequest,
    auth: AuthContext = Depends(require_auth_or_anonymous),
    rentals: RentalService = Depends(get_rental_service),
):
    result = rentals.create_rental(
        auth.identity,
        PackTarget(pack_id),
        transaction_id=body.transaction_id,
        payment_method=body.payment_method,
        amount=body.amount,
        currency=body.currency,
    )
    return rental_response(result.rental, result)


@router.post("/{movie_id}", response_model=RentalResponse, status_code=status.HTTP_201_CREATED)
async def rent_movie(
    movie_id: str,
    body: CreateRentalRequest,
    auth: AuthContext = Depends(require_auth_or_anonymous),
    rentals: RentalService = Depends(get_rental_service),
):
    """
    Record a rental whose payment was settled before this call.

    The transaction id, amount and payment method are stored as sent and
    not checked against the movie's price. Payments that still need pricing
    and settlement go through ``POST /api/purchases``.
    """
    result = rentals.create_rental(
        auth.identity,
        MovieTarget(movie_id),
        transaction_id=body.transaction_id,
        payment_method=body.payment_method,
        amount=body.amount,
        currency=body.currency,
    )
    return rental_response(result.rental, result)


@router.patch("/{rental_id}/position", response_model=RentalResponse)
async def update_pack_position(
    rental_id: str,
    body: PositionUpdateRequest,
    auth: AuthContext = Depends(require_auth_or_anonymous),
    rentals: RentalService = Depends(get_rental_service),
):
    rental = rentals.update_pack_position(auth.identity, rental_id, body.current_short_id)
    return rental_response(rental)
