"""
Purchase API routes.

- POST /api/purchases                              start a movie purchase
- POST /api/purchases/{transaction_id}/confirm     admin: settle a manual payment
- POST /api/purchases/{transaction_id}/reject      admin: fail a manual payment
- GET  /api/payment-providers                      providers and availability
"""

import logging

from fastapi import APIRouter, Depends, status

from lao_cinema.api.dependencies import get_purchase_service
from lao_cinema.api.schemas.purchases import (
    PaymentProviderInfo,
    PaymentProvidersResponse,
    PurchaseRequest,
    PurchaseResponse,
    RejectPaymentRequest,
)
from lao_cinema.api.schemas.rentals import rental_response
from lao_cinema.auth.dependencies import require_admin, require_auth_or_anonymous
from lao_cinema.auth.identity import AuthContext
from lao_cinema.payments.registry import PaymentProviderRegistry, get_payment_registry
from lao_cinema.services.purchase_service import PurchaseResult, PurchaseService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["purchases"])


def _purchase_response(result: PurchaseResult) -> PurchaseResponse:
    transaction = result.transaction
    return PurchaseResponse(
        transaction_id=transaction.id,
        status=transaction.status.value,
        provider=transaction.provider,
        amount_lak=transaction.amount_lak,
        original_amount_lak=transaction.original_amount_lak,
        redirect_url=result.intent.redirect_url if result.intent else None,
        rental=rental_response(result.rental.rental, result.rental) if result.rental else None,
    )


@router.post("/purchases", response_model=PurchaseResponse, status_code=status.HTTP_201_CREATED)
async def start_purchase(
    body: PurchaseRequest,
    auth: AuthContext = Depends(require_auth_or_anonymous),
    purchases: PurchaseService = Depends(get_purchase_service),
):
    result = await purchases.start_movie_purchase(
        auth.identity,
        body.movie_id,
        promo_code=body.promo_code,
        provider_name=body.provider,
        return_url=body.return_url,
        cancel_url=body.cancel_url,
    )
    return _purchase_response(result)


@router.post("/purchases/{transaction_id}/confirm", response_model=PurchaseResponse)
async def confirm_purchase(
    transaction_id: str,
    auth: AuthContext = Depends(require_admin),
    purchases: PurchaseService = Depends(get_purchase_service),
):
    result = await purchases.confirm_payment(transaction_id)
    logger.info(
        "Manual payment confirmed",
        extra={"transaction_id": transaction_id, "admin_id": auth.user_id},
    )
    return _purchase_response(result)


@router.post("/purchases/{transaction_id}/reject", response_model=PurchaseResponse)
async def reject_purchase(
    transaction_id: str,
    body: RejectPaymentRequest,
    auth: AuthContext = Depends(require_admin),
    purchases: PurchaseService = Depends(get_purchase_service),
):
    result = await purchases.reject_payment(transaction_id, body.reason)
    logger.info(
        "Manual payment rejected",
        extra={"transaction_id": transaction_id, "admin_id": auth.user_id},
    )
    return _purchase_response(result)


@router.get("/payment-providers", response_model=PaymentProvidersResponse)
async def list_payment_providers(
    registry: PaymentProviderRegistry = Depends(get_payment_registry),
):
    return PaymentProvidersResponse(
        providers=[PaymentProviderInfo(**p) for p in registry.list_providers()]
    )
