"""
Manual provider for bank transfers and cash.

Payments stay pending until an admin confirms or rejects them. The
transaction row in the database is the source of truth for status.
"""

from typing import Optional

from lao_cinema.models.base import utcnow
from lao_cinema.models.payment_transaction import PaymentStatus
from lao_cinema.payments.base import (
    CreatePaymentParams,
    PaymentIntent,
    PaymentParams,
    PaymentProvider,
    PaymentStatusResult,
)


class ManualProvider(PaymentProvider):
    """Admin-confirmed payments."""

    name = "manual"
    display_name = "Manual Confirmation"

    def can_handle(self, params: PaymentParams) -> bool:
        return params.amount_lak >= 0

    async def create_payment(self, params: CreatePaymentParams) -> PaymentIntent:
        return PaymentIntent(transaction_id=params.transaction_id, status=PaymentStatus.PENDING)

    async def get_payment_status(self, transaction_id: str) -> PaymentStatusResult:
        return PaymentStatusResult(transaction_id=transaction_id, status=PaymentStatus.PENDING)

    async def confirm_payment(self, transaction_id: str) -> PaymentStatusResult:
        return PaymentStatusResult(
            transaction_id=transaction_id,
            status=PaymentStatus.SUCCESS,
            paid_at=utcnow(),
        )

    async def reject_payment(self, transaction_id: str, reason: Optional[str] = None) -> PaymentStatusResult:
        return PaymentStatusResult(
            transaction_id=transaction_id,
            status=PaymentStatus.FAILED,
            error=reason or "Payment rejected by admin",
        )
