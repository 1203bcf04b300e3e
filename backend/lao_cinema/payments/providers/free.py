"""
Free provider for rentals whose price was discounted to zero.
"""

from lao_cinema.models.base import utcnow
from lao_cinema.models.payment_transaction import PaymentStatus
from lao_cinema.payments.base import (
    CreatePaymentParams,
    PaymentIntent,
    PaymentParams,
    PaymentProvider,
    PaymentProviderError,
    PaymentStatusResult,
)


class FreeProvider(PaymentProvider):
    """Settles zero-amount payments immediately."""

    name = "free"
    display_name = "Free (Promotional)"

    def can_handle(self, params: PaymentParams) -> bool:
        return params.amount_lak == 0

    async def create_payment(self, params: CreatePaymentParams) -> PaymentIntent:
        if params.amount_lak != 0:
            raise PaymentProviderError("FreeProvider can only handle zero-amount payments")
        return PaymentIntent(
            transaction_id=params.transaction_id,
            status=PaymentStatus.SUCCESS,
            immediate_success=True,
        )

    async def get_payment_status(self, transaction_id: str) -> PaymentStatusResult:
        return PaymentStatusResult(
            transaction_id=transaction_id,
            status=PaymentStatus.SUCCESS,
            paid_at=utcnow(),
        )
