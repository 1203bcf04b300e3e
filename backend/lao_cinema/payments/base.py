"""
Payment provider abstraction.

A provider turns a priced rental into a payment intent. Providers that can
settle immediately (free rentals) return a successful intent; others leave
the transaction pending until it is confirmed out of band.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from lao_cinema.models.payment_transaction import PaymentStatus

logger = logging.getLogger(__name__)


class PaymentProviderError(Exception):
    """Base exception for payment provider errors."""
    pass


class UnsupportedOperationError(PaymentProviderError):
    """The provider does not implement this operation."""
    pass


@dataclass
class PaymentParams:
    """What is being paid for."""
    amount_lak: int
    movie_id: str
    movie_title: str
    user_id: Optional[str] = None
    anonymous_id: Optional[str] = None


@dataclass
class CreatePaymentParams(PaymentParams):
    """Parameters for creating a payment intent."""
    transaction_id: str = ""
    return_url: Optional[str] = None
    cancel_url: Optional[str] = None
    promo_code_id: Optional[str] = None
    original_amount_lak: Optional[int] = None


@dataclass
class PaymentIntent:
    transaction_id: str
    status: PaymentStatus
    provider_transaction_id: Optional[str] = None
    redirect_url: Optional[str] = None
    immediate_success: bool = False
    expires_at: Optional[datetime] = None


@dataclass
class PaymentStatusResult:
    transaction_id: str
    status: PaymentStatus
    provider_transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = None
    error: Optional[str] = None


@dataclass
class WebhookResult:
    transaction_id: str
    status: PaymentStatus
    should_create_rental: bool
    provider_transaction_id: Optional[str] = None
    error: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict)


class PaymentProvider(ABC):
    """Abstract base class for payment providers."""

    name: str = ""
    display_name: str = ""

    def is_available(self) -> bool:
        """Whether the provider is configured and usable."""
        return True

    @abstractmethod
    def can_handle(self, params: PaymentParams) -> bool:
        """Whether the provider accepts a payment with these parameters."""
        pass

    @abstractmethod
    async def create_payment(self, params: CreatePaymentParams) -> PaymentIntent:
        """
        Create a payment intent.

        Args:
            params: Payment parameters including our transaction id

        Returns:
            PaymentIntent; status SUCCESS means the rental may be granted now
        """
        pass

    @abstractmethod
    async def get_payment_status(self, transaction_id: str) -> PaymentStatusResult:
        pass

    async def handle_webhook(self, payload: Any, headers: dict[str, str]) -> WebhookResult:
        """Process a provider callback. Providers without callbacks refuse."""
        raise UnsupportedOperationError(f"{self.name} provider does not accept webhooks")

    async def cancel_payment(self, transaction_id: str) -> None:
        raise UnsupportedOperationError(f"{self.name} provider does not support cancellation")
