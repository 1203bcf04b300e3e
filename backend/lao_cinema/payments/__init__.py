"""
Payment providers and registry.
"""

from lao_cinema.payments.base import (
    CreatePaymentParams,
    PaymentIntent,
    PaymentParams,
    PaymentProvider,
    PaymentProviderError,
    PaymentStatusResult,
    UnsupportedOperationError,
    WebhookResult,
)
from lao_cinema.payments.registry import PaymentProviderRegistry, get_payment_registry

__all__ = [
    "CreatePaymentParams",
    "PaymentIntent",
    "PaymentParams",
    "PaymentProvider",
    "PaymentProviderError",
    "PaymentStatusResult",
    "UnsupportedOperationError",
    "WebhookResult",
    "PaymentProviderRegistry",
    "get_payment_registry",
]
