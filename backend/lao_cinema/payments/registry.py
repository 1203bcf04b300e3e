"""
Payment provider registry.

Providers are looked up by name, or chosen by amount: zero-amount payments
go to the free provider, everything else to the first available paid
provider, falling back to manual confirmation.
"""

import logging
from typing import Iterable, List, Optional

from lao_cinema.payments.base import PaymentProvider
from lao_cinema.payments.providers import FreeProvider, ManualProvider

logger = logging.getLogger(__name__)


class PaymentProviderRegistry:

    def __init__(self, providers: Optional[Iterable[PaymentProvider]] = None):
        if providers is None:
            providers = [FreeProvider(), ManualProvider()]
        self._providers: List[PaymentProvider] = list(providers)

    def get_provider(self, name: str) -> Optional[PaymentProvider]:
        for provider in self._providers:
            if provider.name == name:
                return provider
        return None

    def get_available_provider(self, amount_lak: int) -> Optional[PaymentProvider]:
        """Best provider for a payment of ``amount_lak``."""
        if amount_lak == 0:
            free = self.get_provider(FreeProvider.name)
            if free is not None:
                return free

        for provider in self._providers:
            if provider.name in (FreeProvider.name, ManualProvider.name):
                continue
            if provider.is_available():
                return provider

        manual = self.get_provider(ManualProvider.name)
        if manual is not None and manual.is_available():
            return manual
        logger.warning("No payment provider available", extra={"amount_lak": amount_lak})
        return None

    def list_providers(self) -> List[dict]:
        return [
            {
                "name": p.name,
                "display_name": p.display_name,
                "available": p.is_available(),
            }
            for p in self._providers
        ]


_registry: Optional[PaymentProviderRegistry] = None


def get_payment_registry() -> PaymentProviderRegistry:
    """Process-wide registry with the built-in providers."""
    global _registry
    if _registry is None:
        _registry = PaymentProviderRegistry()
    return _registry
