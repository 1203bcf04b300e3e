"""
Purchase flow for movie rentals.

1. Resolve the price (tier plus optional promo code).
2. Record a pending payment transaction.
3. Ask the payment provider for a payment intent.
4. If the provider settles immediately (free rentals), or later when an
   admin confirms a manual payment, create the rental with the
   transaction id and count the promo code use.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from lao_cinema.auth.identity import AnonymousIdentity, Identity, UserIdentity
from lao_cinema.config.settings import AccessConfig
from lao_cinema.errors import (
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    RentalConflictError,
    UnauthenticatedError,
)
from lao_cinema.models.base import generate_uuid, utcnow
from lao_cinema.models.payment_transaction import PaymentStatus, PaymentTransaction
from lao_cinema.payments.base import CreatePaymentParams, PaymentIntent, PaymentProvider
from lao_cinema.payments.providers.manual import ManualProvider
from lao_cinema.payments.registry import PaymentProviderRegistry, get_payment_registry
from lao_cinema.repositories.movie_repo import MovieRepository
from lao_cinema.repositories.payment_repo import PaymentTransactionRepository
from lao_cinema.services.pricing_resolver import PricingResolver
from lao_cinema.services.rental_service import RentalResult, RentalService
from lao_cinema.targets import MovieTarget

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseResult:
    transaction: PaymentTransaction
    intent: Optional[PaymentIntent] = None
    rental: Optional[RentalResult] = None


def _not_pending(transaction: PaymentTransaction) -> ConflictError:
    return ConflictError(
        f"Payment transaction is already {transaction.status.value}",
        error_code="TRANSACTION_NOT_PENDING",
    )


def _identity_of(transaction: PaymentTransaction) -> Identity:
    if transaction.user_id:
        return UserIdentity(transaction.user_id)
    return AnonymousIdentity(transaction.anonymous_id)


class PurchaseService:
    """Coordinates pricing, payment providers and rental creation."""

    def __init__(
        self,
        db_session: Session,
        registry: Optional[PaymentProviderRegistry] = None,
        config: Optional[AccessConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db_session
        self.registry = registry or get_payment_registry()
        self.movies = MovieRepository(db_session)
        self.transactions = PaymentTransactionRepository(db_session)
        self.pricing = PricingResolver(db_session, clock=clock)
        self.rentals = RentalService(db_session, config=config, clock=clock)
        self._clock = clock or utcnow

    async def start_movie_purchase(
        self,
        identity: Optional[Identity],
        movie_id: str,
        promo_code: Optional[str] = None,
        provider_name: Optional[str] = None,
        return_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> PurchaseResult:
        """
        Begin paying for a movie rental.

        Raises:
            UnauthenticatedError: No identity
            NotFoundError: Movie does not exist
            InvalidRequestError: Movie not rentable, or no usable provider
            RentalConflictError: The identity already holds an active rental
        """
        if identity is None:
            raise UnauthenticatedError("An identity is required to purchase")

        movie = self.movies.get_by_id(movie_id)
        if movie is None:
            raise NotFoundError(f"Movie {movie_id} not found")

        quote = self.pricing.resolve_price(movie_id, promo_code)
        if not quote.available:
            raise InvalidRequestError(
                "Movie is not available for rental",
                error_code="NOT_RENTABLE",
                details={"reason": quote.unavailable_reason.value},
            )

        existing = self.rentals.rentals.find_active(identity, MovieTarget(movie_id), self._clock())
        if existing is not None:
            raise RentalConflictError(existing_rental_id=existing.id)

        provider = self._select_provider(provider_name, quote.final_amount)
        params = CreatePaymentParams(
            amount_lak=quote.final_amount,
            movie_id=movie_id,
            movie_title=movie.title,
            user_id=identity.user_id if isinstance(identity, UserIdentity) else None,
            anonymous_id=identity.anonymous_id if isinstance(identity, AnonymousIdentity) else None,
            transaction_id=generate_uuid(),
            return_url=return_url,
            cancel_url=cancel_url,
            promo_code_id=quote.promo_applied.promo_code_id if quote.promo_applied else None,
            original_amount_lak=quote.original_amount,
        )
        if not provider.can_handle(params):
            raise InvalidRequestError(
                f"Payment provider '{provider.name}' cannot handle this payment",
                error_code="PAYMENT_PROVIDER_UNAVAILABLE",
            )

        transaction = self.transactions.create(
            PaymentTransaction(
                id=params.transaction_id,
                movie_id=movie_id,
                user_id=params.user_id,
                anonymous_id=params.anonymous_id,
                provider=provider.name,
                amount_lak=params.amount_lak,
                original_amount_lak=quote.original_amount,
                promo_code_id=params.promo_code_id,
                status=PaymentStatus.PENDING,
            )
        )

        intent = await provider.create_payment(params)
        if intent.status == PaymentStatus.SUCCESS:
            rental = self._complete(transaction, provider_response={"immediate_success": True})
            return PurchaseResult(transaction=transaction, intent=intent, rental=rental)

        if intent.provider_transaction_id:
            transaction.provider_transaction_id = intent.provider_transaction_id
            self.db.commit()
        return PurchaseResult(transaction=transaction, intent=intent)

    async def confirm_payment(self, transaction_id: str) -> PurchaseResult:
        """
        Settle a pending manual payment and grant the rental.

        Raises:
            NotFoundError: Unknown transaction
            ConflictError: Transaction is not pending
        """
        transaction = self._get_pending(transaction_id)
        provider = self._manual_provider_for(transaction)
        result = await provider.confirm_payment(transaction.id)
        rental = self._complete(
            transaction,
            provider_response={"confirmed_at": result.paid_at.isoformat() if result.paid_at else None},
        )
        return PurchaseResult(transaction=transaction, rental=rental)

    async def reject_payment(self, transaction_id: str, reason: Optional[str] = None) -> PurchaseResult:
        """
        Mark a pending manual payment as failed.

        Raises:
            NotFoundError: Unknown transaction
            ConflictError: Transaction is not pending
        """
        transaction = self._get_pending(transaction_id)
        provider = self._manual_provider_for(transaction)
        result = await provider.reject_payment(transaction.id, reason)
        self._settle(transaction, PaymentStatus.FAILED, provider_response={"error": result.error})
        return PurchaseResult(transaction=transaction)

    def _select_provider(self, provider_name: Optional[str], amount_lak: int) -> PaymentProvider:
        if provider_name:
            provider = self.registry.get_provider(provider_name)
        else:
            provider = self.registry.get_available_provider(amount_lak)
        if provider is None or not provider.is_available():
            raise InvalidRequestError(
                "No payment provider available",
                error_code="PAYMENT_PROVIDER_UNAVAILABLE",
            )
        return provider

    def _get_pending(self, transaction_id: str) -> PaymentTransaction:
        transaction = self.transactions.get_by_id(transaction_id)
        if transaction is None:
            raise NotFoundError(f"Payment transaction {transaction_id} not found")
        if transaction.status != PaymentStatus.PENDING:
            raise _not_pending(transaction)
        return transaction

    def _settle(
        self,
        transaction: PaymentTransaction,
        status: PaymentStatus,
        provider_response: Optional[dict] = None,
    ) -> None:
        """Move a pending transaction to ``status``, or fail if another call settled it first."""
        if not self.transactions.transition(
            transaction,
            PaymentStatus.PENDING,
            status,
            provider_response=provider_response,
        ):
            raise _not_pending(transaction)

    def _manual_provider_for(self, transaction: PaymentTransaction) -> ManualProvider:
        provider = self.registry.get_provider(transaction.provider)
        if not isinstance(provider, ManualProvider):
            raise InvalidRequestError(
                f"Payments via '{transaction.provider}' cannot be confirmed manually",
                error_code="NOT_MANUAL_PAYMENT",
            )
        return provider

    def _complete(self, transaction: PaymentTransaction, provider_response: Optional[dict] = None) -> RentalResult:
        """
        Claim the pending transaction as paid, then grant the rental.

        Only the call that moves the transaction out of ``pending`` creates a
        rental. If the rental cannot be granted, that same call marks the
        transaction failed.
        """
        self._settle(transaction, PaymentStatus.SUCCESS, provider_response=provider_response)

        identity = _identity_of(transaction)
        try:
            result = self.rentals.create_rental(
                identity,
                MovieTarget(transaction.movie_id),
                transaction_id=transaction.id,
                payment_method=transaction.provider,
                amount=transaction.amount_lak,
            )
        except (ConflictError, InvalidRequestError, NotFoundError):
            self.transactions.transition(transaction, PaymentStatus.SUCCESS, PaymentStatus.FAILED)
            raise

        if transaction.promo_code_id:
            self.pricing.record_use(transaction.promo_code_id, result.rental, identity)

        self.transactions.transition(
            transaction,
            PaymentStatus.SUCCESS,
            PaymentStatus.SUCCESS,
            rental_id=result.rental.id,
        )
        logger.info(
            "Purchase completed",
            extra={"transaction_id": transaction.id, "rental_id": result.rental.id},
        )
        return result
