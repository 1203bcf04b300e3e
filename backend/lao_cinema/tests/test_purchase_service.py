"""
Tests for PurchaseService: pricing, payment transaction bookkeeping and
rental creation on settlement.
"""

import pytest

from lao_cinema.auth.identity import AnonymousIdentity, UserIdentity
from lao_cinema.errors import (
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    RentalConflictError,
    UnauthenticatedError,
)
from lao_cinema.models import (
    DiscountType,
    PaymentStatus,
    PaymentTransaction,
    PromoCode,
    PromoCodeUse,
    Rental,
)
from lao_cinema.payments.registry import PaymentProviderRegistry
from lao_cinema.services.access_resolver import AccessResolver
from lao_cinema.services.purchase_service import PurchaseService
from lao_cinema.tests.factories import make_movie, make_promo, make_tier, make_user


@pytest.fixture
def service(db_session, access_config, clock):
    return PurchaseService(
        db_session,
        registry=PaymentProviderRegistry(),
        config=access_config,
        clock=clock,
    )


@pytest.fixture
def movie(db_session):
    movie = make_movie(db_session, tier=make_tier(db_session, price_lak=50000))
    db_session.commit()
    return movie


class TestStartPurchase:

    @pytest.mark.asyncio
    async def test_free_promo_grants_rental_immediately(self, db_session, service, movie, clock):
        promo = make_promo(db_session, code="FREEBIE", discount_type=DiscountType.FREE, discount_value=None)
        db_session.commit()
        identity = AnonymousIdentity("device-1")

        result = await service.start_movie_purchase(identity, movie.id, promo_code="freebie")

        assert result.transaction.provider == "free"
        assert result.transaction.status == PaymentStatus.SUCCESS
        assert result.transaction.amount_lak == 0
        assert result.transaction.original_amount_lak == 50000
        assert result.rental is not None
        assert result.rental.rental.transaction_id == result.transaction.id
        assert result.transaction.rental_id == result.rental.rental.id

        assert AccessResolver(db_session, clock=clock).check_movie_access(identity, movie.id).granted
        assert db_session.query(PromoCode).filter_by(id=promo.id).one().uses_count == 1
        assert db_session.query(PromoCodeUse).count() == 1

    @pytest.mark.asyncio
    async def test_paid_rental_stays_pending(self, db_session, service, movie):
        user = make_user(db_session)
        db_session.commit()

        result = await service.start_movie_purchase(UserIdentity(user.id), movie.id)

        assert result.transaction.provider == "manual"
        assert result.transaction.status == PaymentStatus.PENDING
        assert result.transaction.amount_lak == 50000
        assert result.rental is None
        assert db_session.query(Rental).count() == 0

    @pytest.mark.asyncio
    async def test_requires_identity(self, service, movie):
        with pytest.raises(UnauthenticatedError):
            await service.start_movie_purchase(None, movie.id)

    @pytest.mark.asyncio
    async def test_unknown_movie(self, service):
        with pytest.raises(NotFoundError):
            await service.start_movie_purchase(AnonymousIdentity("d"), "missing")

    @pytest.mark.asyncio
    async def test_unpriced_movie(self, db_session, service):
        movie = make_movie(db_session)
        db_session.commit()

        with pytest.raises(InvalidRequestError) as exc_info:
            await service.start_movie_purchase(AnonymousIdentity("d"), movie.id)

        assert exc_info.value.error_code == "NOT_RENTABLE"

    @pytest.mark.asyncio
    async def test_existing_rental_conflicts(self, db_session, service, movie):
        make_promo(db_session, code="FREEBIE", discount_type=DiscountType.FREE, discount_value=None)
        db_session.commit()
        identity = AnonymousIdentity("device-1")
        await service.start_movie_purchase(identity, movie.id, promo_code="FREEBIE")

        with pytest.raises(RentalConflictError):
            await service.start_movie_purchase(identity, movie.id)

    @pytest.mark.asyncio
    async def test_unknown_provider(self, service, movie):
        with pytest.raises(InvalidRequestError) as exc_info:
            await service.start_movie_purchase(AnonymousIdentity("d"), movie.id, provider_name="paypal")

        assert exc_info.value.error_code == "PAYMENT_PROVIDER_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_free_provider_cannot_take_paid_amount(self, service, movie):
        with pytest.raises(InvalidRequestError):
            await service.start_movie_purchase(AnonymousIdentity("d"), movie.id, provider_name="free")


class TestManualSettlement:

    @pytest.mark.asyncio
    async def test_confirm_grants_rental(self, db_session, service, movie, clock):
        identity = AnonymousIdentity("device-1")
        pending = await service.start_movie_purchase(identity, movie.id)

        result = await service.confirm_payment(pending.transaction.id)

        assert result.transaction.status == PaymentStatus.SUCCESS
        assert result.rental.rental.amount == 50000
        assert result.rental.rental.payment_method == "manual"
        assert AccessResolver(db_session, clock=clock).check_movie_access(identity, movie.id).granted

    @pytest.mark.asyncio
    async def test_reject_marks_failed(self, db_session, service, movie):
        pending = await service.start_movie_purchase(AnonymousIdentity("d"), movie.id)

        result = await service.reject_payment(pending.transaction.id, "No transfer received")

        assert result.transaction.status == PaymentStatus.FAILED
        assert result.transaction.provider_response == {"error": "No transfer received"}
        assert db_session.query(Rental).count() == 0

    @pytest.mark.asyncio
    async def test_confirm_twice_conflicts(self, service, movie):
        pending = await service.start_movie_purchase(AnonymousIdentity("d"), movie.id)
        await service.confirm_payment(pending.transaction.id)

        with pytest.raises(ConflictError) as exc_info:
            await service.confirm_payment(pending.transaction.id)

        assert exc_info.value.error_code == "TRANSACTION_NOT_PENDING"

    @pytest.mark.asyncio
    async def test_confirm_unknown_transaction(self, service):
        with pytest.raises(NotFoundError):
            await service.confirm_payment("missing")

    @pytest.mark.asyncio
    async def test_confirm_fails_when_rental_already_held(self, db_session, service, movie):
        identity = AnonymousIdentity("device-1")
        first = await service.start_movie_purchase(identity, movie.id)
        second = await service.start_movie_purchase(identity, movie.id)
        await service.confirm_payment(first.transaction.id)

        with pytest.raises(RentalConflictError):
            await service.confirm_payment(second.transaction.id)

        db_session.refresh(second.transaction)
        assert second.transaction.status == PaymentStatus.FAILED


class TestConcurrentSettlement:
    """Two admin sessions settling the same pending transaction."""

    @pytest.fixture
    def start_pending(self, file_session_factory, access_config, clock):
        """Returns a coroutine function that records one pending manual payment."""

        async def start():
            setup = file_session_factory()
            movie = make_movie(setup, tier=make_tier(setup, price_lak=50000))
            setup.commit()
            service = PurchaseService(
                setup, registry=PaymentProviderRegistry(), config=access_config, clock=clock
            )
            result = await service.start_movie_purchase(AnonymousIdentity("device-1"), movie.id)
            transaction_id = result.transaction.id
            setup.close()
            return transaction_id

        return start

    @pytest.fixture
    def services(self, file_session_factory, access_config, clock):
        sessions = [file_session_factory(), file_session_factory()]
        yield [
            PurchaseService(db, registry=PaymentProviderRegistry(), config=access_config, clock=clock)
            for db in sessions
        ]
        for db in sessions:
            db.close()

    def _stored(self, file_session_factory, transaction_id):
        check = file_session_factory()
        transaction = check.query(PaymentTransaction).filter_by(id=transaction_id).one()
        rentals = check.query(Rental).filter_by(transaction_id=transaction_id).all()
        check.close()
        return transaction, rentals

    @pytest.mark.asyncio
    async def test_overlapping_confirmations_keep_success(self, file_session_factory, start_pending, services):
        pending_id = await start_pending()
        first, second = services
        stale = second.transactions.get_by_id(pending_id)
        assert stale.status == PaymentStatus.PENDING

        await first.confirm_payment(pending_id)
        with pytest.raises(ConflictError) as exc_info:
            await second.confirm_payment(pending_id)

        assert exc_info.value.error_code == "TRANSACTION_NOT_PENDING"
        transaction, rentals = self._stored(file_session_factory, pending_id)
        assert transaction.status == PaymentStatus.SUCCESS
        assert len(rentals) == 1
        assert transaction.rental_id == rentals[0].id

    @pytest.mark.asyncio
    async def test_reject_after_confirm_keeps_success(self, file_session_factory, start_pending, services):
        pending_id = await start_pending()
        first, second = services
        second.transactions.get_by_id(pending_id)

        await first.confirm_payment(pending_id)
        with pytest.raises(ConflictError):
            await second.reject_payment(pending_id, "No transfer received")

        transaction, rentals = self._stored(file_session_factory, pending_id)
        assert transaction.status == PaymentStatus.SUCCESS
        assert len(rentals) == 1

    @pytest.mark.asyncio
    async def test_confirm_after_reject_grants_nothing(self, file_session_factory, start_pending, services):
        pending_id = await start_pending()
        first, second = services
        second.transactions.get_by_id(pending_id)

        await first.reject_payment(pending_id)
        with pytest.raises(ConflictError):
            await second.confirm_payment(pending_id)

        transaction, rentals = self._stored(file_session_factory, pending_id)
        assert transaction.status == PaymentStatus.FAILED
        assert rentals == []
