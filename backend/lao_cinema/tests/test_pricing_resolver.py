"""
Tests for PricingResolver: price resolution, promo validation, discount
arithmetic and promo use counting.
"""

from datetime import timedelta

import pytest

from lao_cinema.auth.identity import AnonymousIdentity, UserIdentity
from lao_cinema.models import DiscountType, PromoCode, PromoCodeUse
from lao_cinema.services.pricing_resolver import (
    PricingResolver,
    PromoError,
    UnavailableReason,
    compute_discount,
)
from lao_cinema.tests.factories import make_movie, make_promo, make_tier, make_user


@pytest.fixture
def resolver(db_session, clock):
    return PricingResolver(db_session, clock=clock)


@pytest.fixture
def movie(db_session):
    return make_movie(db_session, tier=make_tier(db_session, price_lak=50000))


class TestComputeDiscount:

    def test_percentage(self):
        assert compute_discount(DiscountType.PERCENTAGE, 20, 50000) == 10000

    def test_percentage_rounds_half_up(self):
        assert compute_discount(DiscountType.PERCENTAGE, 50, 15001) == 7501
        assert compute_discount(DiscountType.PERCENTAGE, 33, 10000) == 3300
        assert compute_discount(DiscountType.PERCENTAGE, 15, 10) == 2

    def test_fixed_never_exceeds_original(self):
        assert compute_discount(DiscountType.FIXED, 60000, 50000) == 50000
        assert compute_discount(DiscountType.FIXED, 5000, 50000) == 5000

    def test_free_is_full_amount(self):
        assert compute_discount(DiscountType.FREE, None, 50000) == 50000
        assert compute_discount(DiscountType.FREE, None, 0) == 0

    @pytest.mark.parametrize(
        "discount_type,value",
        [
            (DiscountType.PERCENTAGE, None),
            (DiscountType.PERCENTAGE, 0),
            (DiscountType.PERCENTAGE, 101),
            (DiscountType.FIXED, None),
            (DiscountType.FIXED, -5),
        ],
    )
    def test_misconfigured_values(self, discount_type, value):
        with pytest.raises(ValueError):
            compute_discount(discount_type, value, 50000)


class TestResolvePrice:

    def test_tier_price(self, resolver, movie):
        quote = resolver.resolve_price(movie.id)

        assert quote.available
        assert quote.original_amount == 50000
        assert quote.final_amount == 50000
        assert quote.promo_applied is None
        assert quote.tier.price_lak == 50000

    def test_movie_without_tier(self, db_session, resolver):
        movie = make_movie(db_session)

        quote = resolver.resolve_price(movie.id)

        assert not quote.available
        assert quote.unavailable_reason == UnavailableReason.NO_PRICING

    def test_unknown_movie(self, resolver):
        quote = resolver.resolve_price("missing")

        assert not quote.available
        assert quote.unavailable_reason == UnavailableReason.NO_PRICING

    def test_inactive_tier(self, db_session, resolver):
        movie = make_movie(db_session, tier=make_tier(db_session, is_active=False))

        quote = resolver.resolve_price(movie.id)

        assert not quote.available
        assert quote.unavailable_reason == UnavailableReason.INACTIVE_TIER

    def test_percentage_promo(self, db_session, resolver, movie):
        make_promo(db_session, code="LAUNCH20", discount_type=DiscountType.PERCENTAGE, discount_value=20)

        quote = resolver.resolve_price(movie.id, "launch20")

        assert quote.final_amount == 40000
        assert quote.promo_applied.discount_amount == 10000
        assert quote.promo_applied.code == "LAUNCH20"

    def test_fixed_promo_floors_at_zero(self, db_session, resolver, movie):
        make_promo(db_session, code="BIG", discount_type=DiscountType.FIXED, discount_value=60000)

        quote = resolver.resolve_price(movie.id, "BIG")

        assert quote.final_amount == 0
        assert quote.promo_applied.discount_amount == 50000

    def test_free_promo(self, db_session, resolver, movie):
        make_promo(db_session, code="FREEBIE", discount_type=DiscountType.FREE, discount_value=None)

        quote = resolver.resolve_price(movie.id, "FREEBIE")

        assert quote.final_amount == 0

    def test_invalid_promo_is_ignored(self, resolver, movie):
        quote = resolver.resolve_price(movie.id, "NOPE")

        assert quote.available
        assert quote.final_amount == 50000
        assert quote.promo_applied is None

    def test_resolution_does_not_consume_uses(self, db_session, resolver, movie):
        promo = make_promo(db_session, code="ONCE", max_uses=1)

        resolver.resolve_price(movie.id, "ONCE")
        resolver.resolve_price(movie.id, "ONCE")

        db_session.refresh(promo)
        assert promo.uses_count == 0


class TestValidatePromoCode:

    def test_valid(self, db_session, resolver, movie):
        make_promo(db_session, code="LAUNCH20")

        result = resolver.validate_promo_code("  launch20 ", movie.id)

        assert result.valid
        assert result.error is None

    def test_not_found(self, resolver, movie):
        assert resolver.validate_promo_code("MISSING", movie.id).error == PromoError.NOT_FOUND

    def test_inactive_is_not_found(self, db_session, resolver, movie):
        make_promo(db_session, code="OFF", is_active=False)

        assert resolver.validate_promo_code("OFF", movie.id).error == PromoError.NOT_FOUND

    def test_not_yet_valid(self, db_session, resolver, movie, clock):
        make_promo(db_session, code="SOON", valid_from=clock() + timedelta(days=1))

        assert resolver.validate_promo_code("SOON", movie.id).error == PromoError.NOT_YET_VALID

    def test_expired(self, db_session, resolver, movie, clock):
        make_promo(db_session, code="PAST", valid_to=clock() - timedelta(seconds=1))

        assert resolver.validate_promo_code("PAST", movie.id).error == PromoError.EXPIRED

    def test_wrong_movie(self, db_session, resolver, movie):
        other = make_movie(db_session)
        make_promo(db_session, code="ONLYOTHER", movie_id=other.id)

        assert resolver.validate_promo_code("ONLYOTHER", movie.id).error == PromoError.WRONG_MOVIE
        assert resolver.validate_promo_code("ONLYOTHER", other.id).valid

    def test_use_cap(self, db_session, resolver, movie):
        make_promo(db_session, code="FULL", max_uses=3, uses_count=3)

        assert resolver.validate_promo_code("FULL", movie.id).error == PromoError.USE_CAP_EXCEEDED

    def test_misconfigured(self, db_session, resolver, movie):
        make_promo(db_session, code="BROKEN", discount_type=DiscountType.PERCENTAGE, discount_value=None)

        assert resolver.validate_promo_code("BROKEN", movie.id).error == PromoError.MISCONFIGURED


class TestRecordUse:

    def test_increments_and_audits(self, db_session, resolver, movie):
        promo = make_promo(db_session, code="COUNT", max_uses=2)
        user = make_user(db_session)
        db_session.commit()

        assert resolver.record_use(promo.id, None, UserIdentity(user.id))

        db_session.refresh(promo)
        assert promo.uses_count == 1
        use = db_session.query(PromoCodeUse).one()
        assert use.user_id == user.id
        assert use.anonymous_id is None

    def test_never_exceeds_cap(self, db_session, resolver, movie):
        promo = make_promo(db_session, code="TWICE", max_uses=2)
        db_session.commit()
        identity = AnonymousIdentity("device-1")

        results = [resolver.record_use(promo.id, None, identity) for _ in range(3)]

        assert results == [True, True, False]
        assert db_session.query(PromoCode).filter_by(id=promo.id).one().uses_count == 2
        assert db_session.query(PromoCodeUse).count() == 2

    def test_unlimited(self, db_session, resolver, movie):
        promo = make_promo(db_session, code="ALWAYS", max_uses=None)
        db_session.commit()

        for _ in range(5):
            assert resolver.record_use(promo.id, None, AnonymousIdentity("d"))

        db_session.refresh(promo)
        assert promo.uses_count == 5
