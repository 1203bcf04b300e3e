"""
Row builders for tests. Each helper inserts and flushes one row.
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from lao_cinema.models import (
    ActiveRentalSlot,
    DiscountType,
    Movie,
    PricingTier,
    PromoCode,
    Rental,
    ShortPack,
    ShortPackItem,
    ShortPackTranslation,
    User,
    UserRole,
    UserSession,
    VideoSource,
    WatchProgress,
    generate_uuid,
)


def make_user(db: Session, role: UserRole = UserRole.USER, email: Optional[str] = None) -> User:
    user = User(email=email or f"{generate_uuid()}@example.com", display_name="Viewer", role=role)
    db.add(user)
    db.flush()
    return user


def make_session(db: Session, user: User, expires_at: datetime, token: Optional[str] = None) -> UserSession:
    user_session = UserSession(user_id=user.id, token=token or generate_uuid(), expires_at=expires_at)
    db.add(user_session)
    db.flush()
    return user_session


def make_tier(db: Session, price_lak: int = 50000, is_active: bool = True, name: Optional[str] = None) -> PricingTier:
    tier = PricingTier(
        name=name or f"tier-{generate_uuid()[:8]}",
        display_name_en="Standard",
        display_name_lo="ມາດຕະຖານ",
        price_lak=price_lak,
        is_active=is_active,
    )
    db.add(tier)
    db.flush()
    return tier


def make_movie(db: Session, title: str = "The Signal", tier: Optional[PricingTier] = None) -> Movie:
    movie = Movie(title=title, pricing_tier_id=tier.id if tier else None)
    db.add(movie)
    db.flush()
    return movie


def make_video_source(db: Session, movie: Movie, url: str = "the-signal") -> VideoSource:
    source = VideoSource(movie_id=movie.id, url=url, quality="1080p", format="hls")
    db.add(source)
    db.flush()
    return source


def make_pack(db: Session, movies: list, slug: Optional[str] = None, title: str = "Shorts Vol. 1") -> ShortPack:
    pack = ShortPack(slug=slug or f"pack-{generate_uuid()[:8]}", is_published=True)
    db.add(pack)
    db.flush()
    db.add(ShortPackTranslation(pack_id=pack.id, language="en", title=title))
    for order, movie in enumerate(movies):
        db.add(ShortPackItem(pack_id=pack.id, movie_id=movie.id, order=order))
    db.flush()
    db.refresh(pack)
    return pack


def make_promo(
    db: Session,
    code: str = "LAUNCH20",
    discount_type: DiscountType = DiscountType.PERCENTAGE,
    discount_value: Optional[int] = 20,
    **kwargs,
) -> PromoCode:
    promo = PromoCode(code=code, discount_type=discount_type, discount_value=discount_value, **kwargs)
    db.add(promo)
    db.flush()
    return promo


def make_rental(
    db: Session,
    purchased_at: datetime,
    user: Optional[User] = None,
    anonymous_id: Optional[str] = None,
    movie: Optional[Movie] = None,
    pack: Optional[ShortPack] = None,
    duration: timedelta = timedelta(hours=24),
    with_slot: bool = False,
) -> Rental:
    """Insert a rental directly, bypassing the service."""
    rental = Rental(
        user_id=user.id if user else None,
        anonymous_id=anonymous_id,
        movie_id=movie.id if movie else None,
        short_pack_id=pack.id if pack else None,
        purchased_at=purchased_at,
        expires_at=purchased_at + duration,
        transaction_id=generate_uuid(),
        amount=0,
    )
    db.add(rental)
    db.flush()
    if with_slot:
        owner_key = f"user:{user.id}" if user else f"anon:{anonymous_id}"
        target_key = f"movie:{movie.id}" if movie else f"pack:{pack.id}"
        db.add(ActiveRentalSlot(
            owner_key=owner_key,
            target_key=target_key,
            rental_id=rental.id,
            expires_at=rental.expires_at,
        ))
        db.flush()
    return rental


def make_progress(
    db: Session,
    movie: Movie,
    last_watched_at: datetime,
    user: Optional[User] = None,
    anonymous_id: Optional[str] = None,
    progress_seconds: int = 60,
) -> WatchProgress:
    row = WatchProgress(
        user_id=user.id if user else None,
        anonymous_id=anonymous_id,
        movie_id=movie.id,
        progress_seconds=progress_seconds,
        last_watched_at=last_watched_at,
    )
    db.add(row)
    db.flush()
    return row
