"""
Rental creation and management.

All writes to rentals go through this service:
- create_rental: grant a movie or pack rental after payment
- update_pack_position: bookmark the current short within a pack rental
- migrate_anonymous_data: hand a guest's rentals over to their new account

Creating a rental is rejected with RentalConflictError while the owner
still holds an active rental of the same target. The check is enforced by
the active-rental slot in RentalRepository, so two concurrent purchases
cannot both succeed.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from lao_cinema.auth.identity import AnonymousIdentity, Identity, UserIdentity
from lao_cinema.config.settings import AccessConfig, get_access_config
from lao_cinema.errors import (
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    RentalConflictError,
    UnauthenticatedError,
)
from lao_cinema.models.base import generate_uuid, utcnow
from lao_cinema.models.rental import Rental
from lao_cinema.models.short_pack import ShortPack
from lao_cinema.repositories.movie_repo import MovieRepository
from lao_cinema.repositories.pack_repo import PackRepository
from lao_cinema.repositories.rental_repo import RentalRepository
from lao_cinema.repositories.watch_progress_repo import WatchProgressRepository
from lao_cinema.targets import MovieTarget, PackTarget, RentalTarget

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "LAK"


@dataclass(frozen=True)
class MovieInfo:
    id: str
    title: str


@dataclass(frozen=True)
class PackInfo:
    id: str
    slug: Optional[str]
    title: Optional[str]
    movie_ids: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RentalResult:
    """A rental plus the target details callers render alongside it."""
    rental: Rental
    movie: Optional[MovieInfo] = None
    pack: Optional[PackInfo] = None


@dataclass(frozen=True)
class PackRentalStatus:
    """Latest rental of a pack by an owner. ``rental`` is None if never rented."""
    pack: PackInfo
    rental: Optional[Rental]
    active: bool

    @property
    def expired(self) -> bool:
        return self.rental is not None and not self.active


@dataclass(frozen=True)
class MigrationResult:
    rentals: int
    watch_progress: int
    slots: int


def pack_info(pack: ShortPack) -> PackInfo:
    titles = pack.titles
    title = titles.get("en") or next(iter(titles.values()), None)
    return PackInfo(id=pack.id, slug=pack.slug, title=title, movie_ids=pack.movie_ids)


def _is_owner(rental: Rental, identity: Identity) -> bool:
    if isinstance(identity, UserIdentity):
        return rental.user_id == identity.user_id
    return rental.anonymous_id == identity.anonymous_id


class RentalService:
    """Service for creating and managing rentals."""

    def __init__(
        self,
        db_session: Session,
        config: Optional[AccessConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db_session
        self.config = config or get_access_config()
        self.rentals = RentalRepository(db_session)
        self.movies = MovieRepository(db_session)
        self.packs = PackRepository(db_session)
        self.watch_progress = WatchProgressRepository(db_session)
        self._clock = clock or utcnow

    def create_rental(
        self,
        identity: Optional[Identity],
        target: RentalTarget,
        transaction_id: str,
        payment_method: Optional[str] = None,
        amount: int = 0,
        currency: str = DEFAULT_CURRENCY,
    ) -> RentalResult:
        """
        Grant a rental of a movie or pack.

        Raises:
            UnauthenticatedError: No identity
            InvalidRequestError: Bad input, or a movie without pricing rented for a non-zero amount
            NotFoundError: Movie or pack does not exist
            RentalConflictError: Owner already holds an active rental of the target
            DuplicateTransactionError: transaction_id already recorded
        """
        if identity is None:
            raise UnauthenticatedError("An identity is required to rent")
        if not transaction_id or not transaction_id.strip():
            raise InvalidRequestError("transactionId is required")
        if amount < 0:
            raise InvalidRequestError("amount must not be negative")

        movie_info = None
        pack = None
        if isinstance(target, MovieTarget):
            movie = self.movies.get_by_id(target.movie_id)
            if movie is None:
                raise NotFoundError(f"Movie {target.movie_id} not found")
            if movie.pricing_tier_id is None and amount > 0:
                raise InvalidRequestError("Movie is not available for rental", error_code="NOT_RENTABLE")
            movie_info = MovieInfo(id=movie.id, title=movie.title)
        else:
            pack_row = self.packs.get_by_id(target.pack_id)
            if pack_row is None:
                raise NotFoundError(f"Short pack {target.pack_id} not found")
            pack = pack_info(pack_row)

        now = self._clock()
        existing = self.rentals.find_active(identity, target, now)
        if existing is not None:
            raise RentalConflictError(existing_rental_id=existing.id)

        rental = Rental(
            id=generate_uuid(),
            user_id=identity.user_id if isinstance(identity, UserIdentity) else None,
            anonymous_id=identity.anonymous_id if isinstance(identity, AnonymousIdentity) else None,
            movie_id=target.movie_id if isinstance(target, MovieTarget) else None,
            short_pack_id=target.pack_id if isinstance(target, PackTarget) else None,
            purchased_at=now,
            expires_at=now + self.config.rental_duration,
            transaction_id=transaction_id.strip(),
            amount=amount,
            currency=currency,
            payment_method=payment_method,
            created_at=now,
        )
        self.rentals.create_with_slot(rental, identity.key, target.key, now)

        return RentalResult(rental=rental, movie=movie_info, pack=pack)

    def get_pack_rental(self, identity: Identity, pack_id: str) -> PackRentalStatus:
        """
        Latest rental of a pack by the identity, active or expired.

        Raises:
            NotFoundError: Pack does not exist
        """
        pack = self.packs.get_by_id(pack_id)
        if pack is None:
            raise NotFoundError(f"Short pack {pack_id} not found")

        target = PackTarget(pack_id)
        now = self._clock()
        rental = self.rentals.find_active(identity, target, now)
        if rental is None:
            rental = self.rentals.find_latest(identity, target)
        active = rental is not None and rental.is_active(now)
        return PackRentalStatus(pack=pack_info(pack), rental=rental, active=active)

    def update_pack_position(self, identity: Identity, rental_id: str, current_short_id: str) -> Rental:
        """
        Record which short the viewer is watching within an active pack rental.

        Raises:
            NotFoundError: No active pack rental with this id owned by the identity
            InvalidRequestError: The short is not part of the rented pack
        """
        rental = self.rentals.get_by_id(rental_id)
        if (
            rental is None
            or not _is_owner(rental, identity)
            or not rental.is_pack_rental
            or not rental.is_active(self._clock())
        ):
            raise NotFoundError("Active pack rental not found")

        if not self.packs.is_member(rental.short_pack_id, current_short_id):
            raise InvalidRequestError("Short is not part of this pack", error_code="SHORT_NOT_IN_PACK")

        return self.rentals.update_position(rental, current_short_id)

    def list_rentals(
        self,
        identity: Identity,
        include_recent: bool = False,
        include_all: bool = False,
    ) -> List[RentalResult]:
        """
        Rentals held by the identity, newest first.

        By default only active rentals are returned. ``include_recent`` adds
        rentals that expired within the recent window; ``include_all``
        returns the full history.
        """
        now = self._clock()
        if include_all:
            expires_after = None
        elif include_recent:
            expires_after = now - self.config.recent_rental_window
        else:
            expires_after = now

        results = []
        for rental in self.rentals.list_for_owner(identity, expires_after):
            if rental.movie is not None:
                results.append(RentalResult(rental, movie=MovieInfo(rental.movie.id, rental.movie.title)))
            elif rental.short_pack is not None:
                results.append(RentalResult(rental, pack=pack_info(rental.short_pack)))
            else:
                results.append(RentalResult(rental))
        return results

    def migrate_anonymous_data(self, anonymous_id: str, user_id: str) -> MigrationResult:
        """
        Reassign an anonymous viewer's rentals and watch progress to a user.

        Running it again for the same pair migrates nothing.
        """
        if not anonymous_id or not anonymous_id.strip():
            raise InvalidRequestError("anonymousId is required")
        if not user_id:
            raise ForbiddenError("A signed-in user is required to migrate data")

        anonymous_id = anonymous_id.strip()
        try:
            slots = self.rentals.reassign_slots(
                AnonymousIdentity(anonymous_id).key, UserIdentity(user_id).key
            )
            rentals = self.rentals.reassign_anonymous(anonymous_id, user_id)
            progress = self.watch_progress.reassign_anonymous(anonymous_id, user_id)
            self.rentals.commit()
        except Exception:
            self.rentals.rollback()
            logger.error(
                "Anonymous data migration failed",
                extra={"user_id": user_id},
                exc_info=True,
            )
            raise

        logger.info(
            "Anonymous data migrated",
            extra={
                "user_id": user_id,
                "rentals": rentals,
                "watch_progress": progress,
                "slots": slots,
            },
        )
        return MigrationResult(rentals=rentals, watch_progress=progress, slots=slots)
