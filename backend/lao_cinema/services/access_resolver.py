"""
Access resolution: does this viewer currently hold a rental that covers a movie?

A movie is accessible through a direct rental of the movie, or through a
rental of any short pack the movie belongs to. Direct rentals are checked
first. When several rentals qualify the most recently purchased one is
returned. Resolution never writes.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Literal, Optional

from sqlalchemy.orm import Session

from lao_cinema.auth.identity import Identity
from lao_cinema.models.base import utcnow
from lao_cinema.models.rental import Rental
from lao_cinema.repositories.pack_repo import PackRepository
from lao_cinema.repositories.rental_repo import RentalRepository
from lao_cinema.targets import MovieTarget, PackTarget

logger = logging.getLogger(__name__)

AccessType = Literal["direct", "pack"]


@dataclass(frozen=True)
class AccessDecision:
    granted: bool
    access_type: Optional[AccessType] = None
    rental: Optional[Rental] = None


DENIED = AccessDecision(granted=False)


class AccessResolver:
    """Read-only entitlement checks against the rentals table."""

    def __init__(self, db_session: Session, clock: Optional[Callable[[], datetime]] = None):
        self.rentals = RentalRepository(db_session)
        self.packs = PackRepository(db_session)
        self._clock = clock or utcnow

    def check_movie_access(self, identity: Optional[Identity], movie_id: str) -> AccessDecision:
        """Grant iff the identity holds an active direct or pack rental covering the movie."""
        if identity is None:
            return DENIED

        now = self._clock()

        direct = self.rentals.find_active(identity, MovieTarget(movie_id), now)
        if direct is not None:
            return AccessDecision(granted=True, access_type="direct", rental=direct)

        pack_ids = self.packs.get_pack_ids_for_movie(movie_id)
        pack_rental = self.rentals.find_active_for_packs(identity, pack_ids, now)
        if pack_rental is not None:
            return AccessDecision(granted=True, access_type="pack", rental=pack_rental)

        logger.debug("Movie access denied", extra={"movie_id": movie_id})
        return DENIED

    def check_pack_access(self, identity: Optional[Identity], pack_id: str) -> AccessDecision:
        """Grant iff the identity holds an active rental of the pack itself."""
        if identity is None:
            return DENIED

        rental = self.rentals.find_active(identity, PackTarget(pack_id), self._clock())
        if rental is None:
            return DENIED
        return AccessDecision(granted=True, access_type="pack", rental=rental)
