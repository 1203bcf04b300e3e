"""
Rentals Repository.

Owns every write to ``rentals`` and ``active_rental_slots``. Creating a
rental first claims the (owner, target) slot:

1. INSERT the slot row. The unique key on (owner_key, target_key) makes
   this fail if any slot exists for the pair.
2. On a unique violation, try to reclaim the slot with a conditional
   UPDATE that only matches if the slot's rental has expired.
3. If neither succeeds another active rental holds the slot and the
   purchase is rejected with RentalConflictError.

The rental row is written in the same transaction as the slot claim.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from lao_cinema.auth.identity import AnonymousIdentity, Identity, UserIdentity
from lao_cinema.errors import DuplicateTransactionError, RentalConflictError
from lao_cinema.models.rental import ActiveRentalSlot, Rental
from lao_cinema.targets import MovieTarget, PackTarget, RentalTarget

logger = logging.getLogger(__name__)


def _owner_clause(identity: Identity):
    if isinstance(identity, UserIdentity):
        return Rental.user_id == identity.user_id
    if isinstance(identity, AnonymousIdentity):
        return Rental.anonymous_id == identity.anonymous_id
    raise TypeError(f"Unsupported identity: {identity!r}")


def _target_clause(target: RentalTarget):
    if isinstance(target, MovieTarget):
        return Rental.movie_id == target.movie_id
    if isinstance(target, PackTarget):
        return Rental.short_pack_id == target.pack_id
    raise TypeError(f"Unsupported rental target: {target!r}")


class RentalRepository:
    """Repository for Rental and ActiveRentalSlot rows."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_by_id(self, rental_id: str) -> Optional[Rental]:
        return self.db.query(Rental).filter(Rental.id == rental_id).first()

    def find_active(self, identity: Identity, target: RentalTarget, now: datetime) -> Optional[Rental]:
        """Most recently purchased unexpired rental of the target by the owner."""
        return (
            self.db.query(Rental)
            .filter(_owner_clause(identity), _target_clause(target), Rental.expires_at > now)
            .order_by(Rental.purchased_at.desc())
            .first()
        )

    def find_latest(self, identity: Identity, target: RentalTarget) -> Optional[Rental]:
        """Most recently purchased rental of the target by the owner, expired or not."""
        return (
            self.db.query(Rental)
            .filter(_owner_clause(identity), _target_clause(target))
            .order_by(Rental.purchased_at.desc())
            .first()
        )

    def find_active_for_packs(
        self,
        identity: Identity,
        pack_ids: List[str],
        now: datetime,
    ) -> Optional[Rental]:
        """Most recently purchased unexpired rental of any of the given packs."""
        if not pack_ids:
            return None
        return (
            self.db.query(Rental)
            .filter(
                _owner_clause(identity),
                Rental.short_pack_id.in_(pack_ids),
                Rental.expires_at > now,
            )
            .order_by(Rental.purchased_at.desc())
            .first()
        )

    def list_for_owner(self, identity: Identity, expires_after: Optional[datetime] = None) -> List[Rental]:
        """
        Rentals held by the owner, newest first.

        Args:
            identity: Rental owner
            expires_after: Only rentals expiring after this instant; None for all
        """
        query = self.db.query(Rental).filter(_owner_clause(identity))
        if expires_after is not None:
            query = query.filter(Rental.expires_at > expires_after)
        return query.order_by(Rental.purchased_at.desc()).all()

    def create_with_slot(self, rental: Rental, owner_key: str, target_key: str, now: datetime) -> Rental:
        """
        Insert a rental after claiming its (owner, target) slot, then commit.

        ``rental.id`` must already be assigned.

        Raises:
            RentalConflictError: An unexpired rental already holds the slot
            DuplicateTransactionError: ``rental.transaction_id`` was used before
        """
        if not self._claim_slot(rental, owner_key, target_key, now):
            holder_id = self._slot_rental_id(owner_key, target_key)
            logger.info(
                "Rental slot already held",
                extra={"owner_key": owner_key[:16], "target_key": target_key, "rental_id": holder_id},
            )
            raise RentalConflictError(existing_rental_id=holder_id)

        self.db.add(rental)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(
                "Rental insert rejected - integrity error",
                extra={"transaction_id": rental.transaction_id, "error": str(e.orig)},
            )
            raise DuplicateTransactionError(
                f"Transaction {rental.transaction_id} has already been used"
            )

        self.db.commit()
        logger.info(
            "Rental created",
            extra={
                "rental_id": rental.id,
                "target_key": target_key,
                "expires_at": rental.expires_at.isoformat(),
            },
        )
        return rental

    def _claim_slot(self, rental: Rental, owner_key: str, target_key: str, now: datetime) -> bool:
        slot = ActiveRentalSlot(
            owner_key=owner_key,
            target_key=target_key,
            rental_id=rental.id,
            expires_at=rental.expires_at,
        )
        self.db.add(slot)
        try:
            self.db.flush()
            return True
        except IntegrityError:
            self.db.rollback()

        reclaimed = (
            self.db.query(ActiveRentalSlot)
            .filter(
                ActiveRentalSlot.owner_key == owner_key,
                ActiveRentalSlot.target_key == target_key,
                ActiveRentalSlot.expires_at <= now,
            )
            .update(
                {
                    ActiveRentalSlot.rental_id: rental.id,
                    ActiveRentalSlot.expires_at: rental.expires_at,
                },
                synchronize_session=False,
            )
        )
        return reclaimed == 1

    def _slot_rental_id(self, owner_key: str, target_key: str) -> Optional[str]:
        slot = (
            self.db.query(ActiveRentalSlot)
            .filter(
                ActiveRentalSlot.owner_key == owner_key,
                ActiveRentalSlot.target_key == target_key,
            )
            .first()
        )
        return slot.rental_id if slot else None

    def update_position(self, rental: Rental, current_short_id: str) -> Rental:
        rental.current_short_id = current_short_id
        self.db.commit()
        return rental

    def reassign_anonymous(self, anonymous_id: str, user_id: str) -> int:
        """Move every rental of an anonymous owner to a user. Returns the row count."""
        return (
            self.db.query(Rental)
            .filter(Rental.anonymous_id == anonymous_id)
            .update(
                {Rental.user_id: user_id, Rental.anonymous_id: None},
                synchronize_session=False,
            )
        )

    def reassign_slots(self, from_owner_key: str, to_owner_key: str) -> int:
        """
        Move slots between owners.

        Where both owners hold a slot for the same target the one expiring
        later is kept under the new owner and the other is dropped.
        """
        moved = 0
        slots = (
            self.db.query(ActiveRentalSlot)
            .filter(ActiveRentalSlot.owner_key == from_owner_key)
            .all()
        )
        for slot in slots:
            existing = (
                self.db.query(ActiveRentalSlot)
                .filter(
                    and_(
                        ActiveRentalSlot.owner_key == to_owner_key,
                        ActiveRentalSlot.target_key == slot.target_key,
                    )
                )
                .first()
            )
            if existing is None:
                slot.owner_key = to_owner_key
            else:
                if slot.expires_at > existing.expires_at:
                    existing.rental_id = slot.rental_id
                    existing.expires_at = slot.expires_at
                self.db.delete(slot)
            moved += 1
        self.db.flush()
        return moved

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
