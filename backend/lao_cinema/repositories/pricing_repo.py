"""
Repository for promo codes.

Promo use counting is done with a single conditional UPDATE so the use
cap holds under concurrent redemptions.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from lao_cinema.models.pricing import PromoCode, PromoCodeUse

logger = logging.getLogger(__name__)


class PromoCodeRepository:
    """Promo code lookup and redemption bookkeeping."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_active_by_code(self, code: str) -> Optional[PromoCode]:
        """Get an active promo code by its (already upper-cased) code."""
        return (
            self.db.query(PromoCode)
            .filter(PromoCode.code == code, PromoCode.is_active.is_(True))
            .first()
        )

    def increment_uses(self, promo_code_id: str) -> bool:
        """
        Atomically add one use unless the cap is already reached.

        Returns:
            True if the counter was incremented, False if the code is at its
            cap (or no longer exists)
        """
        updated = (
            self.db.query(PromoCode)
            .filter(
                PromoCode.id == promo_code_id,
                or_(PromoCode.max_uses.is_(None), PromoCode.uses_count < PromoCode.max_uses),
            )
            .update(
                {PromoCode.uses_count: PromoCode.uses_count + 1},
                synchronize_session=False,
            )
        )
        return updated == 1

    def add_use(
        self,
        promo_code_id: str,
        rental_id: Optional[str],
        user_id: Optional[str],
        anonymous_id: Optional[str],
        used_at: datetime,
    ) -> PromoCodeUse:
        use = PromoCodeUse(
            promo_code_id=promo_code_id,
            rental_id=rental_id,
            user_id=user_id,
            anonymous_id=anonymous_id,
            used_at=used_at,
        )
        self.db.add(use)
        self.db.flush()
        return use

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
