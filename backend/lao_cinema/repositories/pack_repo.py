"""
Repository for short packs and their membership.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from lao_cinema.models.short_pack import ShortPack, ShortPackItem


class PackRepository:
    """Read access to short packs."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_by_id(self, pack_id: str) -> Optional[ShortPack]:
        return self.db.query(ShortPack).filter(ShortPack.id == pack_id).first()

    def get_pack_ids_for_movie(self, movie_id: str) -> List[str]:
        """Ids of every pack that lists the movie as a member."""
        rows = (
            self.db.query(ShortPackItem.pack_id)
            .filter(ShortPackItem.movie_id == movie_id)
            .all()
        )
        return [row.pack_id for row in rows]

    def is_member(self, pack_id: str, movie_id: str) -> bool:
        return (
            self.db.query(ShortPackItem)
            .filter(ShortPackItem.pack_id == pack_id, ShortPackItem.movie_id == movie_id)
            .first()
            is not None
        )
