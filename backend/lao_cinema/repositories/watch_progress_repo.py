"""
Repository for watch progress rows.
"""

import logging

from sqlalchemy.orm import Session

from lao_cinema.models.watch_progress import WatchProgress

logger = logging.getLogger(__name__)


class WatchProgressRepository:

    def __init__(self, db_session: Session):
        self.db = db_session

    def reassign_anonymous(self, anonymous_id: str, user_id: str) -> int:
        """
        Move an anonymous viewer's progress to a user.

        If the user already has progress for the same movie, the row watched
        most recently survives.
        """
        moved = 0
        rows = (
            self.db.query(WatchProgress)
            .filter(WatchProgress.anonymous_id == anonymous_id)
            .all()
        )
        for row in rows:
            existing = (
                self.db.query(WatchProgress)
                .filter(
                    WatchProgress.user_id == user_id,
                    WatchProgress.movie_id == row.movie_id,
                )
                .first()
            )
            if existing is not None and existing.last_watched_at >= row.last_watched_at:
                self.db.delete(row)
            else:
                if existing is not None:
                    self.db.delete(existing)
                row.user_id = user_id
                row.anonymous_id = None
            moved += 1
        self.db.flush()
        return moved
