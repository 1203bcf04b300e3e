"""
Per-viewer playback position for a movie.
"""

from sqlalchemy import Column, String, Integer, Boolean, ForeignKey

from lao_cinema.db_base import Base
from lao_cinema.models.base import UTCDateTime, generate_uuid, utcnow


class WatchProgress(Base):
    """Resume point for one owner and one movie."""

    __tablename__ = "watch_progress"

    id = Column(String(36), primary_key=True, default=generate_uuid)

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    anonymous_id = Column(String(255), nullable=True, index=True)

    movie_id = Column(String(36), ForeignKey("movies.id", ondelete="CASCADE"), nullable=False)

    progress_seconds = Column(Integer, nullable=False, default=0)
    duration_seconds = Column(Integer, nullable=True)
    completed = Column(Boolean, nullable=False, default=False)

    last_watched_at = Column(UTCDateTime(), nullable=False, default=utcnow)
