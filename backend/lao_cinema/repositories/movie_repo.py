"""
Repository for movies and their video sources.
"""

from typing import Optional

from sqlalchemy.orm import Session

from lao_cinema.models.movie import Movie, VideoSource


class MovieRepository:
    """Read access to the catalog entries the access core needs."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_by_id(self, movie_id: str) -> Optional[Movie]:
        return self.db.query(Movie).filter(Movie.id == movie_id).first()

    def get_video_source(self, video_source_id: str) -> Optional[VideoSource]:
        return self.db.query(VideoSource).filter(VideoSource.id == video_source_id).first()
