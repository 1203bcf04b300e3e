"""
Catalog models needed for access control: movies and their video sources.

Only the columns the rental and pricing flows read are mapped here.
"""

from sqlalchemy import Column, String, Integer, ForeignKey
from sqlalchemy.orm import relationship

from lao_cinema.db_base import Base
from lao_cinema.models.base import TimestampMixin, generate_uuid


class Movie(Base, TimestampMixin):
    """A rentable movie or short film."""

    __tablename__ = "movies"

    id = Column(String(36), primary_key=True, default=generate_uuid)

    title = Column(String(500), nullable=False, comment="Display title (English)")

    runtime_minutes = Column(Integer, nullable=True)

    pricing_tier_id = Column(
        String(36),
        ForeignKey("pricing_tiers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Pricing tier; movies without one are not rentable"
    )

    pricing_tier = relationship("PricingTier", lazy="joined")

    video_sources = relationship(
        "VideoSource",
        back_populates="movie",
        cascade="all, delete-orphan",
    )


class VideoSource(Base, TimestampMixin):
    """A playable encoding of a movie, served as HLS."""

    __tablename__ = "video_sources"

    id = Column(String(36), primary_key=True, default=generate_uuid)

    movie_id = Column(
        String(36),
        ForeignKey("movies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    quality = Column(String(20), nullable=False, default="original")
    format = Column(String(10), nullable=False, default="hls")

    url = Column(
        String(1000),
        nullable=False,
        comment="Source slug; the HLS manifest lives at hls/<url>/master.m3u8"
    )

    movie = relationship("Movie", back_populates="video_sources")
