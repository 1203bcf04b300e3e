"""
Short packs: curated bundles of short films rented as one unit.

A rental of a pack grants access to every member movie.
"""

from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, PrimaryKeyConstraint
from sqlalchemy.orm import relationship

from lao_cinema.db_base import Base
from lao_cinema.models.base import TimestampMixin, generate_uuid


class ShortPack(Base, TimestampMixin):
    """A bundle of short films."""

    __tablename__ = "short_packs"

    id = Column(String(36), primary_key=True, default=generate_uuid)

    slug = Column(String(255), nullable=True, unique=True)

    poster_path = Column(String(1000), nullable=True)

    is_published = Column(Boolean, nullable=False, default=False)

    translations = relationship(
        "ShortPackTranslation",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    items = relationship(
        "ShortPackItem",
        cascade="all, delete-orphan",
        order_by="ShortPackItem.order",
        lazy="selectin",
    )

    @property
    def titles(self) -> dict:
        """Localized titles keyed by language code."""
        return {t.language: t.title for t in self.translations}

    @property
    def movie_ids(self) -> list:
        """Member movie ids in display order."""
        return [item.movie_id for item in self.items]


class ShortPackTranslation(Base):
    """Localized title and description of a pack."""

    __tablename__ = "short_pack_translations"
    __table_args__ = (PrimaryKeyConstraint("pack_id", "language"),)

    pack_id = Column(
        String(36),
        ForeignKey("short_packs.id", ondelete="CASCADE"),
        nullable=False,
    )
    language = Column(String(5), nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(String(4000), nullable=True)


class ShortPackItem(Base):
    """Membership of a movie in a pack."""

    __tablename__ = "short_pack_items"
    __table_args__ = (PrimaryKeyConstraint("pack_id", "movie_id"),)

    pack_id = Column(
        String(36),
        ForeignKey("short_packs.id", ondelete="CASCADE"),
        nullable=False,
    )
    movie_id = Column(
        String(36),
        ForeignKey("movies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    order = Column(Integer, nullable=False, default=0)
