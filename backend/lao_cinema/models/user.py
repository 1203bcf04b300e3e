"""
User model.

Users authenticate with a server-side session token (see UserSession).
The role column drives the editor/admin route guards.
"""

import enum

from sqlalchemy import Column, String, Enum
from sqlalchemy.orm import relationship

from lao_cinema.db_base import Base
from lao_cinema.models.base import TimestampMixin, generate_uuid


class UserRole(str, enum.Enum):
    """Role granted to a user account."""
    USER = "user"
    EDITOR = "editor"
    ADMIN = "admin"


class User(Base, TimestampMixin):
    """A registered viewer, editor or administrator."""

    __tablename__ = "users"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_uuid,
        comment="Internal UUID primary key"
    )

    email = Column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Login email address"
    )

    display_name = Column(
        String(255),
        nullable=True,
        comment="Name shown in the UI"
    )

    role = Column(
        Enum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.USER,
        comment="Authorization role: user, editor or admin"
    )

    sessions = relationship(
        "UserSession",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def has_role(self, *roles: UserRole) -> bool:
        """Check whether the user's role is one of the given roles."""
        return self.role in roles

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role})>"
