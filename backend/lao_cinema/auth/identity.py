"""
Viewer identities and the per-request auth context.

A request is made on behalf of a registered user, an anonymous viewer
(identified by a client-generated id), or nobody. When both a user and an
anonymous id are present the user wins; the anonymous id is kept only so
its rentals can be migrated to the account.
"""

from dataclasses import dataclass
from typing import Optional, Union

from lao_cinema.models.user import User, UserRole


@dataclass(frozen=True)
class UserIdentity:
    """A registered user."""
    user_id: str

    @property
    def key(self) -> str:
        return f"user:{self.user_id}"


@dataclass(frozen=True)
class AnonymousIdentity:
    """An anonymous viewer identified by a client-held id."""
    anonymous_id: str

    @property
    def key(self) -> str:
        return f"anon:{self.anonymous_id}"


Identity = Union[UserIdentity, AnonymousIdentity]


def normalize_anonymous_id(raw: Optional[str]) -> Optional[str]:
    """Return the anonymous id if it is a non-empty string, else None."""
    if raw is None:
        return None
    value = raw.strip()
    return value or None


@dataclass
class AuthContext:
    """
    Identity resolved for one request.

    Attributes:
        user: Authenticated user, if a valid session was presented
        session_id: Id of that session
        anonymous_id: Anonymous id sent by the client, if any
    """
    user: Optional[User] = None
    session_id: Optional[str] = None
    anonymous_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user is not None else None

    @property
    def role(self) -> Optional[UserRole]:
        return self.user.role if self.user is not None else None

    @property
    def identity(self) -> Optional[Identity]:
        """The identity requests act as: the user if present, else the anonymous viewer."""
        if self.user is not None:
            return UserIdentity(self.user.id)
        if self.anonymous_id:
            return AnonymousIdentity(self.anonymous_id)
        return None

