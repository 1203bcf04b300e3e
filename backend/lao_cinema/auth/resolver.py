"""
Identity resolution from request credentials.

Turns a session token and/or an anonymous id into an AuthContext. The
resolver knows nothing about HTTP; extracting the credentials from headers
and cookies is done by the FastAPI dependencies.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from lao_cinema.auth.identity import AuthContext, normalize_anonymous_id
from lao_cinema.models.base import utcnow
from lao_cinema.repositories.session_repo import SessionRepository

logger = logging.getLogger(__name__)


class IdentityResolver:
    """
    Resolves the identity behind a request.

    A session token yields a user only if it matches a session that has not
    expired. Expired sessions are deleted when seen. The anonymous id is
    accepted as-is when non-empty.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.sessions = sessions
        self._clock = clock or utcnow

    def resolve(self, session_token: Optional[str], anonymous_id: Optional[str]) -> AuthContext:
        context = AuthContext(anonymous_id=normalize_anonymous_id(anonymous_id))

        if not session_token:
            return context

        user_session = self.sessions.get_by_token(session_token)
        if user_session is None:
            logger.debug("Session token did not match any session")
            return context

        if user_session.is_expired(self._clock()):
            self.sessions.delete(user_session)
            return context

        context.user = user_session.user
        context.session_id = user_session.id
        return context
