"""
Repository for login sessions.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from lao_cinema.models.user_session import UserSession

logger = logging.getLogger(__name__)


class SessionRepository:
    """Lookup and cleanup of UserSession rows."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_by_token(self, token: str) -> Optional[UserSession]:
        """Get a session (with its user) by token, expired or not."""
        return self.db.query(UserSession).filter(UserSession.token == token).first()

    def delete(self, user_session: UserSession) -> None:
        """Delete a session and commit."""
        session_id = user_session.id
        self.db.delete(user_session)
        self.db.commit()
        logger.info("Expired session deleted", extra={"session_id": session_id})
