"""
FastAPI dependencies for identity resolution and route guards.

Credentials:
- Session token from the HttpOnly session cookie, or from
  ``Authorization: Bearer <token>`` (the cookie wins when both are sent)
- Anonymous id from the ``x-anonymous-id`` header

Access modes:

    # Optional: never blocks
    @router.get("/public")
    async def public(auth: AuthContext = Depends(get_auth_context)): ...

    # Signed-in users only
    @router.get("/me")
    async def me(auth: AuthContext = Depends(require_auth)): ...

    # Signed-in users or anonymous viewers
    @router.post("/rentals/{movie_id}")
    async def rent(auth: AuthContext = Depends(require_auth_or_anonymous)): ...

    # Role gated
    @router.post("/admin/...")
    async def admin(auth: AuthContext = Depends(require_admin)): ...

The resolved context is cached on ``request.state`` so several guards in
one request resolve the session only once.
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from lao_cinema.auth.identity import AuthContext
from lao_cinema.auth.resolver import IdentityResolver
from lao_cinema.config.settings import AccessConfig, get_access_config
from lao_cinema.database.session import get_db_session
from lao_cinema.errors import ForbiddenError, UnauthenticatedError
from lao_cinema.models.user import UserRole
from lao_cinema.repositories.session_repo import SessionRepository

logger = logging.getLogger(__name__)


def extract_session_token(request: Request, cookie_name: str = "session") -> Optional[str]:
    """Session token from the cookie, else from a bearer Authorization header."""
    cookie_token = request.cookies.get(cookie_name)
    if cookie_token:
        return cookie_token

    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        token = auth_header[7:].strip()
        return token or None

    return None


def get_auth_context(
    request: Request,
    db: Session = Depends(get_db_session),
    config: AccessConfig = Depends(get_access_config),
) -> AuthContext:
    """Resolve the request identity. Never raises for missing credentials."""
    cached = getattr(request.state, "auth_context", None)
    if cached is not None:
        return cached

    resolver = IdentityResolver(SessionRepository(db))
    context = resolver.resolve(
        extract_session_token(request, config.session_cookie_name),
        request.headers.get(config.anonymous_id_header),
    )
    request.state.auth_context = context
    return context


def require_auth(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """Require a valid session."""
    if not auth.is_authenticated:
        raise UnauthenticatedError("Authentication required")
    return auth


def require_auth_or_anonymous(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """Require a valid session or an anonymous id."""
    if auth.identity is None:
        raise UnauthenticatedError("Authentication or anonymous id required")
    return auth


def require_role(*roles: UserRole):
    """
    Dependency factory requiring the signed-in user to hold one of ``roles``.

    Missing session is 401; a session without the role is 403.
    """
    allowed = set(roles)

    def dependency(auth: AuthContext = Depends(require_auth)) -> AuthContext:
        if not auth.user.has_role(*allowed):
            logger.warning(
                "Role check failed",
                extra={
                    "user_id": auth.user_id,
                    "role": auth.role.value if auth.role else None,
                    "required": sorted(r.value for r in allowed),
                },
            )
            raise ForbiddenError("Insufficient permissions", error_code="INSUFFICIENT_ROLE")
        return auth

    return dependency


require_editor = require_role(UserRole.EDITOR, UserRole.ADMIN)
require_admin = require_role(UserRole.ADMIN)
require_editor_or_admin = require_role(UserRole.EDITOR, UserRole.ADMIN)
