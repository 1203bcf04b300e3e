"""
Authentication: identities, request identity resolution and route guards.
"""

from lao_cinema.auth.identity import (
    AnonymousIdentity,
    AuthContext,
    Identity,
    UserIdentity,
)

__all__ = ["AnonymousIdentity", "AuthContext", "Identity", "UserIdentity"]
