"""
Tests for IdentityResolver.

Tests cover:
- Valid session resolves to the user
- Expired session is deleted and treated as absent
- Anonymous id fallback and blank ids
- User wins over anonymous id, which is kept for migration
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from lao_cinema.auth.identity import AnonymousIdentity, UserIdentity
from lao_cinema.auth.resolver import IdentityResolver
from lao_cinema.models import UserSession
from lao_cinema.repositories.session_repo import SessionRepository
from lao_cinema.tests.factories import make_session, make_user


@pytest.fixture
def resolver(db_session, clock):
    return IdentityResolver(SessionRepository(db_session), clock=clock)


class TestSessionResolution:

    def test_valid_session_resolves_user(self, db_session, resolver, clock):
        user = make_user(db_session)
        make_session(db_session, user, clock() + timedelta(days=7), token="tok-valid")
        db_session.commit()

        context = resolver.resolve("tok-valid", None)

        assert context.is_authenticated
        assert context.user_id == user.id
        assert context.identity == UserIdentity(user.id)

    def test_unknown_token_is_absent(self, resolver):
        context = resolver.resolve("nope", None)

        assert not context.is_authenticated
        assert context.identity is None

    def test_expired_session_is_deleted(self, db_session, resolver, clock):
        """Presenting an expired session yields no identity and removes the row."""
        user = make_user(db_session)
        make_session(db_session, user, clock() - timedelta(seconds=1), token="tok-old")
        db_session.commit()

        context = resolver.resolve("tok-old", None)

        assert context.identity is None
        assert db_session.query(UserSession).filter_by(token="tok-old").first() is None

    def test_session_expiring_now_is_expired(self, db_session, resolver, clock):
        user = make_user(db_session)
        make_session(db_session, user, clock(), token="tok-edge")
        db_session.commit()

        assert resolver.resolve("tok-edge", None).identity is None

    def test_lookup_failure_propagates(self, clock):
        sessions = MagicMock(spec=SessionRepository)
        sessions.get_by_token.side_effect = RuntimeError("database unreachable")

        with pytest.raises(RuntimeError, match="unreachable"):
            IdentityResolver(sessions, clock=clock).resolve("tok", None)

    def test_valid_session_has_no_side_effects(self, clock):
        sessions = MagicMock(spec=SessionRepository)
        session_row = MagicMock()
        session_row.is_expired.return_value = False
        sessions.get_by_token.return_value = session_row

        IdentityResolver(sessions, clock=clock).resolve("tok", None)

        sessions.delete.assert_not_called()


class TestAnonymousResolution:

    def test_anonymous_id_used_without_session(self, resolver):
        context = resolver.resolve(None, "device-123")

        assert not context.is_authenticated
        assert context.identity == AnonymousIdentity("device-123")

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_blank_anonymous_id_is_ignored(self, resolver, raw):
        assert resolver.resolve(None, raw).identity is None

    def test_user_takes_precedence_over_anonymous(self, db_session, resolver, clock):
        user = make_user(db_session)
        make_session(db_session, user, clock() + timedelta(hours=1), token="tok-both")
        db_session.commit()

        context = resolver.resolve("tok-both", "device-123")

        assert context.identity == UserIdentity(user.id)
        assert context.anonymous_id == "device-123"

    def test_expired_session_falls_back_to_anonymous(self, db_session, resolver, clock):
        user = make_user(db_session)
        make_session(db_session, user, clock() - timedelta(hours=1), token="tok-stale")
        db_session.commit()

        context = resolver.resolve("tok-stale", "device-9")

        assert context.identity == AnonymousIdentity("device-9")
