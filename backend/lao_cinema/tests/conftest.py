"""
Root test configuration and fixtures.

Each test gets a fresh in-memory SQLite database. Time-sensitive tests use
FrozenClock instead of the wall clock.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Set test environment
os.environ.setdefault("ENV", "test")
os.environ.setdefault("VIDEO_TOKEN_SECRET", "test-video-token-secret-0123456789abcdef")

from lao_cinema.api.dependencies import get_token_service
from lao_cinema.api.errors import install_error_handlers
from lao_cinema.api.routes import health, pricing, purchases, rentals, video_tokens
from lao_cinema.config.settings import AccessConfig, get_access_config
from lao_cinema.database.session import get_db_session
from lao_cinema.services.video_token_service import VideoTokenConfig, VideoTokenService

TEST_TOKEN_SECRET = "test-video-token-secret-0123456789abcdef"


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture(scope="function")
def db_engine():
    """SQLite in-memory engine with all tables created."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    from lao_cinema.db_base import Base
    import lao_cinema.models  # noqa: F401 - registers all tables

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Session bound to the per-test engine."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()

    yield session

    session.close()


@pytest.fixture
def file_session_factory(tmp_path) -> Generator[sessionmaker, None, None]:
    """
    Sessions on a file-backed SQLite database.

    Each session gets its own connection, so tests can interleave two
    writers the way two concurrent requests would.
    """
    engine = create_engine(f"sqlite:///{tmp_path / 'lao_cinema.db'}")

    from lao_cinema.db_base import Base
    import lao_cinema.models  # noqa: F401

    Base.metadata.create_all(bind=engine)

    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)

    engine.dispose()


@pytest.fixture
def access_config() -> AccessConfig:
    return AccessConfig()


@pytest.fixture
def token_config() -> VideoTokenConfig:
    return VideoTokenConfig(
        secret=TEST_TOKEN_SECRET,
        ttl_seconds=900,
        issuer="test-issuer",
        video_server_url="http://videos.test",
    )


def build_app(db_session, access_config, token_config) -> FastAPI:
    """Application with every router, bound to one database session."""
    app = FastAPI()
    install_error_handlers(app)
    for module in (health, video_tokens, rentals, pricing, purchases):
        app.include_router(module.router)

    app.dependency_overrides[get_db_session] = lambda: db_session
    app.dependency_overrides[get_access_config] = lambda: access_config
    app.dependency_overrides[get_token_service] = lambda: VideoTokenService(config=token_config)
    return app


@pytest.fixture
def app(db_session, access_config, token_config) -> FastAPI:
    return build_app(db_session, access_config, token_config)


@pytest.fixture
def app_factory(access_config, token_config):
    """Builds an application bound to a given session."""
    return lambda session: build_app(session, access_config, token_config)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "security: mark test as security-focused")
