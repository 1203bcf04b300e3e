"""
Engine and session lifecycle for the rental access service.

One engine is built lazily from DATABASE_URL and shared by every request.
Routes receive a session through the ``get_db_session`` dependency; services
commit their own units of work, so the dependency only opens and closes.

Usage:
    from lao_cinema.database.session import get_db_session

    @router.get("/rentals")
    async def list_rentals(db: Session = Depends(get_db_session)):
        ...
"""

import os
import logging
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from fastapi import HTTPException, status

logger = logging.getLogger(__name__)

_engine = None
_SessionLocal = None


def _get_database_url() -> str:
    """
    Read DATABASE_URL, accepting the legacy postgres:// scheme.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL environment variable is not set")

    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)

    return database_url


def _engine_options(database_url: str) -> dict:
    """
    Pool settings per backend.

    SQLite connections are shared across the request threadpool. An
    in-memory SQLite database exists only inside one connection, so it is
    pinned to a single StaticPool connection. Server databases get a
    QueuePool of 5 connections plus 10 overflow, pinged before use and
    recycled every 30 minutes.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        options = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
        return options

    return {
        "poolclass": QueuePool,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,
        "pool_recycle": 1800,
    }


def get_engine() -> Engine:
    """Get or create the engine singleton."""
    global _engine
    if _engine is None:
        try:
            database_url = _get_database_url()
        except ValueError as e:
            logger.error("Failed to create database engine", extra={"error": str(e)})
            raise

        options = _engine_options(database_url)
        _engine = create_engine(database_url, **options)
        logger.info(
            "Database engine created",
            extra={
                "backend": _engine.dialect.name,
                "pool": type(_engine.pool).__name__,
            },
        )
    return _engine


def get_session_factory() -> sessionmaker:
    """Get or create the session factory singleton."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=get_engine(),
        )
    return _SessionLocal


async def get_db_session() -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding one session per request.

    Raises HTTP 503 if DATABASE_URL is not configured.
    """
    try:
        SessionLocal = get_session_factory()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not configured"
        )

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
