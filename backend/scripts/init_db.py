"""
Database initialization script.

Creates all tables defined in the SQLAlchemy models. Existing tables are
not modified.

Usage (from backend/):
    python -m scripts.init_db

Environment variables:
    DATABASE_URL: Database connection string
"""

import logging
import sys
from typing import Optional

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

import lao_cinema.models  # noqa: F401 - registers all tables with Base.metadata
from lao_cinema.database.session import get_engine
from lao_cinema.db_base import Base

logger = logging.getLogger(__name__)


def init_database(engine: Optional[Engine] = None) -> list[str]:
    """
    Create missing tables.

    Args:
        engine: Target engine; defaults to the one built from DATABASE_URL

    Returns:
        Names of all model tables, every one of which now exists
    """
    engine = engine or get_engine()

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        logger.info("Database connection successful")
    except SQLAlchemyError as e:
        logger.error("Failed to connect to database", extra={"error": str(e)})
        raise

    table_names = sorted(Base.metadata.tables.keys())
    logger.info("Tables to create/verify", extra={"tables": table_names})

    Base.metadata.create_all(bind=engine)

    existing = set(inspect(engine).get_table_names())
    missing = [name for name in table_names if name not in existing]
    if missing:
        raise RuntimeError(f"Tables missing after create_all: {', '.join(missing)}")

    logger.info("All tables created/verified successfully", extra={"count": len(table_names)})
    return table_names


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    try:
        init_database()
    except (ValueError, RuntimeError, SQLAlchemyError) as e:
        logger.error("Database initialization failed", extra={"error": str(e)})
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
