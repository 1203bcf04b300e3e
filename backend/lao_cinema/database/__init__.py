"""
Database session management.
"""

from lao_cinema.database.session import get_db_session, get_engine

__all__ = ["get_db_session", "get_engine"]
