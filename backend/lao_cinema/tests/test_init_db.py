"""
Tests for the database initialization script.
"""

from sqlalchemy import create_engine, inspect

import lao_cinema.database.session as session_module
from scripts.init_db import init_database, main


def test_creates_all_tables(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'init.db'}")

    tables = init_database(engine)

    assert {"rentals", "active_rental_slots", "promo_codes", "user_sessions"} <= set(tables)
    assert set(tables) <= set(inspect(engine).get_table_names())
    engine.dispose()


def test_is_idempotent(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'init.db'}")

    assert init_database(engine) == init_database(engine)
    engine.dispose()


def test_main_uses_database_url(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'main.db'}")
    monkeypatch.setattr(session_module, "_engine", None)

    assert main() == 0

    assert "rentals" in inspect(session_module._engine).get_table_names()
    session_module._engine.dispose()


def test_main_without_database_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(session_module, "_engine", None)

    assert main() == 1
