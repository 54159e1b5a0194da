"""Shared pytest fixtures for all tests."""

import sqlite3

import pytest

from config import Config
from services.base import Services
from tests.helpers import InMemoryDatabaseManager


@pytest.fixture
def test_db():
    """Create an in-memory SQLite database for testing.

    Yields:
        sqlite3.Connection: Connection to in-memory database.
    """
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def test_config(tmp_path):
    """Create a test configuration rooted in a temporary directory.

    Returns:
        Config: Test configuration object acting as user "alice".
    """
    return Config(
        base_dir=tmp_path / "pocketbook",
        db_data_dir=tmp_path / "pocketbook" / "db",
        db_filename="test.db",
        log_level="DEBUG",
        log_dir=tmp_path / "pocketbook" / "logs",
        user="alice",
    )


@pytest.fixture
def db_manager_with_schema(test_config, test_db):
    """In-memory DatabaseManager with all migrations applied."""
    manager = InMemoryDatabaseManager(test_config, test_db)
    manager.migrate()
    return manager


@pytest.fixture
def services(test_config, db_manager_with_schema):
    """Create a Services container backed by the in-memory database."""
    return Services(test_config, db_manager=db_manager_with_schema)
