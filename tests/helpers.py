"""Helper utilities for tests."""

import sqlite3
from contextlib import contextmanager
from datetime import datetime

from db.manager import DatabaseManager

# Wednesday, 2025-01-15 12:00 local time
NOW = datetime(2025, 1, 15, 12, 0, 0)


class InMemoryDatabaseManager(DatabaseManager):
    """DatabaseManager bound to one shared in-memory connection.

    Every connect() hands out the same connection and never closes it, so
    data survives across service calls for the lifetime of a test.
    """

    def __init__(self, config, conn: sqlite3.Connection):
        super().__init__(config)
        self.conn = conn

    @contextmanager
    def connect(self):
        try:
            yield self.conn
        except Exception:
            self.conn.rollback()
            raise

    def exists(self) -> bool:
        return True
