"""SQLite connections and schema migrations for the Pocketbook database."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import List, Set

from config import Config, get_migrations_dir
from logger import get_logger

logger = get_logger()

# Seconds to wait on a locked database before failing
BUSY_TIMEOUT = 5.0


def ensure_migrations_table(conn) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            migration_file TEXT PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)
    conn.commit()


def applied_migrations(conn) -> Set[str]:
    cursor = conn.execute("SELECT migration_file FROM schema_migrations")
    return {row[0] for row in cursor.fetchall()}


def available_migrations(migrations_dir: Path) -> List[str]:
    """SQL migration file names in apply order."""
    if not migrations_dir.exists():
        return []
    return sorted(path.name for path in migrations_dir.glob("*.sql"))


def apply_pending(conn, migrations_dir: Path) -> List[str]:
    """Apply every migration not yet recorded in schema_migrations.

    Args:
        conn: SQLite connection.
        migrations_dir: Directory containing the .sql migration files.

    Returns:
        Names of the migrations applied, in order.

    Raises:
        sqlite3.Error: If a migration fails. Earlier migrations stay applied.
    """
    ensure_migrations_table(conn)
    done = applied_migrations(conn)
    pending = [m for m in available_migrations(migrations_dir) if m not in done]

    for migration in pending:
        sql = (migrations_dir / migration).read_text()
        try:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_migrations (migration_file) VALUES (?)",
                (migration,),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error applying migration {migration}: {e}")
            raise
        logger.debug(f"Applied migration: {migration}")

    return pending


class DatabaseManager:
    """Opens connections to the database at config.db_path and keeps its
    schema up to date.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: Config):
        self.config = config

    @contextmanager
    def connect(self):
        """Open a connection for a single operation.

        Uncommitted work is rolled back if the block raises; the connection
        is always closed.

        Yields:
            sqlite3.Connection: Database connection.
        """
        db_path = self.config.db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(db_path, timeout=BUSY_TIMEOUT)
        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def exists(self) -> bool:
        return self.config.db_path.exists()

    def get_migrations_dir(self) -> Path:
        return get_migrations_dir()

    def pending_migrations(self) -> List[str]:
        """Migrations present on disk but not yet applied."""
        with self.connect() as conn:
            ensure_migrations_table(conn)
            done = applied_migrations(conn)
        return [m for m in available_migrations(self.get_migrations_dir()) if m not in done]

    def migrate(self) -> List[str]:
        """Apply pending migrations and return their names."""
        with self.connect() as conn:
            return apply_pending(conn, self.get_migrations_dir())
