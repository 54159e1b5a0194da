"""Tests for schema migrations."""

from config import get_migrations_dir
from db.manager import (
    DatabaseManager,
    applied_migrations,
    apply_pending,
    available_migrations,
)


class TestApplyPending:
    """Tests for apply_pending function."""

    def test_applies_all_migrations_once(self, test_db):
        """Test every migration is applied in order and only once."""
        migrations_dir = get_migrations_dir()

        first = apply_pending(test_db, migrations_dir)
        second = apply_pending(test_db, migrations_dir)

        assert first == available_migrations(migrations_dir)
        assert first[:2] == ["001_initial.sql", "002_accounts.sql"]
        assert second == []
        assert applied_migrations(test_db) == set(first)

    def test_creates_tables(self, test_db):
        """Test the record tables exist after migrating."""
        apply_pending(test_db, get_migrations_dir())

        tables = {
            row[0]
            for row in test_db.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            ).fetchall()
        }

        assert {"transactions", "budgets", "goals", "accounts"} <= tables

    def test_missing_directory(self, test_db, tmp_path):
        """Test a missing migrations directory applies nothing."""
        assert apply_pending(test_db, tmp_path / "missing") == []


class TestDatabaseManager:
    """Tests for DatabaseManager against a database file."""

    def test_migrate_creates_database(self, test_config):
        """Test migrating creates the file and leaves nothing pending."""
        manager = DatabaseManager(test_config)
        assert not manager.exists()

        applied = manager.migrate()

        assert manager.exists()
        assert applied == available_migrations(get_migrations_dir())
        assert manager.pending_migrations() == []
        assert manager.migrate() == []

    def test_failed_block_is_rolled_back(self, test_config):
        """Test uncommitted work is discarded when the block raises."""
        manager = DatabaseManager(test_config)
        manager.migrate()

        try:
            with manager.connect() as conn:
                conn.execute(
                    "INSERT INTO accounts (user_id, name, account_type, balance) "
                    "VALUES ('alice', 'Checking', 'checking', 0)"
                )
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        with manager.connect() as conn:
            assert conn.execute("SELECT COUNT(*) FROM accounts").fetchone()[0] == 0
