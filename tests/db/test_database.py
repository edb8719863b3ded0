"""Tests for the Database handle and schema migrations."""

import sqlite3

import pytest

from lumina.db.database import MEMORY, Database, DatabaseNotOpenError
from lumina.db.migrations import (
    MIGRATIONS,
    Migration,
    MigrationError,
    apply_migrations,
    current_version,
)


class TestDatabaseLifecycle:
    """Tests for open/close."""

    def test_open_creates_file(self, tmp_path):
        """Opening a new path creates the store and its parent directory."""
        path = tmp_path / "nested" / "home.db"
        db = Database(path).open()
        try:
            assert path.exists()
            assert db.is_open
        finally:
            db.close()

    def test_closed_handle_rejects_connections(self, tmp_path):
        """Connections cannot be taken from a closed handle."""
        db = Database(tmp_path / "home.db")
        with pytest.raises(DatabaseNotOpenError):
            with db.connection():
                pass

    def test_close_twice_is_safe(self, tmp_path):
        """close() is idempotent."""
        db = Database(tmp_path / "home.db").open()
        db.close()
        db.close()
        assert not db.is_open

    def test_context_manager(self, tmp_path):
        """The handle opens on enter and closes on exit."""
        with Database(tmp_path / "home.db") as db:
            assert db.is_open
        assert not db.is_open

    def test_memory_store_keeps_data(self):
        """An in-memory store keeps rows across connection() blocks."""
        with Database(MEMORY) as db:
            with db.connection() as conn:
                conn.execute("INSERT INTO users (name, role) VALUES ('Jane', 'parent')")
            with db.connection() as conn:
                count = conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]
        assert count == 1

    def test_connection_rolls_back_on_error(self, db):
        """A failing block leaves no partial writes."""
        with pytest.raises(RuntimeError):
            with db.connection() as conn:
                conn.execute("INSERT INTO users (name, role) VALUES ('Jane', 'parent')")
                raise RuntimeError("boom")

        with db.connection() as conn:
            assert conn.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 0

    def test_transaction_is_atomic(self, db):
        """Statements in a transaction are undone together."""
        with pytest.raises(sqlite3.IntegrityError):
            with db.transaction() as conn:
                conn.execute("INSERT INTO users (name, role) VALUES ('Jane', 'parent')")
                conn.execute("INSERT INTO users (name, role) VALUES ('Sam', 'teacher')")

        with db.connection() as conn:
            assert conn.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 0


class TestMigrations:
    """Tests for ordered, recorded migrations."""

    def test_fresh_store_at_latest_version(self, db):
        """A new store has every migration applied."""
        assert db.schema_version() == max(m.version for m in MIGRATIONS)

    def test_lessons_have_student_id(self, db):
        """The student assignment column exists after migrating."""
        with db.connection() as conn:
            columns = [row[1] for row in conn.execute("PRAGMA table_info(lessons)")]
        assert "student_id" in columns

    def test_reopen_applies_nothing(self, tmp_path):
        """Migrations run once; reopening is a no-op."""
        path = tmp_path / "home.db"
        Database(path).open().close()

        conn = sqlite3.connect(path)
        try:
            assert apply_migrations(conn) == []
            recorded = conn.execute("SELECT version FROM schema_migrations").fetchall()
        finally:
            conn.close()
        assert [r[0] for r in recorded] == [m.version for m in MIGRATIONS]

    def test_legacy_store_is_adopted(self, tmp_path):
        """A store created before tracking keeps its data and gets recorded."""
        path = tmp_path / "legacy.db"
        conn = sqlite3.connect(path)
        conn.executescript(MIGRATIONS[0].sql)
        conn.execute("ALTER TABLE lessons ADD COLUMN student_id INTEGER")
        conn.execute("INSERT INTO users (name, role) VALUES ('Jane', 'parent')")
        conn.commit()
        conn.close()

        with Database(path) as db:
            assert db.schema_version() == max(m.version for m in MIGRATIONS)
            with db.connection() as c:
                assert c.execute("SELECT name FROM users").fetchone()[0] == "Jane"

    def test_failed_step_rolls_back(self):
        """A broken step raises MigrationError and is not recorded."""
        conn = sqlite3.connect(":memory:")
        broken = MIGRATIONS + (
            Migration(version=99, name="broken", sql="CREATE TABLE t (id INTEGER); NOT SQL;"),
        )
        with pytest.raises(MigrationError):
            apply_migrations(conn, broken)

        assert current_version(conn) == max(m.version for m in MIGRATIONS)
        tables = [r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")]
        assert "t" not in tables
        conn.close()
