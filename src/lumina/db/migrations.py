"""Ordered schema migrations.

Each step runs once, inside its own transaction, and is recorded in
schema_migrations. Opening an already migrated store is a no-op.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Callable

import structlog

logger = structlog.get_logger(__name__)


class MigrationError(Exception):
    """A migration step failed and was rolled back."""

    pass


def _column_exists(conn: sqlite3.Connection, table: str, column: str) -> bool:
    rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
    return any(row[1] == column for row in rows)


@dataclass(frozen=True)
class Migration:
    """A single schema step."""

    version: int
    name: str
    sql: str
    # Stores created before migrations were tracked may already have the change
    already_applied: Callable[[sqlite3.Connection], bool] | None = None


MIGRATIONS: tuple[Migration, ...] = (
    Migration(
        version=1,
        name="create_core_tables",
        sql="""
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT UNIQUE,
            name TEXT,
            role TEXT CHECK(role IN ('parent', 'student')),
            parentId INTEGER,
            gradeLevel TEXT,
            FOREIGN KEY(parentId) REFERENCES users(id)
        );

        CREATE TABLE IF NOT EXISTS lessons (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT,
            subject TEXT,
            grade_level TEXT,
            content TEXT,
            quiz_json TEXT,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS progress (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            student_id INTEGER,
            lesson_id INTEGER,
            score INTEGER,
            completed_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(student_id) REFERENCES users(id),
            FOREIGN KEY(lesson_id) REFERENCES lessons(id)
        );
        """,
    ),
    Migration(
        version=2,
        name="add_lesson_student_id",
        sql="ALTER TABLE lessons ADD COLUMN student_id INTEGER REFERENCES users(id);",
        already_applied=lambda conn: _column_exists(conn, "lessons", "student_id"),
    ),
    Migration(
        version=3,
        name="add_lookup_indexes",
        sql="""
        CREATE INDEX IF NOT EXISTS idx_users_parent ON users(parentId);
        CREATE INDEX IF NOT EXISTS idx_lessons_grade ON lessons(grade_level);
        CREATE INDEX IF NOT EXISTS idx_progress_student ON progress(student_id);
        """,
    ),
)


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            applied_at TEXT NOT NULL DEFAULT (datetime('now'))
        )
        """
    )
    conn.commit()


def current_version(conn: sqlite3.Connection) -> int:
    """Return the highest recorded migration version (0 for a fresh store)."""
    _ensure_version_table(conn)
    row = conn.execute("SELECT MAX(version) FROM schema_migrations").fetchone()
    return row[0] or 0


def apply_migrations(
    conn: sqlite3.Connection,
    migrations: tuple[Migration, ...] = MIGRATIONS,
) -> list[int]:
    """Apply every migration newer than the recorded version, in order.

    Args:
        conn: Open connection
        migrations: Steps to consider, sorted by version

    Returns:
        Versions applied by this call

    Raises:
        MigrationError: If a step fails; the failing step is rolled back
    """
    version = current_version(conn)
    applied: list[int] = []

    for migration in sorted(migrations, key=lambda m: m.version):
        if migration.version <= version:
            continue

        body = migration.sql
        if migration.already_applied is not None and migration.already_applied(conn):
            logger.info(
                "migration.adopted",
                version=migration.version,
                name=migration.name,
            )
            body = ""

        script = (
            "BEGIN;\n"
            f"{body}\n"
            "INSERT INTO schema_migrations (version, name) "
            f"VALUES ({int(migration.version)}, '{migration.name}');\n"
            "COMMIT;"
        )
        try:
            conn.executescript(script)
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.rollback()
            raise MigrationError(
                f"Migration {migration.version} ({migration.name}) failed: {e}"
            ) from e

        applied.append(migration.version)
        logger.info("migration.applied", version=migration.version, name=migration.name)

    return applied
