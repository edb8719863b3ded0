"""SQLite database handle and connection management.

The handle is constructed explicitly, opened once at process start (which
applies pending migrations) and closed at shutdown. Callers pass it to the
repository functions instead of relying on a module-level connection.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

from lumina.db.migrations import apply_migrations, current_version

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("homeschool.db")
MEMORY = ":memory:"


class DatabaseError(Exception):
    """Base error for the persistence layer."""

    pass


class DatabaseNotOpenError(DatabaseError):
    """Raised when a connection is requested from a closed handle."""

    pass


class ConstraintViolation(DatabaseError):
    """Insert rejected by a uniqueness, CHECK or parent-reference rule."""

    pass


class Database:
    """Explicit handle to the SQLite store.

    Example:
        db = Database(Path("homeschool.db")).open()
        with db.connection() as conn:
            rows = conn.execute("SELECT * FROM users").fetchall()
        db.close()
    """

    def __init__(self, path: Path | str = DEFAULT_DB_PATH):
        self.path = path
        self._is_memory = str(path) == MEMORY
        # In-memory stores only live as long as their single connection
        self._shared: sqlite3.Connection | None = None
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> Database:
        """Open the store and apply pending migrations.

        Calling open() on an already open handle is a no-op.
        """
        if self._open:
            return self

        if self._is_memory:
            self._shared = self._new_connection()
        else:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        self._open = True
        conn = self._acquire()
        try:
            applied = apply_migrations(conn)
            version = current_version(conn)
        except Exception:
            self._release(conn)
            self.close()
            raise
        self._release(conn)

        logger.info(
            "database.opened",
            path=str(self.path),
            schema_version=version,
            migrations_applied=applied,
        )
        return self

    def close(self) -> None:
        """Close the store. Safe to call more than once."""
        if not self._open:
            return
        if self._shared is not None:
            self._shared.close()
            self._shared = None
        self._open = False
        logger.info("database.closed", path=str(self.path))

    def __enter__(self) -> Database:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _new_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _acquire(self) -> sqlite3.Connection:
        if not self._open:
            raise DatabaseNotOpenError(f"Database {self.path} is not open")
        if self._shared is not None:
            return self._shared
        return self._new_connection()

    def _release(self, conn: sqlite3.Connection) -> None:
        if conn is not self._shared:
            conn.close()

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a connection that commits on success and rolls back on error.

        Yields:
            SQLite connection with row factory set to sqlite3.Row
        """
        conn = self._acquire()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._release(conn)

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Run several statements as one atomic unit.

        Example:
            with db.transaction() as conn:
                conn.execute("DELETE FROM progress WHERE student_id = ?", (7,))
                conn.execute("DELETE FROM users WHERE id = ?", (7,))
        """
        with self.connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            yield conn

    def schema_version(self) -> int:
        """Highest migration version recorded in the store."""
        with self.connection() as conn:
            return current_version(conn)
