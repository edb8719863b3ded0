"""Database module for SQLite persistence.

Provides:
- Database handle with explicit open/close lifecycle
- Ordered, recorded schema migrations
- Repository functions for users, lessons and progress
"""

from lumina.db.database import (
    ConstraintViolation,
    Database,
    DatabaseError,
    DatabaseNotOpenError,
)
from lumina.db.migrations import MIGRATIONS, MigrationError

__all__ = [
    "ConstraintViolation",
    "Database",
    "DatabaseError",
    "DatabaseNotOpenError",
    "MIGRATIONS",
    "MigrationError",
]
