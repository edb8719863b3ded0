"""Repository functions for the users table.

Parents and students share one table; role distinguishes them.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any, Literal

import structlog

from lumina.db.database import ConstraintViolation, Database

logger = structlog.get_logger(__name__)

Role = Literal["parent", "student"]
ROLES: tuple[str, ...] = ("parent", "student")


@dataclass
class UserRecord:
    """User record from database."""

    id: int
    email: str | None
    name: str
    role: Role
    parent_id: int | None = None
    grade_level: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire shape (column names as stored)."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "parentId": self.parent_id,
            "gradeLevel": self.grade_level,
        }


def find_user_by_identifier(db: Database, identifier: str, role: str) -> UserRecord | None:
    """Look up a login identifier within one role.

    Students match on name only; parents match on name or email.

    Returns:
        UserRecord if found, None otherwise
    """
    with db.connection() as conn:
        if role == "student":
            row = conn.execute(
                "SELECT * FROM users WHERE name = ? AND role = 'student'",
                (identifier,),
            ).fetchone()
        else:
            row = conn.execute(
                "SELECT * FROM users WHERE (email = ? OR name = ?) AND role = 'parent'",
                (identifier, identifier),
            ).fetchone()

    if row is None:
        return None
    return _row_to_record(row)


def get_user_by_id(db: Database, user_id: int) -> UserRecord | None:
    """Get user by ID."""
    with db.connection() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()

    if row is None:
        return None
    return _row_to_record(row)


def get_user_by_email(db: Database, email: str) -> UserRecord | None:
    """Get user by email."""
    with db.connection() as conn:
        row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()

    if row is None:
        return None
    return _row_to_record(row)


def find_user_without_email(db: Database, name: str, role: str) -> UserRecord | None:
    """Find an account registered by name alone (email left empty)."""
    with db.connection() as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE name = ? AND role = ? AND email IS NULL",
            (name, role),
        ).fetchone()

    if row is None:
        return None
    return _row_to_record(row)


def create_user(
    db: Database,
    email: str | None,
    name: str,
    role: str,
    parent_id: int | None = None,
    grade_level: str | None = None,
) -> int:
    """Insert a new user.

    Args:
        db: Open database handle
        email: Unique email, or None
        name: Display name (also the student login identifier)
        role: 'parent' or 'student'
        parent_id: Owning parent (students only)
        grade_level: Grade label such as 'K' or '3' (students only)

    Returns:
        The generated user id

    Raises:
        ConstraintViolation: Duplicate email, invalid role, or a parent_id
            that does not reference a parent account
    """
    try:
        with db.connection() as conn:
            if parent_id is not None:
                parent = conn.execute(
                    "SELECT id FROM users WHERE id = ? AND role = 'parent'",
                    (parent_id,),
                ).fetchone()
                if parent is None:
                    raise ConstraintViolation(f"Parent not found: {parent_id}")

            cursor = conn.execute(
                """
                INSERT INTO users (email, name, role, parentId, gradeLevel)
                VALUES (?, ?, ?, ?, ?)
                """,
                (email, name, role, parent_id, grade_level),
            )
            user_id = cursor.lastrowid
    except sqlite3.IntegrityError as e:
        raise ConstraintViolation(str(e)) from e

    logger.debug("users.created", user_id=user_id, role=role)
    return user_id


def list_students(db: Database, parent_id: int) -> list[UserRecord]:
    """Get all students registered under a parent, in storage order."""
    with db.connection() as conn:
        rows = conn.execute(
            "SELECT * FROM users WHERE parentId = ? AND role = 'student'",
            (parent_id,),
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def delete_student(db: Database, student_id: int) -> bool:
    """Delete a student and their progress records in one transaction.

    Lessons assigned to the student are left in place.

    Returns:
        True if a student row was deleted, False if none matched
    """
    with db.transaction() as conn:
        progress = conn.execute(
            "DELETE FROM progress WHERE student_id = ?", (student_id,)
        )
        cursor = conn.execute(
            "DELETE FROM users WHERE id = ? AND role = 'student'", (student_id,)
        )

    deleted = cursor.rowcount > 0
    logger.debug(
        "users.student_deleted",
        student_id=student_id,
        deleted=deleted,
        progress_removed=progress.rowcount,
    )
    return deleted


def _row_to_record(row) -> UserRecord:
    """Convert database row to UserRecord."""
    return UserRecord(
        id=row["id"],
        email=row["email"],
        name=row["name"],
        role=row["role"],
        parent_id=row["parentId"],
        grade_level=row["gradeLevel"],
    )
