"""Repository functions for the progress table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from lumina.db.database import Database

logger = structlog.get_logger(__name__)


@dataclass
class ProgressRecord:
    """One completed quiz attempt, with the lesson's title and subject."""

    id: int
    student_id: int
    lesson_id: int
    score: int
    completed_at: str
    title: str | None = None
    subject: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "student_id": self.student_id,
            "lesson_id": self.lesson_id,
            "score": self.score,
            "completed_at": self.completed_at,
            "title": self.title,
            "subject": self.subject,
        }


def create_progress(db: Database, student_id: int, lesson_id: int, score: int) -> int:
    """Record a quiz result.

    The score is stored as given; neither its range nor the referenced
    student and lesson are checked.

    Returns:
        The generated progress id
    """
    with db.connection() as conn:
        cursor = conn.execute(
            "INSERT INTO progress (student_id, lesson_id, score) VALUES (?, ?, ?)",
            (student_id, lesson_id, score),
        )
        progress_id = cursor.lastrowid

    logger.debug(
        "progress.inserted",
        progress_id=progress_id,
        student_id=student_id,
        lesson_id=lesson_id,
        score=score,
    )
    return progress_id


def list_progress(db: Database, student_id: int) -> list[ProgressRecord]:
    """List a student's results joined with lesson title/subject, newest first."""
    with db.connection() as conn:
        rows = conn.execute(
            """
            SELECT p.*, l.title, l.subject
            FROM progress p
            JOIN lessons l ON p.lesson_id = l.id
            WHERE p.student_id = ?
            ORDER BY p.completed_at DESC, p.id DESC
            """,
            (student_id,),
        ).fetchall()

    return [
        ProgressRecord(
            id=row["id"],
            student_id=row["student_id"],
            lesson_id=row["lesson_id"],
            score=row["score"],
            completed_at=row["completed_at"],
            title=row["title"],
            subject=row["subject"],
        )
        for row in rows
    ]


def count_progress(db: Database, student_id: int) -> int:
    """Number of progress rows stored for a student, joined or not."""
    with db.connection() as conn:
        row = conn.execute(
            "SELECT COUNT(*) FROM progress WHERE student_id = ?", (student_id,)
        ).fetchone()
    return row[0]
