"""Repository functions for the lessons table.

Quizzes are stored as JSON text in quiz_json and decoded on single-lesson
reads only; listings leave them serialized.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable

import structlog

from lumina.db.database import Database

logger = structlog.get_logger(__name__)


@dataclass
class QuizQuestion:
    """One multiple-choice question with its answer key."""

    question: str
    options: list[str]
    correct_answer: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "question": self.question,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuizQuestion:
        """Build from the stored/wire shape ({question, options, correctAnswer}).

        Raises:
            TypeError: If options is present but not a list
        """
        options = data.get("options")
        if options is None:
            options = []
        if not isinstance(options, list):
            raise TypeError(f"Quiz options must be a list, got {type(options).__name__}")
        return cls(
            question=data.get("question", ""),
            options=list(options),
            correct_answer=int(data.get("correctAnswer", 0)),
        )


@dataclass
class LessonRecord:
    """Lesson record from database."""

    id: int
    title: str
    subject: str
    grade_level: str
    content: str
    quiz_json: str
    created_at: str
    student_id: int | None = None

    @property
    def quiz(self) -> list[QuizQuestion]:
        """Decoded quiz questions."""
        return decode_quiz(self.quiz_json)

    def to_dict(self, decode: bool = False) -> dict[str, Any]:
        """Convert to the wire shape.

        Args:
            decode: Return quiz_json as a list of questions instead of text
        """
        return {
            "id": self.id,
            "title": self.title,
            "subject": self.subject,
            "grade_level": self.grade_level,
            "content": self.content,
            "quiz_json": [q.to_dict() for q in self.quiz] if decode else self.quiz_json,
            "created_at": self.created_at,
            "student_id": self.student_id,
        }


def encode_quiz(quiz: Iterable[QuizQuestion | dict[str, Any]]) -> str:
    """Serialize quiz questions to JSON text."""
    items = [q if isinstance(q, QuizQuestion) else QuizQuestion.from_dict(q) for q in quiz]
    return json.dumps([q.to_dict() for q in items], ensure_ascii=False)


def decode_quiz(quiz_json: str | None) -> list[QuizQuestion]:
    """Deserialize quiz JSON text. Missing text decodes to an empty quiz."""
    if not quiz_json:
        return []
    return [QuizQuestion.from_dict(item) for item in json.loads(quiz_json)]


def create_lesson(
    db: Database,
    title: str,
    subject: str,
    grade_level: str,
    content: str,
    quiz: Iterable[QuizQuestion | dict[str, Any]],
    student_id: int | None = None,
) -> int:
    """Insert a lesson.

    Args:
        db: Open database handle
        title: Lesson title
        subject: Subject name (e.g., 'Math')
        grade_level: Grade label ('K', '1' .. '12')
        content: Markdown lesson body
        quiz: Ordered quiz questions
        student_id: Private assignee; None makes the lesson grade-wide

    Returns:
        The generated lesson id
    """
    with db.connection() as conn:
        cursor = conn.execute(
            """
            INSERT INTO lessons (title, subject, grade_level, content, quiz_json, student_id)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (title, subject, grade_level, content, encode_quiz(quiz), student_id),
        )
        lesson_id = cursor.lastrowid

    logger.debug(
        "lessons.inserted",
        lesson_id=lesson_id,
        grade_level=grade_level,
        student_id=student_id,
    )
    return lesson_id


def list_lessons(
    db: Database,
    grade_level: str,
    student_id: int | None = None,
) -> list[LessonRecord]:
    """List lessons visible at a grade, newest first.

    With a student, returns grade-wide lessons plus those assigned to that
    student. Without one, returns grade-wide lessons only.
    """
    with db.connection() as conn:
        if student_id is not None:
            rows = conn.execute(
                """
                SELECT * FROM lessons
                WHERE grade_level = ? AND (student_id IS NULL OR student_id = ?)
                ORDER BY created_at DESC, id DESC
                """,
                (grade_level, student_id),
            ).fetchall()
        else:
            rows = conn.execute(
                """
                SELECT * FROM lessons
                WHERE grade_level = ? AND student_id IS NULL
                ORDER BY created_at DESC, id DESC
                """,
                (grade_level,),
            ).fetchall()

    return [_row_to_record(row) for row in rows]


def get_lesson(db: Database, lesson_id: int) -> LessonRecord | None:
    """Get lesson by ID."""
    with db.connection() as conn:
        row = conn.execute("SELECT * FROM lessons WHERE id = ?", (lesson_id,)).fetchone()

    if row is None:
        return None
    return _row_to_record(row)


def has_lessons_for_grade(db: Database, grade_level: str) -> bool:
    """Whether any lesson (grade-wide or private) exists for a grade."""
    with db.connection() as conn:
        row = conn.execute(
            "SELECT id FROM lessons WHERE grade_level = ? LIMIT 1", (grade_level,)
        ).fetchone()
    return row is not None


def _row_to_record(row) -> LessonRecord:
    """Convert database row to LessonRecord."""
    return LessonRecord(
        id=row["id"],
        title=row["title"],
        subject=row["subject"],
        grade_level=row["grade_level"],
        content=row["content"],
        quiz_json=row["quiz_json"],
        created_at=row["created_at"],
        student_id=row["student_id"],
    )
