"""Pydantic schemas for the Web API.

Field names follow the wire format of the stored rows: users use
parentId/gradeLevel, lessons and progress use snake_case.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field


# =============================================================================
# USER SCHEMAS
# =============================================================================


class LoginRequest(BaseModel):
    """Request body for login / auto-registration."""

    identifier: str | None = None
    role: Literal["parent", "student"] = "parent"


class UserResponse(BaseModel):
    """A parent or student account."""

    id: int
    email: str | None = None
    name: str
    role: Literal["parent", "student"]
    parentId: int | None = None
    gradeLevel: str | None = None


class StudentCreate(BaseModel):
    """Request body for registering a student under a parent."""

    name: str = Field(..., min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=200)
    gradeLevel: str | None = None
    parentId: int


# =============================================================================
# LESSON SCHEMAS
# =============================================================================


class QuizQuestionSchema(BaseModel):
    """One multiple-choice question with its answer key."""

    question: str
    options: list[str]
    correctAnswer: int


class LessonCreate(BaseModel):
    """Request body for storing a lesson."""

    title: str
    subject: str
    grade_level: str
    content: str
    quiz_json: list[QuizQuestionSchema] = Field(default_factory=list)
    student_id: int | None = None


class LessonSummary(BaseModel):
    """Lesson as listed per grade; quiz_json stays serialized."""

    id: int
    title: str | None = None
    subject: str | None = None
    grade_level: str | None = None
    content: str | None = None
    quiz_json: str | None = None
    created_at: str | None = None
    student_id: int | None = None


class LessonDetail(BaseModel):
    """Single lesson with its quiz decoded."""

    id: int
    title: str | None = None
    subject: str | None = None
    grade_level: str | None = None
    content: str | None = None
    quiz_json: list[QuizQuestionSchema] = Field(default_factory=list)
    created_at: str | None = None
    student_id: int | None = None


class LessonGenerateRequest(BaseModel):
    """Request to generate and store a lesson server-side."""

    subject: str = Field(..., min_length=1)
    grade_level: str = Field(..., min_length=1)
    topic: str = Field(..., min_length=1)
    student_id: int | None = None


class GeneratedLessonResponse(BaseModel):
    """Stored result of a server-side generation."""

    id: int
    title: str
    questions: int


# =============================================================================
# PROGRESS SCHEMAS
# =============================================================================


class ProgressCreate(BaseModel):
    """Request body for recording a quiz result.

    When answers are given the server scores them against the stored
    answer key and ignores score.
    """

    student_id: int
    lesson_id: int
    score: int | None = None
    answers: list[int | None] | None = None


class ProgressResponse(BaseModel):
    """A recorded result joined with its lesson."""

    id: int
    student_id: int | None = None
    lesson_id: int | None = None
    score: int | None = None
    completed_at: str | None = None
    title: str | None = None
    subject: str | None = None


# =============================================================================
# TASK SCHEMAS
# =============================================================================


class SeedResponse(BaseModel):
    """Acknowledgement for a started seed run."""

    message: str
    task_id: str


class TaskResponse(BaseModel):
    """Status of a background task."""

    task_id: str
    name: str
    status: Literal["pending", "running", "completed", "failed"]
    created_at: str
    finished_at: str | None = None
    error: str | None = None


# =============================================================================
# GENERIC SCHEMAS
# =============================================================================


class IdResponse(BaseModel):
    """Id of a newly created row."""

    id: int


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    """Error payload returned for every handled failure."""

    error: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
