"""Lesson endpoints."""

import structlog
from fastapi import APIRouter, Depends, Query, status
from starlette.concurrency import run_in_threadpool

from lumina.core.lesson_generator import GenerationError, LessonGenerator
from lumina.db.database import Database
from lumina.db.lessons_repository import (
    QuizQuestion,
    create_lesson,
    get_lesson,
    list_lessons,
)
from lumina.web.dependencies import get_database, get_generator
from lumina.web.errors import ApiError
from lumina.web.schemas import (
    GeneratedLessonResponse,
    IdResponse,
    LessonCreate,
    LessonDetail,
    LessonGenerateRequest,
    LessonSummary,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["lessons"])


@router.post("/lessons", response_model=IdResponse)
async def add_lesson(
    lesson: LessonCreate,
    db: Database = Depends(get_database),
) -> IdResponse:
    """Store a lesson (grade-wide unless student_id is given)."""
    lesson_id = create_lesson(
        db,
        title=lesson.title,
        subject=lesson.subject,
        grade_level=lesson.grade_level,
        content=lesson.content,
        quiz=[
            QuizQuestion(
                question=q.question,
                options=q.options,
                correct_answer=q.correctAnswer,
            )
            for q in lesson.quiz_json
        ],
        student_id=lesson.student_id,
    )
    logger.info(
        "lessons.created",
        lesson_id=lesson_id,
        grade_level=lesson.grade_level,
        student_id=lesson.student_id,
    )
    return IdResponse(id=lesson_id)


@router.post("/lessons/generate", response_model=GeneratedLessonResponse)
async def generate_and_store_lesson(
    request: LessonGenerateRequest,
    db: Database = Depends(get_database),
    generator: LessonGenerator = Depends(get_generator),
) -> GeneratedLessonResponse:
    """Generate a lesson through the LLM and store it.

    The request waits for the generation; there is no timeout beyond the
    LLM client's own.
    """
    try:
        content = await run_in_threadpool(
            generator, request.subject, request.grade_level, request.topic
        )
    except GenerationError as e:
        raise ApiError(status.HTTP_502_BAD_GATEWAY, "Lesson generation failed") from e

    lesson_id = create_lesson(
        db,
        title=content.title,
        subject=request.subject,
        grade_level=request.grade_level,
        content=content.content,
        quiz=content.quiz,
        student_id=request.student_id,
    )
    return GeneratedLessonResponse(
        id=lesson_id,
        title=content.title,
        questions=len(content.quiz),
    )


@router.get("/lessons/{grade_level}", response_model=list[LessonSummary])
async def get_lessons(
    grade_level: str,
    student_id: str | None = Query(default=None, alias="studentId"),
    db: Database = Depends(get_database),
) -> list[LessonSummary]:
    """List lessons for a grade, plus the student's private ones if given.

    An empty studentId is treated as absent.
    """
    scoped_to = None
    if student_id:
        if not student_id.isdigit():
            raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid request data")
        scoped_to = int(student_id)

    return [
        LessonSummary(**lesson.to_dict())
        for lesson in list_lessons(db, grade_level, scoped_to)
    ]


@router.get("/lesson/{lesson_id}", response_model=LessonDetail | None)
async def get_single_lesson(
    lesson_id: int,
    db: Database = Depends(get_database),
) -> LessonDetail | None:
    """Get one lesson with its quiz decoded; null when it does not exist."""
    lesson = get_lesson(db, lesson_id)
    if lesson is None:
        return None
    return LessonDetail(**lesson.to_dict(decode=True))
