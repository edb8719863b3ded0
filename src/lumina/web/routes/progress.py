"""Progress endpoints."""

import structlog
from fastapi import APIRouter, Depends, status

from lumina.core.scoring import ScoringError, score_answers
from lumina.db.database import Database
from lumina.db.lessons_repository import get_lesson
from lumina.db.progress_repository import create_progress, list_progress
from lumina.web.dependencies import get_database
from lumina.web.errors import INVALID_REQUEST, ApiError
from lumina.web.schemas import IdResponse, ProgressCreate, ProgressResponse

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/progress", tags=["progress"])


def _resolve_score(db: Database, progress: ProgressCreate) -> int:
    """Score from the submitted answers when present, else the reported score."""
    if progress.answers is None:
        if progress.score is None:
            raise ApiError(status.HTTP_400_BAD_REQUEST, INVALID_REQUEST)
        return progress.score

    lesson = get_lesson(db, progress.lesson_id)
    if lesson is None:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Lesson not found")

    try:
        score = score_answers(lesson.quiz, progress.answers)
    except ScoringError as e:
        raise ApiError(status.HTTP_400_BAD_REQUEST, str(e)) from e

    if progress.score is not None and progress.score != score:
        logger.info(
            "progress.score_recomputed",
            lesson_id=progress.lesson_id,
            reported=progress.score,
            computed=score,
        )
    return score


@router.post("", response_model=IdResponse)
async def add_progress(
    progress: ProgressCreate,
    db: Database = Depends(get_database),
) -> IdResponse:
    """Record a completed quiz."""
    score = _resolve_score(db, progress)
    progress_id = create_progress(db, progress.student_id, progress.lesson_id, score)
    logger.info(
        "progress.recorded",
        progress_id=progress_id,
        student_id=progress.student_id,
        lesson_id=progress.lesson_id,
        score=score,
    )
    return IdResponse(id=progress_id)


@router.get("/{student_id}", response_model=list[ProgressResponse])
async def get_progress(
    student_id: int,
    db: Database = Depends(get_database),
) -> list[ProgressResponse]:
    """List a student's results, newest first."""
    return [ProgressResponse(**p.to_dict()) for p in list_progress(db, student_id)]
