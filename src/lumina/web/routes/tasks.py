"""Seeding and background task status endpoints."""

from __future__ import annotations

import asyncio
import random

import structlog
from fastapi import APIRouter, Depends, status

from lumina.core.curriculum import GRADES, SUBJECTS, placeholder_topic
from lumina.db.database import Database
from lumina.db.lessons_repository import has_lessons_for_grade
from lumina.web.dependencies import get_database, get_task_manager
from lumina.web.errors import ApiError
from lumina.web.schemas import SeedResponse, TaskResponse
from lumina.web.tasks import TaskManager

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["tasks"])

SEED_MESSAGE = "Seeding started in background"


async def seed_missing_grades(db: Database, rng: random.Random | None = None) -> list[str]:
    """Walk every grade and note the ones that have no lessons yet.

    Generation is not performed here; for each empty grade the topic that
    would be seeded is logged.

    Returns:
        The grades found empty
    """
    rng = rng or random.Random()
    empty: list[str] = []

    for grade in GRADES:
        if has_lessons_for_grade(db, grade):
            logger.debug("seed.grade_skipped", grade=grade)
            continue

        subject = rng.choice(SUBJECTS)
        logger.info(
            "seed.grade_pending",
            grade=grade,
            subject=subject,
            topic=placeholder_topic(subject, grade),
        )
        empty.append(grade)
        await asyncio.sleep(0)

    logger.info("seed.finished", empty_grades=len(empty))
    return empty


@router.post("/seed", response_model=SeedResponse)
async def start_seed(
    db: Database = Depends(get_database),
    tasks: TaskManager = Depends(get_task_manager),
) -> SeedResponse:
    """Start the seed walk in the background and return immediately."""
    record = await tasks.submit("seed", lambda: seed_missing_grades(db))
    return SeedResponse(message=SEED_MESSAGE, task_id=record.task_id)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    tasks: TaskManager = Depends(get_task_manager),
) -> TaskResponse:
    """Get the status of a background task."""
    record = await tasks.get(task_id)
    if record is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, f"Task not found: {task_id}")
    return TaskResponse(**record.to_dict())
