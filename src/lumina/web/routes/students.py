"""Student endpoints."""

import sqlite3

import structlog
from fastapi import APIRouter, Depends, status

from lumina.config.app_config import AppConfig
from lumina.db.database import ConstraintViolation, Database, DatabaseError
from lumina.db.users_repository import create_user, delete_student, list_students
from lumina.utils.validators import synthesize_email, validate_email
from lumina.web.dependencies import get_config, get_database
from lumina.web.errors import ApiError
from lumina.web.schemas import (
    IdResponse,
    StudentCreate,
    SuccessResponse,
    UserResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/students", tags=["students"])


@router.get("/{parent_id}", response_model=list[UserResponse])
async def get_students(
    parent_id: int,
    db: Database = Depends(get_database),
) -> list[UserResponse]:
    """List the students registered under a parent."""
    return [UserResponse(**s.to_dict()) for s in list_students(db, parent_id)]


@router.delete("/{student_id}", response_model=SuccessResponse)
async def remove_student(
    student_id: int,
    db: Database = Depends(get_database),
) -> SuccessResponse:
    """Delete a student together with their progress records."""
    try:
        deleted = delete_student(db, student_id)
    except (sqlite3.Error, DatabaseError) as e:
        logger.error("students.delete_failed", student_id=student_id, error=str(e))
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to delete student"
        ) from e

    logger.info("students.deleted", student_id=student_id, found=deleted)
    return SuccessResponse(success=True)


@router.post("", response_model=IdResponse)
async def add_student(
    student_data: StudentCreate,
    db: Database = Depends(get_database),
    config: AppConfig = Depends(get_config),
) -> IdResponse:
    """Register a student under a parent."""
    if student_data.email and not validate_email(student_data.email):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid email address")

    email = student_data.email or synthesize_email(
        student_data.name, config.server.email_domain
    )

    try:
        student_id = create_user(
            db,
            email=email,
            name=student_data.name,
            role="student",
            parent_id=student_data.parentId,
            grade_level=student_data.gradeLevel,
        )
    except ConstraintViolation as e:
        logger.info("students.create_rejected", parent_id=student_data.parentId, reason=str(e))
        raise ApiError(
            status.HTTP_400_BAD_REQUEST, "Student already exists or invalid data"
        ) from e

    logger.info("students.created", student_id=student_id, parent_id=student_data.parentId)
    return IdResponse(id=student_id)
