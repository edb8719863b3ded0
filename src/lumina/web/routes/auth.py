"""Login endpoint with auto-registration."""

import structlog
from fastapi import APIRouter, Depends, status

from lumina.config.app_config import AppConfig
from lumina.db.database import ConstraintViolation, Database
from lumina.db.users_repository import (
    UserRecord,
    create_user,
    find_user_by_identifier,
    find_user_without_email,
    get_user_by_email,
    get_user_by_id,
)
from lumina.utils.validators import identity_from_identifier
from lumina.web.dependencies import get_config, get_database
from lumina.web.errors import ApiError
from lumina.web.schemas import LoginRequest, UserResponse

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


def _auto_register(db: Database, identifier: str, role: str, domain: str) -> UserRecord:
    """Create an account for a first-seen identifier.

    A duplicate insert converges on the row already holding the email. If
    that row belongs to the other role, the account is kept separate and
    registered without an email.
    """
    email, name = identity_from_identifier(identifier, domain)

    try:
        user_id = create_user(db, email, name, role)
    except ConstraintViolation:
        existing = get_user_by_email(db, email)
        if existing is not None and existing.role == role:
            logger.info("login.converged", user_id=existing.id, role=role)
            return existing

        unnamed = find_user_without_email(db, name, role)
        if unnamed is not None:
            return unnamed

        logger.info("login.email_held_by_other_role", role=role)
        user_id = create_user(db, None, name, role)

    logger.info("login.auto_registered", user_id=user_id, role=role)
    return get_user_by_id(db, user_id)


@router.post("/login", response_model=UserResponse)
async def login(
    request: LoginRequest,
    db: Database = Depends(get_database),
    config: AppConfig = Depends(get_config),
) -> UserResponse:
    """Look up a parent or student, registering them on first login."""
    identifier = (request.identifier or "").strip()
    if not identifier:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Identifier is required")

    user = find_user_by_identifier(db, identifier, request.role)
    if user is None:
        user = _auto_register(db, identifier, request.role, config.server.email_domain)

    return UserResponse(**user.to_dict())
