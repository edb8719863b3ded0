"""Health check endpoint."""

from fastapi import APIRouter, Depends

from lumina.db.database import Database
from lumina.web.dependencies import get_database
from lumina.web.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(db: Database = Depends(get_database)) -> HealthResponse:
    """Check API health status."""
    return HealthResponse(
        status="ok" if db.is_open else "degraded",
        version="0.1.0",
    )
